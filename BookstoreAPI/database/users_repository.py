from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo import ReturnDocument

from BookstoreAPI.data_model.purchase import PurchaseRecord
from BookstoreAPI.data_model.user import UserCreate, UserUpdate
from BookstoreAPI.database.identifiers import serialize_document, to_object_id
from BookstoreAPI.errors.exceptions import validate_document
from BookstoreAPI.logger.logger import Logger


# ============================================================================
# USERS COLLECTION
# ============================================================================

class UsersRepository:
    """
    Reads and writes user documents.

    Every write validates its payload against the user schema before
    reaching MongoDB and refreshes the updatedAt timestamp. Documents are
    returned with ObjectIds converted to strings; a malformed identifier
    behaves like a missing document.
    """

    def __init__(self, collection):
        """
        Args:
            collection: Motor collection holding user documents
        """
        self.collection = collection
        self.logger = Logger(__name__)

    async def create(self, fields: Dict[str, Any]) -> str:
        """
        Insert a new user with an empty purchase history.

        Returns:
            str: MongoDB document ID

        Raises:
            ValidationError: If a required field is missing or has the wrong type
        """
        user = validate_document(UserCreate, fields)
        now = datetime.now(timezone.utc)

        document = user.model_dump(by_alias=True, exclude_none=True)
        document["purchaseHistory"] = []
        document["createdAt"] = now
        document["updatedAt"] = now

        result = await self.collection.insert_one(document)
        self.logger.info(f"User created: _id={result.inserted_id}")
        return str(result.inserted_id)

    async def get(self, user_id: str) -> Optional[dict]:
        oid = to_object_id(user_id)
        if oid is None:
            return None
        user = await self.collection.find_one({"_id": oid})
        return serialize_document(user) if user else None

    async def list(self) -> List[dict]:
        cursor = self.collection.find({})
        users = await cursor.to_list(length=None)
        return [serialize_document(user) for user in users]

    async def update(self, user_id: str, fields: Dict[str, Any]) -> Optional[dict]:
        """
        Merge the supplied fields into the stored user.

        Returns:
            The post-update document, or None if the user does not exist
        """
        changes = validate_document(UserUpdate, fields).model_dump(by_alias=True, exclude_unset=True)
        oid = to_object_id(user_id)
        if oid is None:
            return None

        changes["updatedAt"] = datetime.now(timezone.utc)
        user = await self.collection.find_one_and_update(
            {"_id": oid},
            {"$set": changes},
            return_document=ReturnDocument.AFTER
        )
        return serialize_document(user) if user else None

    async def delete(self, user_id: str) -> bool:
        oid = to_object_id(user_id)
        if oid is None:
            return False
        result = await self.collection.delete_one({"_id": oid})
        if result.deleted_count:
            self.logger.info(f"User deleted: _id={user_id}")
        return result.deleted_count == 1

    async def push_purchase(self, user_id: str, record: Dict[str, Any]) -> Optional[dict]:
        """
        Atomically append a purchase record to the user's history.

        The record is validated against the purchase record schema, which
        drops fields outside it, and receives a freshly minted _id.

        Returns:
            The updated user, or None if the user does not exist
        """
        validated = validate_document(PurchaseRecord, record)
        oid = to_object_id(user_id)
        if oid is None:
            return None

        element = {"_id": ObjectId(), **validated.model_dump(by_alias=True, exclude_none=True)}
        user = await self.collection.find_one_and_update(
            {"_id": oid},
            {
                "$push": {"purchaseHistory": element},
                "$set": {"updatedAt": datetime.now(timezone.utc)},
            },
            return_document=ReturnDocument.AFTER
        )
        return serialize_document(user) if user else None

    async def pull_purchase(self, user_id: str, record_id: str) -> Optional[dict]:
        """
        Atomically remove the purchase record with the given _id.

        Pulling a record that is not in the history leaves it unchanged.

        Returns:
            The updated user, or None if the user does not exist
        """
        oid = to_object_id(user_id)
        if oid is None:
            return None

        record_oid = to_object_id(record_id)
        if record_oid is None:
            # No stored element can carry a malformed id
            return await self.get(user_id)

        user = await self.collection.find_one_and_update(
            {"_id": oid},
            {
                "$pull": {"purchaseHistory": {"_id": record_oid}},
                "$set": {"updatedAt": datetime.now(timezone.utc)},
            },
            return_document=ReturnDocument.AFTER
        )
        return serialize_document(user) if user else None

    async def save(self, user: dict) -> Optional[dict]:
        """
        Replace the stored user with the given full document.

        The document is expected to come from get(), so string identifiers
        are converted back to ObjectIds before writing.

        Returns:
            The saved user, or None if it no longer exists
        """
        oid = to_object_id(user["_id"])
        if oid is None:
            return None

        document = {key: value for key, value in user.items() if key != "_id"}
        document["purchaseHistory"] = [
            {**element, "_id": to_object_id(element["_id"]) or element["_id"]}
            for element in user.get("purchaseHistory", [])
        ]
        document["updatedAt"] = datetime.now(timezone.utc)

        saved = await self.collection.find_one_and_replace(
            {"_id": oid},
            document,
            return_document=ReturnDocument.AFTER
        )
        return serialize_document(saved) if saved else None
