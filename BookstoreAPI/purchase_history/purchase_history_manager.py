"""
Purchase History Manager

Keeps the purchaseHistory list embedded in each user document in sync
with the book catalog:
1. Appending a purchase copies the book's data into the user document
2. Records are located by their own _id, never by the source book's id
3. Updates merge new fields over a record and preserve its _id
4. Removal is a no-op when the record is not in the history

Appending is two store calls (book lookup, then user push) and is not
atomic across collections. Updating is a read-modify-write of the whole
user document with no version check: of two concurrent updates to the
same user, the last one to be saved wins.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from BookstoreAPI.data_model.purchase import PurchaseRecord
from BookstoreAPI.database.books_repository import BooksRepository
from BookstoreAPI.database.users_repository import UsersRepository
from BookstoreAPI.errors.exceptions import NotFoundError, validate_document
from BookstoreAPI.logger.logger import Logger

# Set by the store and by append, never taken from an update
PROTECTED_FIELDS = ("_id", "purchaseDate")


def find_record_index(purchase_history: List[dict], record_id: str) -> Optional[int]:
    """
    Linear scan for the record whose _id matches record_id.

    Identifiers are compared as strings so that ObjectIds and path-supplied
    strings match.
    """
    for index, record in enumerate(purchase_history):
        if str(record.get("_id")) == str(record_id):
            return index
    return None


class PurchaseHistoryManager:
    """
    Operations on a user's embedded purchase history.
    """

    def __init__(self, users_repository: UsersRepository, books_repository: BooksRepository):
        self.users_repository = users_repository
        self.books_repository = books_repository
        self.logger = Logger(__name__)

    async def append(self, user_id: str, book_id: str) -> dict:
        """
        Record the purchase of a book by a user.

        The book is looked up before the user is touched, so an unknown
        book never changes the user.

        Returns:
            The updated user document

        Raises:
            NotFoundError: If the book or the user does not exist
        """
        # Without its _id, so the store mints a fresh one for the record
        book = await self.books_repository.get(book_id, exclude_identifier=True)
        if book is None:
            raise NotFoundError("Book", book_id)

        record = {**book, "purchaseDate": datetime.now(timezone.utc)}

        user = await self.users_repository.push_purchase(user_id, record)
        if user is None:
            raise NotFoundError("User", user_id)

        self.logger.info(f"Purchase appended: user_id={user_id}, book_id={book_id}")
        return user

    async def list_history(self, user_id: str) -> List[dict]:
        user = await self._get_user(user_id)
        return user.get("purchaseHistory", [])

    async def get_history_item(self, user_id: str, record_id: str) -> dict:
        user = await self._get_user(user_id)
        history = user.get("purchaseHistory", [])

        index = find_record_index(history, record_id)
        if index is None:
            raise NotFoundError("PurchaseRecord", record_id)
        return history[index]

    async def update_history_item(self, user_id: str, record_id: str, patch: Dict[str, Any]) -> dict:
        """
        Merge patch fields over one purchase record and save the user.

        Patch fields take precedence over stored ones, except _id and
        purchaseDate which are always kept.

        Returns:
            The updated user document

        Raises:
            NotFoundError: If the user or the record does not exist
            ValidationError: If the merged record does not fit the schema
        """
        user = await self._get_user(user_id)
        history = list(user.get("purchaseHistory", []))

        index = find_record_index(history, record_id)
        if index is None:
            raise NotFoundError("PurchaseRecord", record_id)

        current = history[index]
        merged = {**current, **{key: value for key, value in patch.items() if key not in PROTECTED_FIELDS}}
        validated = validate_document(PurchaseRecord, merged)
        # Explicit nulls in the patch are stored, absent fields are not
        history[index] = {"_id": current["_id"], **validated.model_dump(by_alias=True, exclude_unset=True)}

        saved = await self.users_repository.save({**user, "purchaseHistory": history})
        if saved is None:
            # Deleted between load and save
            raise NotFoundError("User", user_id)

        self.logger.info(f"Purchase updated: user_id={user_id}, record_id={record_id}")
        return saved

    async def remove_history_item(self, user_id: str, record_id: str) -> dict:
        """
        Remove a purchase record from the user's history.

        Removing a record that is not there succeeds and returns the
        unchanged user.

        Raises:
            NotFoundError: If the user does not exist
        """
        user = await self.users_repository.pull_purchase(user_id, record_id)
        if user is None:
            raise NotFoundError("User", user_id)

        self.logger.info(f"Purchase removed: user_id={user_id}, record_id={record_id}")
        return user

    async def _get_user(self, user_id: str) -> dict:
        user = await self.users_repository.get(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user
