from typing import Any, Dict, List, Optional, Tuple

from BookstoreAPI.database.identifiers import serialize_document, to_object_id


class BooksRepository:
    """
    Read-only access to the book catalog.
    """

    def __init__(self, collection):
        self.collection = collection

    async def get(self, book_id: str, exclude_identifier: bool = False) -> Optional[dict]:
        """
        Look up a book by id.

        Args:
            book_id: Book identifier
            exclude_identifier: Project the _id field out of the result

        Returns:
            The book document, or None if it does not exist
        """
        oid = to_object_id(book_id)
        if oid is None:
            return None
        projection = {"_id": 0} if exclude_identifier else None
        book = await self.collection.find_one({"_id": oid}, projection)
        return serialize_document(book) if book else None

    async def count(self, criteria: Dict[str, Any]) -> int:
        return await self.collection.count_documents(criteria)

    async def find(
            self,
            criteria: Dict[str, Any],
            fields: Optional[Dict[str, int]] = None,
            sort: Optional[List[Tuple[str, int]]] = None,
            skip: int = 0,
            limit: int = 0
    ) -> List[dict]:
        """
        Scan the catalog.

        MongoDB always applies sort, then skip, then limit, whatever the
        order in which they are set on the cursor.
        """
        cursor = self.collection.find(criteria, fields or None)
        if sort:
            cursor = cursor.sort(sort)
        cursor = cursor.skip(skip).limit(limit)
        books = await cursor.to_list(length=None)
        return [serialize_document(book) for book in books]
