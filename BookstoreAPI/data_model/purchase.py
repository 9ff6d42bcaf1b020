from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, Field, field_validator

Number = Union[int, float]


class PurchaseRequest(BaseModel):
    """
    Request body for adding a book to a user's purchase history.
    """
    book_id: str = Field(..., alias="bookId", min_length=1, description="Identifier of the purchased book")

    @field_validator('book_id')
    def validate_book_id(cls, v):
        """Validate book id format."""
        if not v.strip():
            raise ValueError("Book id cannot be empty or whitespace")
        return v.strip()

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "bookId": "63a1b2c3d4e5f6a7b8c9d0e1"
            }
        }


class PurchaseRecordUpdate(BaseModel):
    """
    Request body for editing a purchase record. Every field is optional;
    only the supplied ones are merged over the stored element. purchaseDate
    is assigned when the purchase is appended and cannot be edited.
    """
    title: Optional[str] = None
    category: Optional[str] = None
    asin: Optional[str] = None
    price: Optional[Number] = None

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "price": 12.5
            }
        }


class PurchaseRecord(PurchaseRecordUpdate):
    """
    Schema of one element of a user's purchaseHistory.

    Only these fields survive when a book is copied into the history;
    any other catalog field of the book is dropped. The element identifier
    is not part of the schema: the store layer mints it on insertion.
    """
    purchase_date: Optional[datetime] = Field(None, alias="purchaseDate")

    class Config:
        populate_by_name = True


class PurchaseRecordResponse(PurchaseRecord):
    """
    Purchase record as returned to clients, including its _id.
    """
    id: str = Field(..., alias="_id", description="Purchase record ID")

    class Config:
        populate_by_name = True
