from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from BookstoreAPI.data_model.purchase import Number


class BookResponse(BaseModel):
    """
    Catalog entry. Fields beyond the ones declared here are passed through
    unchanged.
    """
    id: Optional[str] = Field(None, alias="_id", description="Book ID (absent when projected out)")
    title: Optional[str] = None
    category: Optional[str] = None
    asin: Optional[str] = None
    price: Optional[Number] = None

    class Config:
        populate_by_name = True
        extra = "allow"


class BooksPage(BaseModel):
    """
    Response model for the paginated books listing.
    """
    links: Dict[str, str]
    total_pages: int = Field(..., alias="totalPages")
    books: List[BookResponse]
    total: int

    class Config:
        populate_by_name = True
