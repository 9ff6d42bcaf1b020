"""
Book catalog endpoints.
"""

from fastapi import APIRouter, Depends, Request

from BookstoreAPI.api.dependencies import get_books_repository
from BookstoreAPI.config.settings import BOOKS_MAX_PAGE_SIZE, BOOKS_PAGE_SIZE, PUBLIC_BASE_URL
from BookstoreAPI.data_model.book import BookResponse, BooksPage
from BookstoreAPI.database.books_repository import BooksRepository
from BookstoreAPI.errors.exceptions import NotFoundError
from BookstoreAPI.query.query_translator import translate


async def list_books(request: Request, books: BooksRepository = Depends(get_books_repository)):
    """
    List the catalog, filtered, sorted and paginated from the query string.

    Example: GET /books?category=fantasy&price<20&sort=-price&limit=5
    """
    query = translate(request.url.query, BOOKS_PAGE_SIZE, BOOKS_MAX_PAGE_SIZE)

    total = await books.count(query.criteria)
    page = await books.find(
        query.criteria,
        fields=query.projection,
        sort=query.sort,
        skip=query.skip,
        limit=query.limit
    )

    return {
        "links": query.links(f"{PUBLIC_BASE_URL}/books", total),
        "totalPages": query.total_pages(total),
        "books": page,
        "total": total,
    }


async def get_book(book_id: str, books: BooksRepository = Depends(get_books_repository)):
    book = await books.get(book_id)
    if book is None:
        raise NotFoundError("Book", book_id)
    return book


ROUTES = [
    ("GET", "", list_books, {"response_model": BooksPage}),
    ("GET", "/{book_id}", get_book, {"response_model": BookResponse}),
]


def build_router() -> APIRouter:
    router = APIRouter(prefix="/books", tags=["books"])
    for method, path, handler, options in ROUTES:
        router.add_api_route(path, handler, methods=[method], **options)
    return router
