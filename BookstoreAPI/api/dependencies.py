from fastapi import Request

from BookstoreAPI.database.books_repository import BooksRepository
from BookstoreAPI.database.users_repository import UsersRepository
from BookstoreAPI.purchase_history.purchase_history_manager import PurchaseHistoryManager


# Collaborators are created once in the application lifespan and kept on app.state

def get_users_repository(request: Request) -> UsersRepository:
    return request.app.state.users_repository


def get_books_repository(request: Request) -> BooksRepository:
    return request.app.state.books_repository


def get_purchase_history_manager(request: Request) -> PurchaseHistoryManager:
    return request.app.state.purchase_history_manager
