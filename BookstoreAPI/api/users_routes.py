"""
Users and purchase history endpoints.

Handlers only translate HTTP into repository / manager calls. Failures are
raised as BookstoreError subclasses and turned into responses by the
handlers in errors/handlers.py.
"""

from typing import List

from fastapi import APIRouter, Depends, Response, status

from BookstoreAPI.api.dependencies import get_purchase_history_manager, get_users_repository
from BookstoreAPI.data_model.purchase import PurchaseRecordResponse, PurchaseRecordUpdate, PurchaseRequest
from BookstoreAPI.data_model.user import UserCreate, UserCreatedResponse, UserResponse, UserUpdate
from BookstoreAPI.database.users_repository import UsersRepository
from BookstoreAPI.errors.exceptions import NotFoundError
from BookstoreAPI.purchase_history.purchase_history_manager import PurchaseHistoryManager


# ============================================================================
# USERS
# ============================================================================

async def create_user(
        body: UserCreate,
        users: UsersRepository = Depends(get_users_repository)
):
    user_id = await users.create(body.model_dump(by_alias=True))
    return {"_id": user_id}


async def list_users(users: UsersRepository = Depends(get_users_repository)):
    return await users.list()


async def get_user(user_id: str, users: UsersRepository = Depends(get_users_repository)):
    user = await users.get(user_id)
    if user is None:
        raise NotFoundError("User", user_id)
    return user


async def update_user(
        user_id: str,
        body: UserUpdate,
        users: UsersRepository = Depends(get_users_repository)
):
    user = await users.update(user_id, body.model_dump(by_alias=True, exclude_unset=True))
    if user is None:
        raise NotFoundError("User", user_id)
    return user


async def delete_user(user_id: str, users: UsersRepository = Depends(get_users_repository)):
    if not await users.delete(user_id):
        raise NotFoundError("User", user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================================
# PURCHASE HISTORY
# ============================================================================

async def add_purchase(
        user_id: str,
        body: PurchaseRequest,
        manager: PurchaseHistoryManager = Depends(get_purchase_history_manager)
):
    return await manager.append(user_id, body.book_id)


async def list_purchases(
        user_id: str,
        manager: PurchaseHistoryManager = Depends(get_purchase_history_manager)
):
    return await manager.list_history(user_id)


async def get_purchase(
        user_id: str,
        product_id: str,
        manager: PurchaseHistoryManager = Depends(get_purchase_history_manager)
):
    return await manager.get_history_item(user_id, product_id)


async def update_purchase(
        user_id: str,
        product_id: str,
        body: PurchaseRecordUpdate,
        manager: PurchaseHistoryManager = Depends(get_purchase_history_manager)
):
    patch = body.model_dump(by_alias=True, exclude_unset=True)
    return await manager.update_history_item(user_id, product_id, patch)


async def remove_purchase(
        user_id: str,
        product_id: str,
        manager: PurchaseHistoryManager = Depends(get_purchase_history_manager)
):
    return await manager.remove_history_item(user_id, product_id)


# ============================================================================
# ROUTE TABLE
# ============================================================================

ROUTES = [
    ("POST", "", create_user,
     {"response_model": UserCreatedResponse, "status_code": status.HTTP_201_CREATED}),
    ("GET", "", list_users, {"response_model": List[UserResponse]}),
    ("GET", "/{user_id}", get_user, {"response_model": UserResponse}),
    ("PUT", "/{user_id}", update_user, {"response_model": UserResponse}),
    ("DELETE", "/{user_id}", delete_user,
     {"status_code": status.HTTP_204_NO_CONTENT, "response_class": Response}),
    ("POST", "/{user_id}/purchaseHistory", add_purchase, {"response_model": UserResponse}),
    ("GET", "/{user_id}/purchaseHistory", list_purchases,
     {"response_model": List[PurchaseRecordResponse]}),
    ("GET", "/{user_id}/purchaseHistory/{product_id}", get_purchase,
     {"response_model": PurchaseRecordResponse}),
    ("PUT", "/{user_id}/purchaseHistory/{product_id}", update_purchase,
     {"response_model": UserResponse}),
    ("DELETE", "/{user_id}/purchaseHistory/{product_id}", remove_purchase,
     {"response_model": UserResponse}),
]


def build_router() -> APIRouter:
    """Register every entry of ROUTES on a fresh router mounted under /users."""
    router = APIRouter(prefix="/users", tags=["users"])
    for method, path, handler, options in ROUTES:
        router.add_api_route(path, handler, methods=[method], **options)
    return router
