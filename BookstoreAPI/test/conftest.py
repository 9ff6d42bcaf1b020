"""
Shared fixtures for the Bookstore API tests.

Repositories are replaced by in-memory fakes, so no MongoDB instance is
needed.
"""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from BookstoreAPI.database.database_manager import DatabaseManager
from BookstoreAPI.main import app
from BookstoreAPI.purchase_history.purchase_history_manager import PurchaseHistoryManager
from BookstoreAPI.test.fakes import FakeBooksRepository, FakeUsersRepository


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def users_repository():
    return FakeUsersRepository()


@pytest.fixture
def books_repository():
    return FakeBooksRepository()


@pytest.fixture
def manager(users_repository, books_repository):
    return PurchaseHistoryManager(users_repository, books_repository)


@pytest.fixture
def sample_book(books_repository):
    """
    A catalog book with a field that is not part of the purchase record schema.
    """
    return books_repository.add(
        title="The Hobbit",
        category="fantasy",
        asin="0261103342",
        price=9.99,
        img="https://example.com/hobbit.jpg"
    )


@pytest.fixture
def sample_user(users_repository):
    return users_repository.add()


@pytest.fixture
def user_with_history(users_repository):
    """
    User with two purchase records, r1 and r2.
    """
    return users_repository.add(purchaseHistory=[
        {"_id": "r1", "title": "A", "category": "novel", "price": 10},
        {"_id": "r2", "title": "B", "category": "essay", "price": 20},
    ])


@pytest.fixture
def mock_db_manager():
    """
    Mock DatabaseManager for the health endpoint.
    """
    db_manager = AsyncMock(spec=DatabaseManager)
    db_manager.is_connected.return_value = True
    return db_manager


@pytest.fixture
def client(users_repository, books_repository, manager, mock_db_manager):
    """
    Test client with the fakes placed where the lifespan would put the
    real collaborators. The lifespan itself does not run.
    """
    app.state.db_manager = mock_db_manager
    app.state.users_repository = users_repository
    app.state.books_repository = books_repository
    app.state.purchase_history_manager = manager
    yield TestClient(app, raise_server_exceptions=False)
