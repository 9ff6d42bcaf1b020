"""
API Tests for the Bookstore API

Tests cover:
1. Service endpoints
2. Users CRUD
3. Purchase history endpoints
4. Books listing
5. Error handling

Run with: pytest -v test_api.py
"""

from unittest.mock import AsyncMock

from bson import ObjectId
from pymongo.errors import ServerSelectionTimeoutError


def new_user_body(**overrides):
    body = {
        "firstName": "Grace",
        "lastName": "Hopper",
        "email": "grace@example.com",
        "dateOfBirth": "1906-12-09T00:00:00",
        "age": 85,
        "address": {"street": "Navy Road", "number": 1},
        "professions": ["admiral", "programmer"]
    }
    body.update(overrides)
    return body


# ============================================================================
# SERVICE ENDPOINT TESTS
# ============================================================================

class TestServiceEndpoints:

    def test_root_endpoint(self, client):
        """Test root endpoint returns API information."""
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["service"] == "Bookstore API"

    def test_health_endpoint_healthy(self, client):
        response = client.get("/health")
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "healthy"
        assert data["mongodb_connected"] is True

    def test_health_endpoint_unhealthy(self, client, mock_db_manager):
        mock_db_manager.is_connected.return_value = False

        response = client.get("/health")
        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"


# ============================================================================
# USERS TESTS
# ============================================================================

class TestUsers:

    def test_create_user(self, client, users_repository):
        response = client.post("/users", json=new_user_body())
        assert response.status_code == 201

        user_id = response.json()["_id"]
        assert users_repository.users[user_id]["firstName"] == "Grace"
        assert users_repository.users[user_id]["purchaseHistory"] == []

    def test_create_user_missing_required_field(self, client, users_repository):
        body = new_user_body()
        del body["lastName"]

        response = client.post("/users", json=body)

        assert response.status_code == 400
        data = response.json()
        assert data["error_code"] == "VALIDATION_ERROR"
        assert any("lastName" in error["field"] for error in data["errors"])
        assert users_repository.users == {}

    def test_create_user_wrong_type(self, client):
        response = client.post("/users", json=new_user_body(age="very old"))
        assert response.status_code == 400

    def test_list_users(self, client, sample_user):
        response = client.get("/users")
        assert response.status_code == 200
        assert [user["_id"] for user in response.json()] == [sample_user["_id"]]

    def test_get_user(self, client, sample_user):
        response = client.get(f"/users/{sample_user['_id']}")
        assert response.status_code == 200

        data = response.json()
        assert data["firstName"] == "Ada"
        assert data["purchaseHistory"] == []
        assert "createdAt" in data

    def test_get_user_not_found(self, client):
        user_id = str(ObjectId())
        response = client.get(f"/users/{user_id}")

        assert response.status_code == 404
        assert response.json()["detail"] == f"User with id {user_id} not found!"

    def test_update_user(self, client, sample_user):
        response = client.put(f"/users/{sample_user['_id']}", json={"age": 35, "professions": ["poet"]})

        assert response.status_code == 200
        data = response.json()
        assert data["age"] == 35
        assert data["professions"] == ["poet"]
        assert data["firstName"] == "Ada"

    def test_update_user_null_required_field(self, client, sample_user):
        response = client.put(f"/users/{sample_user['_id']}", json={"email": None})
        assert response.status_code == 400

    def test_update_user_not_found(self, client):
        response = client.put(f"/users/{ObjectId()}", json={"age": 35})
        assert response.status_code == 404

    def test_delete_user(self, client, users_repository, sample_user):
        response = client.delete(f"/users/{sample_user['_id']}")

        assert response.status_code == 204
        assert response.content == b""
        assert sample_user["_id"] not in users_repository.users

    def test_delete_user_not_found(self, client):
        response = client.delete(f"/users/{ObjectId()}")
        assert response.status_code == 404


# ============================================================================
# PURCHASE HISTORY TESTS
# ============================================================================

class TestPurchaseHistory:

    def test_add_purchase(self, client, sample_user, sample_book):
        response = client.post(
            f"/users/{sample_user['_id']}/purchaseHistory",
            json={"bookId": sample_book["_id"]}
        )

        assert response.status_code == 200
        history = response.json()["purchaseHistory"]
        assert len(history) == 1
        assert history[0]["title"] == "The Hobbit"
        assert history[0]["_id"] != sample_book["_id"]
        assert history[0]["purchaseDate"]

    def test_add_purchase_unknown_book(self, client, users_repository, sample_user):
        book_id = str(ObjectId())
        response = client.post(f"/users/{sample_user['_id']}/purchaseHistory", json={"bookId": book_id})

        assert response.status_code == 404
        assert response.json()["detail"] == f"Book with id {book_id} not found!"
        assert users_repository.users[sample_user["_id"]]["purchaseHistory"] == []

    def test_add_purchase_unknown_user(self, client, sample_book):
        response = client.post(f"/users/{ObjectId()}/purchaseHistory", json={"bookId": sample_book["_id"]})

        assert response.status_code == 404
        assert response.json()["detail"].startswith("User with id")

    def test_add_purchase_missing_book_id(self, client, sample_user):
        response = client.post(f"/users/{sample_user['_id']}/purchaseHistory", json={})
        assert response.status_code == 400

    def test_list_purchases(self, client, user_with_history):
        response = client.get(f"/users/{user_with_history['_id']}/purchaseHistory")

        assert response.status_code == 200
        assert [record["_id"] for record in response.json()] == ["r1", "r2"]

    def test_list_purchases_unknown_user(self, client):
        response = client.get(f"/users/{ObjectId()}/purchaseHistory")
        assert response.status_code == 404

    def test_get_purchase(self, client, user_with_history):
        response = client.get(f"/users/{user_with_history['_id']}/purchaseHistory/r2")

        assert response.status_code == 200
        assert response.json()["title"] == "B"

    def test_get_purchase_not_found(self, client, user_with_history):
        response = client.get(f"/users/{user_with_history['_id']}/purchaseHistory/r9")

        assert response.status_code == 404
        assert response.json()["detail"] == "PurchaseRecord with id r9 not found!"

    def test_update_purchase(self, client, user_with_history):
        response = client.put(
            f"/users/{user_with_history['_id']}/purchaseHistory/r1",
            json={"price": 12, "_id": "other"}
        )

        assert response.status_code == 200
        record = response.json()["purchaseHistory"][0]
        assert record["_id"] == "r1"
        assert record["title"] == "A"
        assert record["price"] == 12

    def test_update_purchase_null_field(self, client, user_with_history):
        response = client.put(f"/users/{user_with_history['_id']}/purchaseHistory/r1", json={"price": None})

        assert response.status_code == 200
        record = response.json()["purchaseHistory"][0]
        assert record["price"] is None
        assert record["title"] == "A"

    def test_update_purchase_ignores_purchase_date(self, client, users_repository, user_with_history):
        response = client.put(
            f"/users/{user_with_history['_id']}/purchaseHistory/r1",
            json={"purchaseDate": "2000-01-01T00:00:00Z", "price": 11}
        )

        assert response.status_code == 200
        stored = users_repository.users[user_with_history["_id"]]["purchaseHistory"][0]
        assert "purchaseDate" not in stored
        assert stored["price"] == 11

    def test_update_purchase_not_found(self, client, user_with_history):
        response = client.put(f"/users/{user_with_history['_id']}/purchaseHistory/r9", json={"price": 12})
        assert response.status_code == 404

    def test_update_purchase_unknown_user(self, client):
        response = client.put(f"/users/{ObjectId()}/purchaseHistory/r1", json={"price": 12})
        assert response.status_code == 404
        assert response.json()["detail"].startswith("User with id")

    def test_remove_purchase(self, client, user_with_history):
        response = client.delete(f"/users/{user_with_history['_id']}/purchaseHistory/r1")

        assert response.status_code == 200
        assert [record["_id"] for record in response.json()["purchaseHistory"]] == ["r2"]

    def test_remove_unknown_purchase_is_noop(self, client, user_with_history):
        response = client.delete(f"/users/{user_with_history['_id']}/purchaseHistory/r9")

        assert response.status_code == 200
        assert len(response.json()["purchaseHistory"]) == 2

    def test_remove_purchase_unknown_user(self, client):
        response = client.delete(f"/users/{ObjectId()}/purchaseHistory/r1")
        assert response.status_code == 404


# ============================================================================
# BOOKS TESTS
# ============================================================================

class TestBooks:

    def test_list_books(self, client, books_repository):
        for i in range(3):
            books_repository.add(title=f"Book {i}", category="fantasy", price=10 + i)

        response = client.get("/books?limit=2")

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 3
        assert data["totalPages"] == 2
        assert len(data["books"]) == 2
        assert data["links"]["next"].endswith("/books?skip=2&limit=2")
        assert "prev" not in data["links"]

    def test_list_books_passes_query_to_store(self, client, books_repository):
        books_repository.count = AsyncMock(return_value=0)
        books_repository.find = AsyncMock(return_value=[])

        response = client.get("/books?category=fantasy&sort=-price&skip=5&limit=5")

        assert response.status_code == 200
        books_repository.count.assert_awaited_once_with({"category": "fantasy"})
        books_repository.find.assert_awaited_once_with(
            {"category": "fantasy"}, fields={}, sort=[("price", -1)], skip=5, limit=5
        )

    def test_list_books_bad_query(self, client):
        response = client.get("/books?limit=abc")
        assert response.status_code == 400

    def test_get_book(self, client, sample_book):
        response = client.get(f"/books/{sample_book['_id']}")

        assert response.status_code == 200
        data = response.json()
        assert data["title"] == "The Hobbit"
        assert data["img"] == "https://example.com/hobbit.jpg"

    def test_get_book_not_found(self, client):
        response = client.get(f"/books/{ObjectId()}")
        assert response.status_code == 404


# ============================================================================
# ERROR HANDLING TESTS
# ============================================================================

class TestErrorHandling:

    def test_database_error(self, client, users_repository):
        """Test store failures are reported as a server error."""
        users_repository.list = AsyncMock(side_effect=ServerSelectionTimeoutError("no servers"))

        response = client.get("/users")

        assert response.status_code == 500
        assert response.json()["error_code"] == "DATABASE_ERROR"

    def test_unexpected_error(self, client, users_repository):
        users_repository.get = AsyncMock(side_effect=RuntimeError("boom"))

        response = client.get(f"/users/{ObjectId()}")

        assert response.status_code == 500
        assert response.json()["detail"] == "Internal server error"
