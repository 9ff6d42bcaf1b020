"""
Bookstore API Service

This service is responsible for:
1. CRUD operations on users stored in MongoDB
2. Read access to the book catalog, with filtering and pagination
3. Keeping each user's embedded purchase history in sync with the catalog
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from BookstoreAPI.api import books_routes, users_routes
from BookstoreAPI.config.settings import (
    MONGODB_BOOKS_COLLECTION,
    MONGODB_DB_NAME,
    MONGODB_URI,
    MONGODB_USERS_COLLECTION,
    PORT,
)
from BookstoreAPI.data_model.health import HealthResponse
from BookstoreAPI.database.books_repository import BooksRepository
from BookstoreAPI.database.database_manager import DatabaseManager
from BookstoreAPI.database.users_repository import UsersRepository
from BookstoreAPI.errors.handlers import register_exception_handlers
from BookstoreAPI.logger.logger import Logger
from BookstoreAPI.purchase_history.purchase_history_manager import PurchaseHistoryManager

logger: Logger = Logger(__name__)


# ============================================================================
# APPLICATION LIFECYCLE
# ============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle: startup and shutdown.

    On startup:
    - Connect to MongoDB
    - Build repositories and the purchase history manager

    On shutdown:
    - Disconnect from MongoDB
    """
    # STARTUP
    logger.info("Starting Bookstore API...")

    db_manager = DatabaseManager(MONGODB_URI, MONGODB_DB_NAME, MONGODB_USERS_COLLECTION, MONGODB_BOOKS_COLLECTION)
    await db_manager.connect()

    users_repository = UsersRepository(db_manager.users)
    books_repository = BooksRepository(db_manager.books)

    app.state.db_manager = db_manager
    app.state.users_repository = users_repository
    app.state.books_repository = books_repository
    app.state.purchase_history_manager = PurchaseHistoryManager(users_repository, books_repository)

    logger.info("Bookstore API started successfully")

    yield

    # SHUTDOWN
    logger.info("Shutting down Bookstore API...")
    await db_manager.disconnect()
    logger.info("Bookstore API shutdown complete")


# ============================================================================
# FASTAPI APPLICATION
# ============================================================================

def create_app() -> FastAPI:
    """
    Build the application: exception handlers and the route tables are
    registered once, here.
    """
    app = FastAPI(
        title="Bookstore API",
        description="Users, book catalog and embedded purchase history on MongoDB",
        version="1.0.0",
        lifespan=lifespan
    )

    register_exception_handlers(app)

    app.add_api_route("/", root, methods=["GET"], response_model=dict)
    app.add_api_route("/health", health_check, methods=["GET"], response_model=HealthResponse)
    app.include_router(users_routes.build_router())
    app.include_router(books_routes.build_router())
    return app


# ============================================================================
# SERVICE ENDPOINTS
# ============================================================================

async def root():
    """
    Root endpoint providing API information.
    """
    return {
        "service": "Bookstore API",
        "version": "1.0.0",
        "endpoints": {
            "health": "/health",
            "users": "/users",
            "purchaseHistory": "/users/{userId}/purchaseHistory",
            "books": "/books"
        }
    }


async def health_check(request: Request):
    """
    Health check endpoint for liveness and readiness probes.

    Returns:
        200 OK if MongoDB answers a ping
        503 Service Unavailable otherwise
    """
    db_manager = getattr(request.app.state, "db_manager", None)
    mongodb_connected = await db_manager.is_connected() if db_manager else False

    response = HealthResponse(
        status="healthy" if mongodb_connected else "unhealthy",
        service="BookstoreAPI",
        mongodb_connected=mongodb_connected,
        timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
    )

    status_code = status.HTTP_200_OK if mongodb_connected else status.HTTP_503_SERVICE_UNAVAILABLE

    return JSONResponse(
        status_code=status_code,
        content=response.model_dump()
    )


app = create_app()


# ============================================================================
# MAIN ENTRY POINT
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "BookstoreAPI.main:app",
        host="0.0.0.0",
        port=PORT,
        log_level="info"
    )
