import os

# ============================================================================
# CONFIGURATION
# ============================================================================


# Environment variables with defaults for local development
MONGODB_URI = os.getenv("MONGODB_URI", "mongodb://localhost:27017")
MONGODB_DB_NAME = os.getenv("MONGODB_DB_NAME", "bookstore")
MONGODB_USERS_COLLECTION = os.getenv("MONGODB_USERS_COLLECTION", "users")
MONGODB_BOOKS_COLLECTION = os.getenv("MONGODB_BOOKS_COLLECTION", "books")

# Used to build absolute pagination links for the books listing
PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "http://localhost:3001")

BOOKS_PAGE_SIZE = int(os.getenv("BOOKS_PAGE_SIZE", "10"))
BOOKS_MAX_PAGE_SIZE = int(os.getenv("BOOKS_MAX_PAGE_SIZE", "100"))

PORT = int(os.getenv("PORT", "3001"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
