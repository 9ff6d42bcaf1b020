from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING

from BookstoreAPI.logger.logger import Logger


# ============================================================================
# DATABASE CONNECTION
# ============================================================================

class DatabaseManager:
    """
    Manages the MongoDB connection shared by the users and books repositories.

    This class handles:
    - Connection management
    - Index creation
    - Health checks
    """

    def __init__(self, uri: str, db_name: str, users_collection_name: str, books_collection_name: str):
        """
        Initialize database manager.

        Args:
            uri: MongoDB connection URI
            db_name: Database name
            users_collection_name: Collection name for users
            books_collection_name: Collection name for books
        """
        self.uri = uri
        self.db_name = db_name
        self.users_collection_name = users_collection_name
        self.books_collection_name = books_collection_name
        self.client: Optional[AsyncIOMotorClient] = None
        self.db = None
        self.users = None
        self.books = None
        self.logger = Logger(__name__)

    async def connect(self):
        """
        Establish connection to MongoDB and create indexes.

        Indexes:
        - users.email: For lookups by email
        - books.category: For filtering the catalog by category
        - books.asin: For lookups by ASIN
        """
        try:
            self.logger.info(f"Connecting to MongoDB at {self.uri}")
            self.client = AsyncIOMotorClient(self.uri)
            self.db = self.client[self.db_name]
            self.users = self.db[self.users_collection_name]
            self.books = self.db[self.books_collection_name]

            # Verify connection
            await self.client.admin.command('ping')
            self.logger.info("Successfully connected to MongoDB")

            await self.users.create_index([("email", ASCENDING)])
            await self.books.create_index([("category", ASCENDING)])
            await self.books.create_index([("asin", ASCENDING)])
            self.logger.info("Database indexes created successfully")

        except Exception as e:
            self.logger.error(f"Failed to connect to MongoDB: {e}")
            raise

    async def disconnect(self):
        """Close MongoDB connection."""
        if self.client:
            self.client.close()
            self.logger.info("Disconnected from MongoDB")

    async def is_connected(self) -> bool:
        """
        Check if MongoDB connection is active.

        Returns:
            bool: True if connected, False otherwise
        """
        try:
            if self.client:
                await self.client.admin.command('ping')
                return True
        except Exception as e:
            self.logger.error(f"MongoDB connection check failed: {e}")
        return False
