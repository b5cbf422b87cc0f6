"""MongoDB database service for credential and record storage.

Provides functions for connecting to MongoDB, looking up collections and
maintaining the indexes the API relies on for uniqueness.
"""

import logging

from pymongo import ASCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.database import Database

from arithmetic_api.config import get_settings

logger = logging.getLogger(__name__)

# Global MongoDB client instance
_client: MongoClient | None = None


def get_client() -> MongoClient:
    """Get or create the MongoDB client singleton.

    Returns:
        MongoClient instance.
    """
    global _client
    if _client is None:
        settings = get_settings()
        logger.info("Connecting to MongoDB...")
        _client = MongoClient(settings.mongo.uri)
        logger.info("MongoDB connection established")
    return _client


def get_database() -> Database:
    """Get the arithmetic API database.

    Returns:
        Database instance.
    """
    settings = get_settings()
    client = get_client()
    return client[settings.mongo.db_name]


def get_collection(name: str) -> Collection:
    """Get a collection by name from the arithmetic API database.

    Args:
        name: Collection name.

    Returns:
        Collection instance.
    """
    db = get_database()
    return db[name]


def ensure_indexes() -> None:
    """Create the unique indexes on the users collection.

    Creates indexes on:
    - users: (apiKey) for key lookup, unique
    - users: (email) for registration deduplication, unique
    """
    settings = get_settings()
    users_col = get_collection(settings.mongo.users_collection)

    logger.info("Ensuring database indexes...")

    users_col.create_index(
        [("apiKey", ASCENDING)],
        name="api_key_unique",
        unique=True,
    )
    users_col.create_index(
        [("email", ASCENDING)],
        name="email_unique",
        unique=True,
    )

    logger.info("Database indexes created successfully")


def close_client() -> None:
    """Close the MongoDB client connection gracefully."""
    global _client
    if _client is not None:
        logger.info("Closing MongoDB connection...")
        _client.close()
        _client = None
        logger.info("MongoDB connection closed")
