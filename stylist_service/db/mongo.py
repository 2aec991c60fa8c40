"""
MongoDB Connection Module (v1.4.3)
Shared client for wardrobe, profile and outfit storage.
"""
import logging
import threading

from pymongo import MongoClient
from pymongo.errors import PyMongoError

from stylist_service.config.settings import get_settings

logger = logging.getLogger(__name__)

# Global client
_client = None
_db = None
_lock = threading.Lock()


def connect() -> bool:
    """
    Connect to MongoDB.

    Returns:
        True if connected, False otherwise
    """
    global _client, _db

    settings = get_settings()

    with _lock:
        client = None
        try:
            logger.info(f"Connecting to MongoDB: {settings.mongo_uri[:30]}...")

            client = MongoClient(settings.mongo_uri, serverSelectionTimeoutMS=5000)

            # Test connection
            client.admin.command("ping")

            _client = client
            _db = client[settings.mongo_db_name]

            logger.info(f"Connected to MongoDB database: {settings.mongo_db_name}")
            return True

        except PyMongoError as e:
            logger.warning(f"MongoDB connection failed: {e}")
            if client is not None:
                # Unused client still owns monitor threads
                client.close()
            return False


def get_collection(name: str):
    """Get a MongoDB collection, or None when the store is unreachable."""
    if _db is None:
        connect()

    if _db is None:
        return None

    return _db[name]


def health_check() -> dict:
    """Check MongoDB connection health."""
    try:
        if _client is None:
            connect()

        if _client is not None:
            _client.admin.command("ping")
            return {"status": "connected", "database": get_settings().mongo_db_name}
        else:
            return {"status": "disconnected", "reason": "client not initialized"}

    except PyMongoError as e:
        return {"status": "disconnected", "reason": str(e)}


def reset_connection():
    """Drop the cached client (for testing and settings reloads)."""
    global _client, _db

    with _lock:
        if _client is not None:
            _client.close()
        _client = None
        _db = None
