from typing import Optional
import logging

from pymongo import MongoClient
from pymongo.errors import ConnectionFailure

from fxjournal import config
from fxjournal.storage.base import BaseStorage
from fxjournal.storage.memory import MemStorage
from fxjournal.storage.mongo import MongoStorage

logger = logging.getLogger(__name__)


class MongoDB:
    client: MongoClient = None
    db = None

    def connect(self):
        if self.client is not None:
            return

        mongo_uri = config.MONGO_URI
        if not mongo_uri:
            logger.error("MONGO_URI not found in environment variables")
            raise ValueError("MONGO_URI not set")

        try:
            # Add serverSelectionTimeoutMS to avoid long hangs
            self.client = MongoClient(mongo_uri, serverSelectionTimeoutMS=5000)
            self.db = self.client.get_database(config.DB_NAME)

            self.client.admin.command('ping')
            logger.info(f"✅ Connected to MongoDB (DB: {config.DB_NAME})")

        except ConnectionFailure as e:
            logger.error(f"❌ Could not connect to MongoDB: {e}")
            self.client = None
            raise

    def close(self):
        if self.client:
            self.client.close()
            self.client = None
            self.db = None
            logger.info("MongoDB connection closed")


db_client = MongoDB()


def get_db():
    if db_client.db is None:
        db_client.connect()
    return db_client.db


_storage: Optional[BaseStorage] = None


def create_storage(backend: str = None) -> BaseStorage:
    backend = (backend or config.STORAGE_BACKEND).lower()
    if backend == "mongo":
        storage = MongoStorage(get_db())
        storage.ensure_indexes()
        return storage
    if backend != "memory":
        logger.warning(f"Unknown STORAGE_BACKEND '{backend}', falling back to memory")
    return MemStorage()


def get_storage() -> BaseStorage:
    """Process-wide storage instance, also used as a FastAPI dependency"""
    global _storage
    if _storage is None:
        _storage = create_storage()
        logger.info(f"Using {_storage.backend_name} storage")
    return _storage


def reset_storage(storage: BaseStorage = None) -> BaseStorage:
    """Replace the process-wide storage (fresh MemStorage when none is given)"""
    global _storage
    _storage = storage or MemStorage()
    return _storage
