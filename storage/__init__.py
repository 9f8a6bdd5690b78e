import logging

import config
from storage.base import IStorage, StorageError, DuplicateKeyError
from storage.memory import MemStorage
from storage.search import SearchLimits, SearchResults
from storage.sqlite import SqliteStorage

logger = logging.getLogger(__name__)


def create_storage(backend: str = None, db_path: str = None) -> IStorage:
    """Build the backend named by EVCONNECT_STORAGE unless one is given."""
    backend = (backend or config.STORAGE_BACKEND).lower()
    if backend == "memory":
        logger.info("Using in-memory storage")
        return MemStorage()
    if backend == "sqlite":
        return SqliteStorage(db_path or config.DB_PATH)
    raise ValueError(f"Unknown storage backend: {backend}")


__all__ = [
    "IStorage", "StorageError", "DuplicateKeyError",
    "MemStorage", "SqliteStorage",
    "SearchLimits", "SearchResults",
    "create_storage",
]
