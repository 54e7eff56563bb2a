"""Factory for repository backend creation."""

import logging

from ..config import Config
from .base import BaseRepository
from .memory import InMemoryRepository
from .sqlite import SQLiteRepository

logger = logging.getLogger(__name__)


def get_repository(backend: str | None = None, db_path: str | None = None) -> BaseRepository:
    """Get the configured repository.

    Args:
        backend: Override backend (memory, sqlite). Uses config if not specified.
        db_path: Override SQLite database path.

    Returns:
        Configured repository implementation.
    """
    source = (backend or Config.STORE_BACKEND).lower()

    if source == "sqlite":
        return SQLiteRepository(db_path or Config.get_db_path())

    if source != "memory":
        logger.warning(f"Unknown store backend '{source}', falling back to memory")

    return InMemoryRepository()
