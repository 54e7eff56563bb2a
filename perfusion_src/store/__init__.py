"""Repository backends for cases and medication records.

- InMemoryRepository: process-local, the default
- SQLiteRepository: durable storage in a single database file
"""

from .base import BaseRepository
from .factory import get_repository
from .memory import InMemoryRepository
from .sqlite import SQLiteRepository

__all__ = [
    "BaseRepository",
    "InMemoryRepository",
    "SQLiteRepository",
    "get_repository",
]
