"""Database package."""
from .database import get_engine, init_db, normalize_database_url

__all__ = [
    "get_engine",
    "init_db",
    "normalize_database_url",
]
