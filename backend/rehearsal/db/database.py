"""Database setup and engine management."""
import logging
from functools import lru_cache

from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine

from rehearsal import models  # noqa: F401  (registers table metadata)
from rehearsal.config import settings


logger = logging.getLogger(__name__)


def normalize_database_url(url: str) -> str:
    """Route plain postgresql:// URLs through the psycopg 3 driver."""
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+psycopg://", 1)
    return url


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    """Process-wide SQLAlchemy engine built from settings."""
    return create_engine(
        normalize_database_url(settings.database_url),
        echo=False,
        pool_pre_ping=True,
    )


def init_db(engine: Engine | None = None) -> None:
    """Initialize the database tables."""
    SQLModel.metadata.create_all(engine or get_engine())
    logger.info("Database tables created")
