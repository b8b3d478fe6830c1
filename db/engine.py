"""
SQLAlchemy engine and session factory for the user database.

Usage:
    from db.engine import SessionLocal, get_engine

    with SessionLocal(bind=get_engine()) as db:
        user = db.execute(select(User)).scalar_one_or_none()
"""

from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from config import Config


# Base class for all models
Base = declarative_base()

# Unbound until first use so importing models never needs a database driver
SessionLocal = sessionmaker(autoflush=False)


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    """Create (once) the engine for Config.DATABASE_URL."""
    kwargs = {"pool_pre_ping": True, "echo": Config.DB_ECHO}
    if not Config.DATABASE_URL.startswith("sqlite"):
        kwargs.update(pool_size=Config.DB_POOL_SIZE, max_overflow=Config.DB_MAX_OVERFLOW)
    return create_engine(Config.DATABASE_URL, **kwargs)

