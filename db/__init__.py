"""
Database module for the token service.

Provides the SQLAlchemy engine, session factory and the users model.
"""

from db.engine import Base, SessionLocal, get_engine

__all__ = ["Base", "SessionLocal", "get_engine"]
