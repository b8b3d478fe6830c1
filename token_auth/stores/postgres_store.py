"""PostgreSQL user store using SQLAlchemy."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from db.engine import SessionLocal, get_engine
from db.models.user import User
from token_auth.exceptions import StorageError, UserAlreadyExists


def _to_dict(user: User) -> dict[str, Any]:
    return {
        "id": user.id,
        "username": user.username,
        "hashed_password": user.hashed_password,
        "created_at": int(user.created_at.timestamp()) if user.created_at else None,
    }


class PostgresUserStore:
    """User store backed by PostgreSQL.

    SQLAlchemy sessions are synchronous, so each call runs in a worker thread.
    """

    def __init__(self, session_factory: Callable[[], Session] | None = None) -> None:
        self._session_factory = session_factory

    def _get_session(self) -> Session:
        if self._session_factory is not None:
            return self._session_factory()
        return SessionLocal(bind=get_engine())

    def _get_by_username(self, username: str) -> dict | None:
        with self._get_session() as db:
            user = db.execute(
                select(User).where(User.username == username)
            ).scalar_one_or_none()
            return _to_dict(user) if user else None

    def _create_user(self, data: dict) -> dict:
        with self._get_session() as db:
            user = User(
                id=data["id"],
                username=data["username"],
                hashed_password=data["hashed_password"],
            )
            db.add(user)
            try:
                db.commit()
            except IntegrityError as exc:
                db.rollback()
                raise UserAlreadyExists() from exc
            db.refresh(user)
            return _to_dict(user)

    async def get_by_username(self, username: str) -> dict | None:
        try:
            return await asyncio.to_thread(self._get_by_username, username)
        except SQLAlchemyError as exc:
            raise StorageError(message="User storage unavailable", detail=str(exc)) from exc

    async def create_user(self, data: dict) -> dict:
        try:
            return await asyncio.to_thread(self._create_user, data)
        except SQLAlchemyError as exc:
            raise StorageError(message="User storage unavailable", detail=str(exc)) from exc
