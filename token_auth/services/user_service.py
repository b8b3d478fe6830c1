"""Credential checks against the user store."""

from __future__ import annotations

import asyncio
import logging
from uuid import uuid4

from token_auth.exceptions import InvalidCredentials
from token_auth.interfaces.user_store import UserStore
from token_auth.security import hash_password, verify_password

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, user_store: UserStore) -> None:
        self._users = user_store

    async def register(self, username: str, password: str) -> str:
        """Create a user and return its owner id."""
        hashed = await asyncio.to_thread(hash_password, password)
        user = await self._users.create_user(
            {
                "id": str(uuid4()),
                "username": username,
                "hashed_password": hashed,
            }
        )
        logger.info("User created: %s", user["id"])
        return user["id"]

    async def authenticate(self, username: str, password: str) -> str:
        """Return the owner id for valid credentials.

        Unknown usernames and wrong passwords raise the same InvalidCredentials.
        """
        user = await self._users.get_by_username(username)
        hashed = user.get("hashed_password") if user else None
        if not hashed or not await asyncio.to_thread(verify_password, password, hashed):
            raise InvalidCredentials()
        return user["id"]
