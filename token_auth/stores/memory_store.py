"""In-memory stores for development and testing."""

from __future__ import annotations

import asyncio
import time
from typing import Any, Callable

from token_auth.exceptions import InvalidToken, RotationAborted, StorageError, UserAlreadyExists


class MemoryRefreshStore:
    """Refresh records in a dict, serialized by one asyncio lock.

    Expiry is enforced lazily against ``clock`` so tests can move time
    forward without sleeping.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._lock = asyncio.Lock()
        self._clock = clock
        self._records: dict[str, dict[str, Any]] = {}

    def _live(self, digest: str) -> dict[str, Any] | None:
        record = self._records.get(digest)
        if record is None:
            return None
        if record["expires_at"] <= self._clock():
            del self._records[digest]
            return None
        return record

    async def put(self, digest: str, owner_id: str, issued_at: int, ttl_seconds: int) -> None:
        async with self._lock:
            if self._live(digest) is not None:
                raise StorageError(detail="refresh record already exists for digest")
            self._records[digest] = {
                "owner_id": owner_id,
                "issued_at": int(issued_at),
                "expires_at": self._clock() + ttl_seconds,
            }

    async def get(self, digest: str) -> str:
        async with self._lock:
            record = self._live(digest)
            if record is None:
                raise InvalidToken(detail="refresh record not found")
            return record["owner_id"]

    async def delete(self, digest: str) -> None:
        async with self._lock:
            self._records.pop(digest, None)

    async def rotate(
        self,
        old_digest: str,
        new_digest: str,
        expected_owner: str,
        issued_at: int,
        ttl_seconds: int,
    ) -> str:
        async with self._lock:
            old = self._live(old_digest)
            if old is None:
                raise RotationAborted(RotationAborted.OLD_NOT_FOUND)
            owner_id = old["owner_id"]
            if expected_owner and owner_id != expected_owner:
                raise RotationAborted(RotationAborted.USER_MISMATCH)
            if self._live(new_digest) is not None:
                raise RotationAborted(RotationAborted.NEW_EXISTS)
            self._records[new_digest] = {
                "owner_id": owner_id,
                "issued_at": int(issued_at),
                "expires_at": self._clock() + ttl_seconds,
            }
            del self._records[old_digest]
            return owner_id

    async def snapshot(self) -> dict[str, dict[str, Any]]:
        """Copy of the live records, keyed by digest."""
        async with self._lock:
            for digest in list(self._records):
                self._live(digest)
            return {digest: dict(record) for digest, record in self._records.items()}

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        return None


class MemoryUserStore:
    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._users_by_username: dict[str, dict[str, Any]] = {}

    async def get_by_username(self, username: str) -> dict | None:
        async with self._lock:
            user = self._users_by_username.get(username)
            return dict(user) if user else None

    async def create_user(self, data: dict) -> dict:
        async with self._lock:
            if data["username"] in self._users_by_username:
                raise UserAlreadyExists()
            payload = dict(data)
            payload["created_at"] = payload.get("created_at", int(time.time()))
            self._users_by_username[payload["username"]] = payload
            return dict(payload)


class MemoryRateLimiter:
    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._lock = asyncio.Lock()
        self._clock = clock
        self._hits: dict[str, list[float]] = {}

    async def allow(self, key: str, limit: int, window_seconds: int) -> bool:
        now = self._clock()
        async with self._lock:
            # Keys whose newest hit has left the window carry no state.
            stale = [
                name
                for name, stamps in self._hits.items()
                if not stamps or now - stamps[-1] >= window_seconds
            ]
            for name in stale:
                del self._hits[name]

            hits = [stamp for stamp in self._hits.get(key, []) if (now - stamp) < window_seconds]
            if len(hits) >= limit:
                if hits:
                    self._hits[key] = hits
                return False
            hits.append(now)
            self._hits[key] = hits
            return True
