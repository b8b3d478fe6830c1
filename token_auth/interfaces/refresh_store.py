"""Refresh record store interface."""

from __future__ import annotations

from typing import Protocol


class RefreshStore(Protocol):
    """Persistence of {digest -> owner, issued_at} with a per-record TTL.

    Implementations raise StorageError for backend faults and
    RotationAborted when the atomic rotation refuses to commit.
    """

    async def put(self, digest: str, owner_id: str, issued_at: int, ttl_seconds: int) -> None:
        ...

    async def get(self, digest: str) -> str:
        ...

    async def delete(self, digest: str) -> None:
        ...

    async def rotate(
        self,
        old_digest: str,
        new_digest: str,
        expected_owner: str,
        issued_at: int,
        ttl_seconds: int,
    ) -> str:
        ...

    async def ping(self) -> bool:
        ...

    async def close(self) -> None:
        ...
