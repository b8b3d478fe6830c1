"""Redis-backed refresh record store."""

from __future__ import annotations

import redis.asyncio as redis
from redis.exceptions import RedisError

from token_auth.exceptions import InvalidToken, RotationAborted, StorageError

# KEYS[1]=record
# ARGV[1]=owner, ARGV[2]=issued_at, ARGV[3]=ttl seconds
# The hash and its expiry are applied in one evaluation, so no record can
# exist without a TTL.
PUT_REFRESH_SCRIPT = """
if redis.call('EXISTS', KEYS[1]) == 1 then
  return {'new_exists'}
end
redis.call('HSET', KEYS[1], 'owner_id', ARGV[1], 'issued_at', ARGV[2])
redis.call('EXPIRE', KEYS[1], tonumber(ARGV[3]))
return {'ok'}
"""

# KEYS[1]=old record, KEYS[2]=new record
# ARGV[1]=expected owner ("" skips the check), ARGV[2]=issued_at, ARGV[3]=ttl seconds
# The new record is written before the old one is deleted, so an error raised
# by any call below leaves the old record in place.
ROTATE_REFRESH_SCRIPT = """
if redis.call('EXISTS', KEYS[1]) == 0 then
  return {'old_not_found'}
end
local owner = redis.call('HGET', KEYS[1], 'owner_id')
if ARGV[1] ~= '' and owner ~= ARGV[1] then
  return {'user_mismatch'}
end
if redis.call('EXISTS', KEYS[2]) == 1 then
  return {'new_exists'}
end
redis.call('HSET', KEYS[2], 'owner_id', owner, 'issued_at', ARGV[2])
redis.call('EXPIRE', KEYS[2], tonumber(ARGV[3]))
redis.call('DEL', KEYS[1])
return {'ok', owner}
"""


class RedisRefreshStore:
    """Refresh records as Redis hashes keyed by ``<prefix><digest>``.

    Each hash holds ``owner_id`` and ``issued_at`` and carries a key-level
    expiry equal to the refresh TTL. Writes and rotations each run as one Lua
    script, so a record never exists without its TTL and two concurrent
    rotations of the same record cannot both commit.
    """

    def __init__(
        self,
        redis_url: str,
        key_prefix: str = "refresh:th:",
        socket_timeout: float | None = 5.0,
        client: redis.Redis | None = None,
    ) -> None:
        self._prefix = key_prefix
        if client is None:
            client = redis.Redis.from_url(
                redis_url,
                decode_responses=True,
                socket_timeout=socket_timeout,
                socket_connect_timeout=socket_timeout,
            )
        self._client = client

    def _key(self, digest: str) -> str:
        return f"{self._prefix}{digest}"

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except RedisError as exc:
            raise StorageError(detail=f"redis ping failed: {exc}") from exc

    async def put(self, digest: str, owner_id: str, issued_at: int, ttl_seconds: int) -> None:
        try:
            result = await self._client.eval(
                PUT_REFRESH_SCRIPT,
                1,
                self._key(digest),
                owner_id,
                str(int(issued_at)),
                str(int(ttl_seconds)),
            )
        except RedisError as exc:
            raise StorageError(detail=f"refresh record write failed: {exc}") from exc

        status = result[0] if result else None
        if status == RotationAborted.NEW_EXISTS:
            raise StorageError(detail="refresh record already exists for digest")
        if status != "ok":
            raise StorageError(detail=f"unexpected write result {status!r}")

    async def get(self, digest: str) -> str:
        try:
            owner_id = await self._client.hget(self._key(digest), "owner_id")
        except RedisError as exc:
            raise StorageError(detail=f"refresh record read failed: {exc}") from exc
        if not owner_id:
            raise InvalidToken(detail="refresh record not found")
        return owner_id

    async def delete(self, digest: str) -> None:
        try:
            await self._client.delete(self._key(digest))
        except RedisError as exc:
            raise StorageError(detail=f"refresh record delete failed: {exc}") from exc

    async def rotate(
        self,
        old_digest: str,
        new_digest: str,
        expected_owner: str,
        issued_at: int,
        ttl_seconds: int,
    ) -> str:
        try:
            result = await self._client.eval(
                ROTATE_REFRESH_SCRIPT,
                2,
                self._key(old_digest),
                self._key(new_digest),
                expected_owner or "",
                str(int(issued_at)),
                str(int(ttl_seconds)),
            )
        except RedisError as exc:
            raise StorageError(detail=f"refresh rotation failed: {exc}") from exc

        if not result:
            raise StorageError(detail="refresh rotation returned no result")
        status = result[0]
        if status == "ok" and len(result) > 1:
            return result[1]
        if status in {
            RotationAborted.OLD_NOT_FOUND,
            RotationAborted.USER_MISMATCH,
            RotationAborted.NEW_EXISTS,
        }:
            raise RotationAborted(status)
        raise StorageError(detail=f"unexpected rotation result {status!r}")

    async def close(self) -> None:
        await self._client.aclose()
