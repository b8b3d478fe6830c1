"""Token lifecycle engine: issue, validate, rotate and revoke."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone

from token_auth.codec import AccessTokenCodec
from token_auth.config import TokenConfig
from token_auth.exceptions import InvalidToken, RotationAborted, StorageError, TokenGeneration
from token_auth.interfaces.refresh_store import RefreshStore
from token_auth.security import digest, new_raw_secret, new_token_id

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class IssuedTokens:
    """An access token and raw refresh secret that are only valid as a pair."""

    owner_id: str
    access_token: str
    refresh_token: str
    access_expires_at: datetime
    refresh_expires_at: datetime

    def expires_in(self, now: datetime | None = None) -> tuple[int, int]:
        """Seconds until the access and refresh tokens expire."""
        now = now or _utcnow()
        return (
            max(0, int((self.access_expires_at - now).total_seconds())),
            max(0, int((self.refresh_expires_at - now).total_seconds())),
        )


class TokenService:
    """Stateless orchestration over the access token codec and a refresh store.

    Holds only the immutable config, codec and store handle, so one instance
    serves any number of concurrent requests. Concurrent rotations of the same
    refresh secret are serialized by the store's atomic rotate.
    """

    def __init__(
        self,
        config: TokenConfig,
        store: RefreshStore,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        config.validate()
        self._config = config
        self._codec = AccessTokenCodec(
            config.jwt_secret, config.access_token_ttl, algorithm=config.jwt_algorithm
        )
        self._store = store
        self._clock = clock

    @property
    def store(self) -> RefreshStore:
        return self._store

    def _new_refresh_secret(self) -> str:
        return new_raw_secret(self._config.refresh_secret_bytes)

    async def issue(self, owner_id: str) -> IssuedTokens:
        if not owner_id:
            raise TokenGeneration(detail="cannot issue tokens without an owner id")

        now = self._clock()
        raw_refresh = self._new_refresh_secret()
        token_id = new_token_id()
        access_token, access_exp = self._codec.sign(owner_id, now, token_id=token_id)
        # The signed access token is dropped if the refresh record cannot be stored.
        await self._store.put(
            digest(raw_refresh),
            owner_id,
            int(now.timestamp()),
            self._config.refresh_ttl_seconds,
        )
        logger.info("Issued tokens for owner %s (jti %s)", owner_id, token_id)
        return IssuedTokens(
            owner_id=owner_id,
            access_token=access_token,
            refresh_token=raw_refresh,
            access_expires_at=access_exp,
            refresh_expires_at=now + self._config.refresh_token_ttl,
        )

    def validate_access(self, access_token: str) -> str:
        return self._codec.verify(access_token)

    async def validate_refresh(self, raw_refresh: str) -> str:
        if not raw_refresh:
            raise InvalidToken(detail="empty refresh token")
        return await self._store.get(digest(raw_refresh))

    async def rotate(self, raw_refresh: str, expected_owner: str | None = None) -> IssuedTokens:
        """Swap ``raw_refresh`` for a fresh token pair.

        Reuse of an already rotated secret and an owner mismatch both surface
        as InvalidToken so callers cannot tell them apart.
        """
        # Fast-path rejection before any new secret material is generated.
        owner_id = await self.validate_refresh(raw_refresh)
        if expected_owner and owner_id != expected_owner:
            raise InvalidToken(detail="refresh token owner mismatch")

        now = self._clock()
        new_raw = self._new_refresh_secret()
        new_digest = digest(new_raw)
        try:
            owner_id = await self._store.rotate(
                digest(raw_refresh),
                new_digest,
                expected_owner or "",
                int(now.timestamp()),
                self._config.refresh_ttl_seconds,
            )
        except RotationAborted as exc:
            if exc.reason == RotationAborted.NEW_EXISTS:
                raise TokenGeneration(detail="new refresh digest already in use") from exc
            logger.info("Refresh rotation rejected for owner %s", owner_id)
            raise InvalidToken(detail=exc.reason) from exc
        except StorageError as exc:
            logger.error("Refresh rotation failed for owner %s: %s", owner_id, exc.detail)
            await self._discard(new_digest)
            raise

        token_id = new_token_id()
        access_token, access_exp = self._codec.sign(owner_id, now, token_id=token_id)
        logger.info("Rotated refresh token for owner %s (jti %s)", owner_id, token_id)
        return IssuedTokens(
            owner_id=owner_id,
            access_token=access_token,
            refresh_token=new_raw,
            access_expires_at=access_exp,
            refresh_expires_at=now + self._config.refresh_token_ttl,
        )

    async def revoke(self, raw_refresh: str) -> None:
        if not raw_refresh:
            return
        await self._store.delete(digest(raw_refresh))
        logger.info("Revoked refresh token")

    async def _discard(self, new_digest: str) -> None:
        try:
            await self._store.delete(new_digest)
        except StorageError as exc:
            logger.warning("Cleanup after failed rotation did not complete: %s", exc.detail)

    async def close(self) -> None:
        await self._store.close()
