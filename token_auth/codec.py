"""Signed access token codec."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from jose import ExpiredSignatureError, JWTError, jwt

from token_auth.config import HMAC_ALGORITHMS, MIN_SECRET_BYTES
from token_auth.exceptions import InvalidConfiguration, InvalidToken, TokenExpired, TokenGeneration
from token_auth.security import new_token_id

ACCESS_TOKEN_TYPE = "access"


class AccessTokenCodec:
    """Builds and verifies HMAC-signed, time-bounded access claims.

    The secret and TTL are fixed at construction; the instance holds no other
    state and is safe to share between concurrent requests.
    """

    def __init__(self, secret: str, access_ttl: timedelta, algorithm: str = "HS256") -> None:
        if len(secret.encode("utf-8")) < MIN_SECRET_BYTES:
            raise InvalidConfiguration(
                detail=f"signing secret must be at least {MIN_SECRET_BYTES} bytes"
            )
        if algorithm not in HMAC_ALGORITHMS:
            raise InvalidConfiguration(detail=f"unsupported signing algorithm {algorithm!r}")
        self._secret = secret
        self._access_ttl = access_ttl
        self._algorithm = algorithm

    @property
    def access_ttl(self) -> timedelta:
        return self._access_ttl

    def sign(
        self, owner_id: str, now: datetime, token_id: str | None = None
    ) -> tuple[str, datetime]:
        """Return a signed access token for ``owner_id`` and its expiry.

        ``token_id`` becomes the ``jti`` claim; a fresh one is drawn when omitted.
        """
        expires_at = now + self._access_ttl
        claims: dict[str, Any] = {
            "sub": owner_id,
            "type": ACCESS_TOKEN_TYPE,
            "jti": token_id or new_token_id(),
            "iat": now,
            "nbf": now,
            "exp": expires_at,
        }
        try:
            token = jwt.encode(claims, self._secret, algorithm=self._algorithm)
        except JWTError as exc:
            raise TokenGeneration(detail=f"signing failed: {exc}") from exc
        return token, expires_at

    def verify(self, token: str) -> str:
        """Return the owner id of a valid access token.

        Raises TokenExpired when the signature checks out but ``exp`` has
        passed, InvalidToken for everything else.
        """
        if not token:
            raise InvalidToken(detail="empty access token")
        try:
            header = jwt.get_unverified_header(token)
        except JWTError as exc:
            raise InvalidToken(detail="malformed token header") from exc
        if header.get("alg") != self._algorithm:
            raise InvalidToken(detail=f"unexpected algorithm {header.get('alg')!r}")

        try:
            claims = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except ExpiredSignatureError as exc:
            raise TokenExpired(detail="access token expired") from exc
        except JWTError as exc:
            raise InvalidToken(detail=str(exc)) from exc

        if claims.get("type") != ACCESS_TOKEN_TYPE:
            raise InvalidToken(detail="wrong token kind")
        owner_id = claims.get("sub")
        if not owner_id or not isinstance(owner_id, str):
            raise InvalidToken(detail="missing subject")
        return owner_id
