"""Token service configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path

from dotenv import load_dotenv

from token_auth.exceptions import InvalidConfiguration

env_path = Path(__file__).parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path, override=True)
else:
    load_dotenv(override=True)

MIN_SECRET_BYTES = 32
HMAC_ALGORITHMS = {"HS256", "HS384", "HS512"}
STORE_BACKENDS = {
    "refresh_store": {"redis", "memory"},
    "user_store": {"postgres", "memory"},
}


def _parse_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise InvalidConfiguration(detail=f"{name} must be an integer") from exc


def _parse_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise InvalidConfiguration(detail=f"{name} must be a number") from exc


@dataclass(frozen=True)
class TokenConfig:
    """Immutable settings for the token lifecycle engine and its stores."""

    jwt_secret: str = ""
    jwt_algorithm: str = "HS256"
    access_token_ttl: timedelta = timedelta(minutes=5)
    refresh_token_ttl: timedelta = timedelta(minutes=10080)
    refresh_secret_bytes: int = 64

    redis_url: str = "redis://localhost:6379/0"
    redis_key_prefix: str = "refresh:th:"
    redis_socket_timeout: float = 5.0

    # "redis" in production, "memory" for development/testing
    refresh_store: str = "redis"
    # "postgres" in production, "memory" for development/testing
    user_store: str = "postgres"

    login_rate_limit_per_minute: int = 10

    @classmethod
    def from_env(cls) -> TokenConfig:
        return cls(
            jwt_secret=os.getenv("AUTH_JWT_SECRET", ""),
            jwt_algorithm=os.getenv("AUTH_JWT_ALGORITHM", "HS256"),
            access_token_ttl=timedelta(minutes=_parse_int("ACCESS_TOKEN_EXPIRE_MINUTES", 5)),
            refresh_token_ttl=timedelta(
                minutes=_parse_int("REFRESH_TOKEN_EXPIRE_MINUTES", 10080)
            ),
            refresh_secret_bytes=_parse_int("REFRESH_SECRET_BYTES", 64),
            redis_url=os.getenv("REDIS_URL", "redis://localhost:6379/0"),
            redis_key_prefix=os.getenv("REFRESH_KEY_PREFIX", "refresh:th:"),
            redis_socket_timeout=_parse_float("REDIS_SOCKET_TIMEOUT", 5.0),
            refresh_store=os.getenv("REFRESH_STORE", "redis").strip().lower(),
            user_store=os.getenv("USER_STORE", "postgres").strip().lower(),
            login_rate_limit_per_minute=_parse_int("LOGIN_RATE_LIMIT_PER_MINUTE", 10),
        )

    @property
    def refresh_ttl_seconds(self) -> int:
        return int(self.refresh_token_ttl.total_seconds())

    def validate(self) -> None:
        """Raise InvalidConfiguration if any setting is unusable."""
        if len(self.jwt_secret.encode("utf-8")) < MIN_SECRET_BYTES:
            raise InvalidConfiguration(
                detail=f"signing secret must be at least {MIN_SECRET_BYTES} bytes"
            )
        if self.jwt_algorithm not in HMAC_ALGORITHMS:
            raise InvalidConfiguration(
                detail=f"unsupported signing algorithm {self.jwt_algorithm!r}"
            )
        if self.access_token_ttl <= timedelta(0):
            raise InvalidConfiguration(detail="access token TTL must be positive")
        if self.refresh_ttl_seconds <= 0:
            raise InvalidConfiguration(detail="refresh token TTL must be at least one second")
        if self.refresh_secret_bytes < MIN_SECRET_BYTES:
            raise InvalidConfiguration(
                detail=f"refresh secrets must carry at least {MIN_SECRET_BYTES} random bytes"
            )
        for name, allowed in STORE_BACKENDS.items():
            value = getattr(self, name)
            if value not in allowed:
                raise InvalidConfiguration(detail=f"unknown {name} backend {value!r}")
