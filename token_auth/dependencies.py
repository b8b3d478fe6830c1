"""Auth dependency helpers."""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from token_auth.config import TokenConfig
from token_auth.exceptions import InvalidToken
from token_auth.interfaces.rate_limiter import RateLimiter
from token_auth.interfaces.refresh_store import RefreshStore
from token_auth.interfaces.user_store import UserStore
from token_auth.services.token_service import TokenService
from token_auth.services.user_service import UserService
from token_auth.stores.memory_store import MemoryRateLimiter, MemoryRefreshStore, MemoryUserStore

_bearer = HTTPBearer(auto_error=False)


def create_refresh_store(config: TokenConfig) -> RefreshStore:
    """Refresh store selected by config.refresh_store."""
    if config.refresh_store == "redis":
        from token_auth.stores.redis_store import RedisRefreshStore

        return RedisRefreshStore(
            config.redis_url,
            key_prefix=config.redis_key_prefix,
            socket_timeout=config.redis_socket_timeout,
        )
    # In-process store for development/testing
    return MemoryRefreshStore()


def create_user_store(config: TokenConfig) -> UserStore:
    """User store selected by config.user_store."""
    if config.user_store == "postgres":
        from token_auth.stores.postgres_store import PostgresUserStore

        return PostgresUserStore()
    return MemoryUserStore()


def init_services(app_state, config: TokenConfig) -> None:
    """Build the per-process services once and attach them to ``app.state``."""
    app_state.token_config = config
    app_state.token_service = TokenService(config, create_refresh_store(config))
    app_state.user_service = UserService(create_user_store(config))
    app_state.rate_limiter = MemoryRateLimiter()


def get_token_config(request: Request) -> TokenConfig:
    return request.app.state.token_config


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_user_service(request: Request) -> UserService:
    return request.app.state.user_service


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


async def enforce_login_rate_limit(
    request: Request,
    limiter: RateLimiter = Depends(get_rate_limiter),
    config: TokenConfig = Depends(get_token_config),
) -> None:
    client_ip = request.client.host if request.client else "unknown"
    key = f"login:{client_ip}"
    allowed = await limiter.allow(key, config.login_rate_limit_per_minute, 60)
    if not allowed:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail="Too many login attempts"
        )


def get_current_owner(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
    token_service: TokenService = Depends(get_token_service),
) -> str:
    """Owner id from a valid ``Authorization: Bearer`` access token."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise InvalidToken(message="Not authenticated", detail="missing bearer token")
    return token_service.validate_access(credentials.credentials)
