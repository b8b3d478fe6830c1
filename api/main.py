"""
FastAPI application for the token service.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import HTTPException, RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from api.auth import router as auth_router
from api.handlers import (
    auth_exception_handler,
    general_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from config import Config
from token_auth.config import TokenConfig
from token_auth.dependencies import init_services
from token_auth.exceptions import AuthException

logger = logging.getLogger(__name__)


def create_app(token_config: TokenConfig | None = None) -> FastAPI:
    """Build the app; token settings are read from the environment unless given."""
    Config.validate()
    logging.basicConfig(
        level=Config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    token_config = token_config or TokenConfig.from_env()
    # Fails fast on a weak signing secret before anything is served.
    token_config.validate()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup/shutdown."""
        logger.info(
            "Starting token service (refresh store: %s, user store: %s)",
            token_config.refresh_store,
            token_config.user_store,
        )
        init_services(app.state, token_config)
        await app.state.token_service.store.ping()
        yield
        logger.info("Shutting down token service...")
        await app.state.token_service.close()

    app = FastAPI(
        title="Token Service API",
        description="Access token issuance and refresh token rotation",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=Config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(AuthException, auth_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    app.include_router(auth_router, prefix="/api/v1/auth", tags=["auth"])

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok"}

    return app
