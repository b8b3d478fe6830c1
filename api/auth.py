"""Auth API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from token_auth.dependencies import (
    enforce_login_rate_limit,
    get_current_owner,
    get_token_service,
    get_user_service,
)
from token_auth.schemas import (
    ApiResponse,
    CredentialsRequest,
    RefreshRequest,
    RevokeRequest,
    TokenResponse,
)
from token_auth.services.token_service import IssuedTokens, TokenService
from token_auth.services.user_service import UserService

router = APIRouter()


def _token_payload(tokens: IssuedTokens) -> dict:
    access_expires_in, refresh_expires_in = tokens.expires_in()
    return TokenResponse(
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
        access_expires_in=access_expires_in,
        refresh_expires_in=refresh_expires_in,
        owner_id=tokens.owner_id,
    ).model_dump()


@router.post("/register", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def register(
    payload: CredentialsRequest,
    user_service: UserService = Depends(get_user_service),
) -> ApiResponse:
    user_id = await user_service.register(payload.username, payload.password)
    return ApiResponse(success=True, message="Registration successful", data={"user_id": user_id})


@router.post("/login", response_model=ApiResponse, status_code=status.HTTP_200_OK)
async def login(
    payload: CredentialsRequest,
    _: None = Depends(enforce_login_rate_limit),
    user_service: UserService = Depends(get_user_service),
    token_service: TokenService = Depends(get_token_service),
) -> ApiResponse:
    owner_id = await user_service.authenticate(payload.username, payload.password)
    tokens = await token_service.issue(owner_id)
    return ApiResponse(success=True, message="Login successful", data=_token_payload(tokens))


@router.post("/refresh", response_model=ApiResponse, status_code=status.HTTP_200_OK)
async def refresh(
    payload: RefreshRequest,
    token_service: TokenService = Depends(get_token_service),
) -> ApiResponse:
    tokens = await token_service.rotate(payload.refresh_token, payload.expected_owner_id)
    return ApiResponse(success=True, message="Token refreshed", data=_token_payload(tokens))


@router.post("/revoke", response_model=ApiResponse, status_code=status.HTTP_200_OK)
async def revoke(
    payload: RevokeRequest,
    token_service: TokenService = Depends(get_token_service),
) -> ApiResponse:
    await token_service.revoke(payload.refresh_token)
    return ApiResponse(success=True, message="Token revoked", data={"status": "revoked"})


@router.get("/me", response_model=ApiResponse, status_code=status.HTTP_200_OK)
async def me(owner_id: str = Depends(get_current_owner)) -> ApiResponse:
    return ApiResponse(success=True, message="Authenticated", data={"owner_id": owner_id})
