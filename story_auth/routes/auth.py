from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends

from story_auth.schemas.auth import (
    ClientInfo,
    LoginRequest,
    LogoutRequest,
    MessageResponse,
    OAuthLoginRequest,
    ProfileResponse,
    RefreshTokenRequest,
    RegisterRequest,
    TokenResponse,
)
from story_auth.services.auth_service import AuthService
from story_auth.utils.auth import get_auth_service, get_bearer_token, get_client_info, get_current_claims

router = APIRouter()


@router.post("/register", response_model=MessageResponse, status_code=201)
async def register(body: RegisterRequest, auth_service: AuthService = Depends(get_auth_service)):
    return await auth_service.register(email=body.email, password=body.password, name=body.name)


@router.post("/login", response_model=TokenResponse)
async def login(
    body: LoginRequest,
    client_info: ClientInfo = Depends(get_client_info),
    auth_service: AuthService = Depends(get_auth_service),
):
    return await auth_service.login(email=body.email, password=body.password, client_info=client_info)


@router.post("/oauth", response_model=TokenResponse)
# paths older web and mobile clients post to
@router.post("/oauth-login", response_model=TokenResponse, include_in_schema=False)
@router.post("/google-callback", response_model=TokenResponse, include_in_schema=False)
async def oauth_login(
    body: OAuthLoginRequest,
    client_info: ClientInfo = Depends(get_client_info),
    auth_service: AuthService = Depends(get_auth_service),
):
    return await auth_service.oauth_login(
        email=body.email,
        name=body.name,
        avatar=body.avatar,
        account_type=body.accountType,
        google_id=body.googleId,
        preserve_db_data=body.preserve_db_data,
        client_info=client_info,
    )


@router.post("/refresh-token", response_model=TokenResponse)
async def refresh_token(
    body: RefreshTokenRequest,
    client_info: ClientInfo = Depends(get_client_info),
    auth_service: AuthService = Depends(get_auth_service),
):
    return await auth_service.refresh_user_token(body.refreshToken, client_info)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    body: Optional[LogoutRequest] = None,
    access_token: Optional[str] = Depends(get_bearer_token),
    auth_service: AuthService = Depends(get_auth_service),
):
    # No valid access token is required: an expired session must still be able to log out.
    refresh = body.refreshToken if body else None
    return await auth_service.logout(access_token=access_token, refresh_token=refresh)


@router.get("/me", response_model=ProfileResponse)
async def get_me(
    claims: Dict[str, Any] = Depends(get_current_claims),
    auth_service: AuthService = Depends(get_auth_service),
):
    return await auth_service.get_current_user(claims["id"])


@router.post("/update-profile", response_model=ProfileResponse)
async def update_profile(
    update_data: Dict[str, Any] = Body(...),
    claims: Dict[str, Any] = Depends(get_current_claims),
    auth_service: AuthService = Depends(get_auth_service),
):
    return await auth_service.update_user_profile(claims["id"], update_data)
