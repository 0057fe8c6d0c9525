import logging
from typing import Any, Dict, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from story_auth.errors import AuthError, ErrorCode, TokenExpired, TokenVerificationError
from story_auth.schemas.auth import ClientInfo
from story_auth.services.auth_service import AuthService

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def get_auth_service(request: Request) -> AuthService:
    return AuthService.from_db(request.app.state.db, request.app.state.settings)


def get_client_info(request: Request) -> ClientInfo:
    return ClientInfo(
        user_agent=request.headers.get("User-Agent", ""),
        ip_address=request.client.host if request.client else "",
    )


def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[str]:
    return credentials.credentials if credentials else None


async def get_current_claims(
    token: Optional[str] = Depends(get_bearer_token),
    auth_service: AuthService = Depends(get_auth_service),
) -> Dict[str, Any]:
    """Claims of a valid, non-blacklisted access token."""
    if not token:
        raise AuthError(ErrorCode.UNAUTHORIZED)

    try:
        claims = auth_service.token_issuer.verify_access_token(token)
    except TokenExpired:
        raise AuthError(ErrorCode.TOKEN_EXPIRED)
    except TokenVerificationError:
        raise AuthError(ErrorCode.INVALID_TOKEN)

    if not claims.get("id"):
        raise AuthError(ErrorCode.INVALID_TOKEN)

    if await auth_service.blacklist.is_blacklisted(token):
        logger.debug("Token %s is blacklisted", claims.get("jti"))
        raise AuthError(ErrorCode.INVALID_TOKEN)

    return claims
