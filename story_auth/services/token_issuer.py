import secrets
from datetime import timedelta
from typing import Any, Dict, Optional

from jose import ExpiredSignatureError, JWTError, jwt

from story_auth.config import Settings
from story_auth.errors import InvalidTokenSignature, TokenExpired
from story_auth.models.token import RefreshToken
from story_auth.models.user import User
from story_auth.repositories.refresh_tokens import RefreshTokenStore
from story_auth.utils.dates import to_timestamp, utcnow

ACCESS_TOKEN_TTL = timedelta(days=15)
REFRESH_TOKEN_TTL = timedelta(days=15)


class TokenIssuer:
    """
    Builds signed access tokens and store-backed refresh tokens.

    Access tokens are self-contained HS256 JWTs carrying ``id``, ``email``,
    ``role``, ``slug`` and a per-issuance ``jti``. Verification here checks
    signature and expiry only; blacklist membership is the caller's concern.
    """

    def __init__(
        self,
        secret_key: str,
        refresh_tokens: RefreshTokenStore,
        algorithm: str = "HS256",
        access_token_ttl: timedelta = ACCESS_TOKEN_TTL,
        refresh_token_ttl: timedelta = REFRESH_TOKEN_TTL,
    ):
        if not secret_key:
            raise ValueError("A signing secret is required to issue access tokens")
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.access_token_ttl = access_token_ttl
        self.refresh_token_ttl = refresh_token_ttl
        self.refresh_tokens = refresh_tokens

    @classmethod
    def from_settings(cls, settings: Settings, refresh_tokens: RefreshTokenStore) -> "TokenIssuer":
        return cls(
            secret_key=settings.secret_key,
            refresh_tokens=refresh_tokens,
            algorithm=settings.jwt_algorithm,
            access_token_ttl=timedelta(days=settings.access_token_expire_days),
            refresh_token_ttl=timedelta(days=settings.refresh_token_expire_days),
        )

    def issue_access_token(self, user: User) -> str:
        now = utcnow()
        claims = {
            "id": user.id,
            "email": user.email,
            "role": user.role or "user",
            "slug": user.slug or "",
            "jti": secrets.token_hex(16),  # lets a single token be blacklisted
            "iat": to_timestamp(now),
            "exp": to_timestamp(now + self.access_token_ttl),
        }
        return jwt.encode(claims, self.secret_key, algorithm=self.algorithm)

    async def issue_refresh_token(
        self,
        user_id,
        user_agent: str = "",
        ip_address: str = "",
        ttl_seconds: Optional[int] = None,
    ) -> RefreshToken:
        if ttl_seconds is None:
            ttl_seconds = int(self.refresh_token_ttl.total_seconds())
        return await self.refresh_tokens.generate(user_id, user_agent, ip_address, ttl_seconds)

    def verify_access_token(self, token: str) -> Dict[str, Any]:
        try:
            return jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except ExpiredSignatureError as e:
            raise TokenExpired(str(e)) from e
        except JWTError as e:
            raise InvalidTokenSignature(str(e)) from e

    def decode_ignoring_expiry(self, token: str) -> Dict[str, Any]:
        """Signature-checked decode that still returns claims of an expired token."""
        try:
            return jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                options={"verify_exp": False},
            )
        except JWTError as e:
            raise InvalidTokenSignature(str(e)) from e
