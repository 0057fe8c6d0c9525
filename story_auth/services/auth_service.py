"""
Authentication flows for the story platform.

:class:`AuthService` turns register / login / OAuth login / refresh / logout
and profile requests into reads and writes against the user store, the
refresh-token store and the access-token blacklist. It keeps no state of its
own between calls; every failure is raised as :class:`~story_auth.errors.AuthError`
with a stable code for the HTTP layer to map.
"""

import logging
from typing import Any, Dict, Optional

from pymongo.errors import DuplicateKeyError

from story_auth.config import Settings
from story_auth.errors import AuthError, ErrorCode, StoreError, TokenVerificationError
from story_auth.models.token import BlacklistReason, is_expired, is_revoked
from story_auth.models.user import AccountType, User
from story_auth.repositories.refresh_tokens import RefreshTokenStore
from story_auth.repositories.token_blacklist import TokenBlacklist
from story_auth.repositories.users import UserRepository, duplicate_key_field
from story_auth.schemas.auth import ClientInfo
from story_auth.schemas.user import build_user_response
from story_auth.services.password_service import PasswordHasher
from story_auth.services.token_issuer import TokenIssuer
from story_auth.utils.avatars import DEFAULT_EMAIL_AVATAR
from story_auth.utils.dates import from_timestamp, utcnow
from story_auth.utils.logger import EventTypes, log_event
from story_auth.utils.validators import (
    MAX_NAME_LENGTH,
    MIN_PASSWORD_LENGTH,
    collect_social_updates,
    is_valid_email,
)

logger = logging.getLogger(__name__)

REFRESH_TOKEN_TTL_SECONDS = 15 * 24 * 60 * 60
MAX_SAVE_ATTEMPTS = 3
PROFILE_SCALAR_FIELDS = ("name", "avatar", "banner", "gender", "birthday")


class AuthService:
    def __init__(
        self,
        users: UserRepository,
        refresh_tokens: RefreshTokenStore,
        blacklist: TokenBlacklist,
        token_issuer: TokenIssuer,
        password_hasher: PasswordHasher,
        refresh_token_ttl_seconds: int = REFRESH_TOKEN_TTL_SECONDS,
    ):
        self.users = users
        self.refresh_tokens = refresh_tokens
        self.blacklist = blacklist
        self.token_issuer = token_issuer
        self.password_hasher = password_hasher
        self.refresh_token_ttl_seconds = refresh_token_ttl_seconds

    @classmethod
    def from_db(cls, db, settings: Settings) -> "AuthService":
        refresh_tokens = RefreshTokenStore(db, default_ttl_seconds=settings.refresh_token_ttl_seconds)
        return cls(
            users=UserRepository(db),
            refresh_tokens=refresh_tokens,
            blacklist=TokenBlacklist(db),
            token_issuer=TokenIssuer.from_settings(settings, refresh_tokens),
            password_hasher=PasswordHasher(rounds=settings.bcrypt_rounds),
            refresh_token_ttl_seconds=settings.refresh_token_ttl_seconds,
        )

    async def _issue_session(self, user: User, client_info: Optional[ClientInfo]) -> Dict[str, str]:
        client_info = client_info or ClientInfo()
        access_token = self.token_issuer.issue_access_token(user)
        refresh_token = await self.token_issuer.issue_refresh_token(
            user.id,
            client_info.user_agent,
            client_info.ip_address,
            self.refresh_token_ttl_seconds,
        )
        return {"accessToken": access_token, "refreshToken": refresh_token.token}

    async def _save_user(self, user: User) -> None:
        """
        Save ``user``, resolving races on the unique indexes.

        The slug is checked for availability before the write, so a concurrent
        signup with the same name can still take it first; the slug is then
        regenerated and the save retried. A duplicate email means another
        request created the account in the meantime.
        """
        for attempt in range(1, MAX_SAVE_ATTEMPTS + 1):
            try:
                await self.users.save(user)
                return
            except DuplicateKeyError as exc:
                field = duplicate_key_field(exc)
                if field == "email":
                    raise AuthError(ErrorCode.EMAIL_EXISTS)
                if field != "slug":
                    raise
                logger.warning("Slug %s taken concurrently on attempt %s, regenerating", user.slug, attempt)
                user.slug = await self.users.generate_unique_slug(user.name or user.email.split("@")[0])

        raise StoreError("Could not store a user with a unique slug")

    async def register(
        self,
        email: Optional[str] = None,
        password: Optional[str] = None,
        name: Optional[str] = None,
    ) -> Dict[str, Any]:
        if not email or not password:
            raise AuthError(ErrorCode.EMAIL_PASSWORD_REQUIRED)

        email = email.strip()
        if not is_valid_email(email):
            raise AuthError(ErrorCode.INVALID_EMAIL)

        if len(password) < MIN_PASSWORD_LENGTH:
            raise AuthError(ErrorCode.WEAK_PASSWORD)

        if name and len(name) > MAX_NAME_LENGTH:
            raise AuthError(ErrorCode.NAME_TOO_LONG)

        if await self.users.find_by_email(email):
            raise AuthError(ErrorCode.EMAIL_EXISTS)

        display_name = name or email.split("@")[0]
        user = User(
            email=email,
            password=await self.password_hasher.hash(password),
            name=display_name,
            role="user",
            accountType=AccountType.EMAIL.value,
            isActive=True,
            avatar=DEFAULT_EMAIL_AVATAR,
            slug=await self.users.generate_unique_slug(display_name),
        )

        await self._save_user(user)

        log_event(EventTypes.USER_REGISTERED, {"email": user.email}, user_id=user.id)
        return {
            "code": "REGISTER_SUCCESS",
            "message": "Registration successful. Please log in to continue.",
        }

    async def login(
        self,
        email: Optional[str] = None,
        password: Optional[str] = None,
        client_info: Optional[ClientInfo] = None,
    ) -> Dict[str, Any]:
        if not email:
            raise AuthError(ErrorCode.INVALID_INPUT)

        user = await self.users.find_by_email(email)

        # Google accounts sign in without a password; everyone else needs one.
        if not password and (user is None or user.accountType != AccountType.GOOGLE.value):
            raise AuthError(ErrorCode.INVALID_INPUT)

        if user is None:
            log_event(EventTypes.AUTH_FAILED, {"reason": "unknown email"})
            raise AuthError(ErrorCode.INVALID_CREDENTIALS)

        if not user.isActive:
            raise AuthError(ErrorCode.ACCOUNT_DISABLED)

        if user.accountType != AccountType.GOOGLE.value:
            if not await self.password_hasher.verify(password, user.password):
                log_event(EventTypes.AUTH_FAILED, {"reason": "bad password"}, user_id=user.id)
                raise AuthError(ErrorCode.INVALID_CREDENTIALS)
        elif password:
            raise AuthError(ErrorCode.GOOGLE_ACCOUNT)

        tokens = await self._issue_session(user, client_info)

        user.last_active = utcnow()
        await self.users.save(user)

        log_event(
            EventTypes.USER_LOGIN,
            user_id=user.id,
            ip_address=client_info.ip_address if client_info else None,
        )
        return {
            "code": "LOGIN_SUCCESS",
            "message": "Login successful",
            **tokens,
            "user": build_user_response(user),
        }

    async def oauth_login(
        self,
        email: Optional[str] = None,
        name: Optional[str] = None,
        avatar: Optional[str] = None,
        account_type: Optional[str] = None,
        google_id: Optional[str] = None,
        preserve_db_data: Any = None,
        client_info: Optional[ClientInfo] = None,
    ) -> Dict[str, Any]:
        """
        Sign in through an external identity provider.

        Accounts are always resolved by email, never by the provider's id, so
        one email maps to one account whichever way the user signs in. The
        provider id is only recorded in ``metadata.googleId``.
        """
        if not email:
            raise AuthError(ErrorCode.MISSING_EMAIL)

        user = await self.users.find_by_email(email)

        if user is None:
            user = User(
                email=email,
                name=name or "",
                avatar=avatar,
                accountType=account_type or AccountType.GOOGLE.value,
                isActive=True,
            )
            if name:
                user.slug = await self.users.generate_unique_slug(name)
        else:
            if preserve_db_data != "true":
                user.name = name or user.name
                user.avatar = avatar or user.avatar
            user.accountType = account_type or user.accountType or AccountType.GOOGLE.value
            if not user.slug and user.name:
                user.slug = await self.users.generate_unique_slug(user.name)

        if google_id:
            user.metadata = {**(user.metadata or {}), "googleId": google_id}

        await self._save_user(user)
        tokens = await self._issue_session(user, client_info)

        log_event(
            EventTypes.USER_OAUTH_LOGIN,
            {"accountType": user.accountType},
            user_id=user.id,
            ip_address=client_info.ip_address if client_info else None,
        )
        return {
            "code": "LOGIN_SUCCESS",
            "message": "Login successful",
            **tokens,
            "user": build_user_response(user),
        }

    async def refresh_user_token(
        self,
        token: Optional[str],
        client_info: Optional[ClientInfo] = None,
    ) -> Dict[str, Any]:
        """
        Exchange a refresh token for a new access/refresh pair (rotation).

        The consumed record is deleted *before* the new pair is issued. Only
        the caller whose delete actually removed the record may continue, so
        two requests racing on the same token cannot both succeed, and a crash
        between the two steps leaves the user signed out rather than holding
        two live refresh tokens.
        """
        if not token:
            raise AuthError(ErrorCode.MISSING_TOKEN)

        record = await self.refresh_tokens.find_by_token(token)
        if record is None:
            raise AuthError(ErrorCode.INVALID_TOKEN)

        if is_expired(record.expiresAt):
            await self.refresh_tokens.delete_by_token(token)
            raise AuthError(ErrorCode.TOKEN_EXPIRED)

        if is_revoked(record):
            await self.refresh_tokens.delete_by_token(token)
            raise AuthError(ErrorCode.INVALID_TOKEN)

        user = await self.users.find_by_id(record.userId)
        if user is None:
            await self.refresh_tokens.delete_by_token(token)
            raise AuthError(ErrorCode.USER_NOT_FOUND)

        if not user.isActive:
            await self.refresh_tokens.delete_by_token(token)
            raise AuthError(ErrorCode.ACCOUNT_DISABLED)

        if not await self.refresh_tokens.delete_by_token(token):
            logger.warning("Refresh token for user %s was consumed concurrently", user.id)
            raise AuthError(ErrorCode.INVALID_TOKEN)

        tokens = await self._issue_session(user, client_info)

        log_event(EventTypes.TOKEN_REFRESHED, user_id=user.id)
        return {
            "code": "TOKEN_REFRESHED",
            "message": "Token refreshed",
            **tokens,
            "user": build_user_response(user),
        }

    async def logout(
        self,
        access_token: Optional[str] = None,
        refresh_token: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Blacklist the access token and drop the refresh token. Idempotent."""
        if not access_token and not refresh_token:
            raise AuthError(ErrorCode.MISSING_TOKEN)

        user_id = None
        if access_token:
            try:
                claims = self.token_issuer.decode_ignoring_expiry(access_token)
            except TokenVerificationError:
                # a token that never verifies needs no blacklist entry
                logger.debug("Logout with an undecodable access token, nothing to blacklist")
                claims = None

            if claims is not None:
                user_id = claims.get("id")
                if claims.get("exp") is not None:
                    expires_at = from_timestamp(claims["exp"])
                else:
                    expires_at = utcnow() + self.token_issuer.access_token_ttl
                await self.blacklist.add(
                    access_token,
                    expires_at,
                    BlacklistReason.LOGOUT,
                    jti=claims.get("jti"),
                )

        if refresh_token:
            await self.refresh_tokens.delete_by_token(refresh_token)

        log_event(EventTypes.USER_LOGOUT, user_id=user_id)
        return {"code": "LOGOUT_SUCCESS", "message": "Logout successful"}

    async def get_current_user(self, user_id: str) -> Dict[str, Any]:
        user = await self.users.find_by_id(user_id)
        if user is None:
            raise AuthError(ErrorCode.USER_NOT_FOUND)

        return {"code": "GET_PROFILE_SUCCESS", "user": build_user_response(user)}

    async def update_user_profile(self, user_id: str, update_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply a partial profile update.

        Only keys present in ``update_data`` are touched. Social links merge
        field by field, from the nested ``social`` object and then from the
        legacy flat keys. Everything is validated before the single save, so a
        rejected update leaves the stored document as it was.
        """
        user = await self.users.find_by_id(user_id)
        if user is None:
            raise AuthError(ErrorCode.USER_NOT_FOUND)

        update_data = update_data or {}

        for field in PROFILE_SCALAR_FIELDS:
            if field in update_data:
                value = update_data[field]
                if field == "birthday" and value == "":
                    value = None
                setattr(user, field, value)

        for field, value in collect_social_updates(update_data).items():
            setattr(user.social, field, value)

        password_changed = False
        new_password = update_data.get("password")
        current_password = update_data.get("currentPassword")
        if new_password is not None and current_password is not None:
            if user.accountType == AccountType.GOOGLE.value:
                raise AuthError(ErrorCode.GOOGLE_ACCOUNT)

            if not await self.password_hasher.verify(current_password, user.password):
                raise AuthError(ErrorCode.INVALID_CURRENT_PASSWORD)

            if not isinstance(new_password, str) or len(new_password) < MIN_PASSWORD_LENGTH:
                raise AuthError(ErrorCode.WEAK_PASSWORD)

            user.password = await self.password_hasher.hash(new_password)
            password_changed = True

        user.updatedAt = utcnow()
        await self.users.save(user)

        log_event(EventTypes.PROFILE_UPDATED, user_id=user.id)
        if password_changed:
            log_event(EventTypes.PASSWORD_CHANGED, user_id=user.id)

        return {
            "code": "UPDATE_PROFILE_SUCCESS",
            "message": "Profile updated successfully",
            "user": build_user_response(user),
        }
