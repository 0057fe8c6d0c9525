"""
Typed failures raised by the auth core.

Every failure carries a stable machine-readable ``code`` and a human-readable
message; the HTTP layer maps the code to a status via :data:`STATUS_BY_CODE`.
"""

from typing import Optional


class ErrorCode:
    # registration
    EMAIL_PASSWORD_REQUIRED = "EMAIL_PASSWORD_REQUIRED"
    INVALID_EMAIL = "INVALID_EMAIL"
    WEAK_PASSWORD = "WEAK_PASSWORD"
    NAME_TOO_LONG = "NAME_TOO_LONG"
    EMAIL_EXISTS = "EMAIL_EXISTS"

    # login
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    ACCOUNT_DISABLED = "ACCOUNT_DISABLED"
    GOOGLE_ACCOUNT = "GOOGLE_ACCOUNT"

    # oauth
    MISSING_EMAIL = "MISSING_EMAIL"

    # refresh / logout / session
    MISSING_TOKEN = "MISSING_TOKEN"
    INVALID_TOKEN = "INVALID_TOKEN"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    UNAUTHORIZED = "UNAUTHORIZED"

    # profile update
    INVALID_CURRENT_PASSWORD = "INVALID_CURRENT_PASSWORD"
    BIO_TOO_LONG = "BIO_TOO_LONG"
    INVALID_FACEBOOK_URL = "INVALID_FACEBOOK_URL"
    INVALID_TWITTER_URL = "INVALID_TWITTER_URL"
    INVALID_INSTAGRAM_URL = "INVALID_INSTAGRAM_URL"
    INVALID_YOUTUBE_URL = "INVALID_YOUTUBE_URL"
    INVALID_WEBSITE_URL = "INVALID_WEBSITE_URL"

    SERVER_ERROR = "SERVER_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"


MESSAGES = {
    ErrorCode.EMAIL_PASSWORD_REQUIRED: "Email and password are required",
    ErrorCode.INVALID_EMAIL: "Email address is not valid",
    ErrorCode.WEAK_PASSWORD: "Password must be at least 8 characters long",
    ErrorCode.NAME_TOO_LONG: "Name must be at most 20 characters long",
    ErrorCode.EMAIL_EXISTS: "Email is already registered",
    ErrorCode.INVALID_INPUT: "Email and password are required",
    ErrorCode.INVALID_CREDENTIALS: "Email or password is incorrect",
    ErrorCode.ACCOUNT_DISABLED: "Account has been disabled",
    ErrorCode.GOOGLE_ACCOUNT: "This account signs in with Google and has no password",
    ErrorCode.MISSING_EMAIL: "Email is required",
    ErrorCode.MISSING_TOKEN: "Token must not be empty",
    ErrorCode.INVALID_TOKEN: "Token is not valid",
    ErrorCode.TOKEN_EXPIRED: "Token has expired",
    ErrorCode.USER_NOT_FOUND: "User not found",
    ErrorCode.UNAUTHORIZED: "Authentication required",
    ErrorCode.INVALID_CURRENT_PASSWORD: "Current password is incorrect",
    ErrorCode.BIO_TOO_LONG: "Bio must be at most 200 characters long",
    ErrorCode.INVALID_FACEBOOK_URL: "Facebook link must be a facebook.com or fb.com URL",
    ErrorCode.INVALID_TWITTER_URL: "Twitter link must be a twitter.com or x.com URL",
    ErrorCode.INVALID_INSTAGRAM_URL: "Instagram link must be an instagram.com URL",
    ErrorCode.INVALID_YOUTUBE_URL: "YouTube link must be a youtube.com or youtu.be URL",
    ErrorCode.INVALID_WEBSITE_URL: "Website must be a valid URL",
    ErrorCode.SERVER_ERROR: "Server error, please try again later",
    ErrorCode.VALIDATION_ERROR: "Request data is not valid",
}

STATUS_BY_CODE = {
    ErrorCode.INVALID_CREDENTIALS: 401,
    ErrorCode.INVALID_TOKEN: 401,
    ErrorCode.TOKEN_EXPIRED: 401,
    ErrorCode.UNAUTHORIZED: 401,
    ErrorCode.ACCOUNT_DISABLED: 403,
    ErrorCode.USER_NOT_FOUND: 404,
    ErrorCode.VALIDATION_ERROR: 422,
    ErrorCode.SERVER_ERROR: 500,
}


class AuthError(Exception):
    """A validation or state failure detected by the auth core."""

    def __init__(self, code: str, message: Optional[str] = None):
        self.code = code
        self.message = message or MESSAGES.get(code, code)
        super().__init__(code)

    @property
    def status_code(self) -> int:
        return STATUS_BY_CODE.get(self.code, 400)

    def to_dict(self) -> dict:
        return {"success": False, "code": self.code, "message": self.message}


class StoreError(Exception):
    """A persistence failure, e.g. an unresolved unique-key conflict."""


class TokenVerificationError(Exception):
    """Base class for access-token decoding failures."""


class TokenExpired(TokenVerificationError):
    pass


class InvalidTokenSignature(TokenVerificationError):
    pass
