import re
from typing import Any, Dict, Tuple
from urllib.parse import urlparse

from story_auth.errors import AuthError, ErrorCode
from story_auth.models.user import SOCIAL_LINK_FIELDS

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 8
MAX_NAME_LENGTH = 20
MAX_BIO_LENGTH = 200

PLATFORM_DOMAINS: Dict[str, Tuple[str, ...]] = {
    "facebook": ("facebook.com", "fb.com"),
    "twitter": ("twitter.com", "x.com"),
    "instagram": ("instagram.com",),
    "youtube": ("youtube.com", "youtu.be"),
}


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email))


def is_valid_url(value: str) -> bool:
    """Absolute URL with a scheme and a host."""
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    return bool(parsed.scheme and parsed.netloc)


def is_platform_url(value: str, domains: Tuple[str, ...]) -> bool:
    """http(s) URL whose host is one of ``domains`` or a subdomain of one."""
    try:
        parsed = urlparse(value)
        host = (parsed.hostname or "").lower()
    except ValueError:
        return False
    if parsed.scheme not in ("http", "https") or not host:
        return False
    return any(host == domain or host.endswith("." + domain) for domain in domains)


def invalid_url_code(field: str) -> str:
    return f"INVALID_{field.upper()}_URL"


def validate_social_field(field: str, value: Any) -> str:
    """Check one social-link value and return it trimmed; raises AuthError."""
    if value is None:
        value = ""
    if not isinstance(value, str):
        code = ErrorCode.BIO_TOO_LONG if field == "bio" else invalid_url_code(field)
        raise AuthError(code)
    value = value.strip()

    if field == "bio":
        if len(value) > MAX_BIO_LENGTH:
            raise AuthError(ErrorCode.BIO_TOO_LONG)
        return value

    # an empty value clears the link
    if not value:
        return value

    if field == "website":
        if not is_valid_url(value):
            raise AuthError(ErrorCode.INVALID_WEBSITE_URL)
    elif not is_platform_url(value, PLATFORM_DOMAINS[field]):
        raise AuthError(invalid_url_code(field))
    return value


def collect_social_updates(update_data: Dict[str, Any]) -> Dict[str, str]:
    """
    Validated social-link changes from an update payload.

    Both the nested ``social`` object and the older flat top-level keys are
    accepted; flat keys are applied after the nested ones. Fields missing
    from the payload are not returned, so stored values are left alone.
    """
    changes: Dict[str, str] = {}

    nested = update_data.get("social")
    if isinstance(nested, dict):
        for field in SOCIAL_LINK_FIELDS:
            if field in nested:
                changes[field] = validate_social_field(field, nested[field])

    for field in SOCIAL_LINK_FIELDS:
        if field in update_data:
            changes[field] = validate_social_field(field, update_data[field])

    return changes
