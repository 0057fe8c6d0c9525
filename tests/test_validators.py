# tests/test_validators.py
from urllib.parse import urlparse

import pytest

from story_auth.errors import AuthError, ErrorCode
from story_auth.utils.avatars import DEFAULT_EMAIL_AVATAR, FALLBACK_AVATAR, avatar_url
from story_auth.utils.validators import (
    collect_social_updates,
    is_platform_url,
    is_valid_email,
    is_valid_url,
    validate_social_field,
)


@pytest.mark.parametrize("email", ["a@b.co", "first.last@example.com", "x+tag@sub.example.org"])
def test_valid_emails(email):
    assert is_valid_email(email)


@pytest.mark.parametrize("email", ["", "plain", "no@tld", "two words@example.com", "@example.com"])
def test_invalid_emails(email):
    assert not is_valid_email(email)


def test_is_valid_url():
    assert is_valid_url("https://example.com/page")
    assert is_valid_url("http://localhost:8000")
    assert not is_valid_url("example.com")
    assert not is_valid_url("not a url")


@pytest.mark.parametrize(
    "url",
    ["https://facebook.com/me", "http://www.facebook.com/me", "https://m.facebook.com/me", "https://fb.com/me"],
)
def test_platform_url_accepts_domain_and_subdomains(url):
    assert is_platform_url(url, ("facebook.com", "fb.com"))


@pytest.mark.parametrize(
    "url",
    [
        "https://evil.com/facebook.com",
        "https://facebook.com.evil.com/me",
        "https://notfacebook.com/me",
        "javascript:alert(1)//facebook.com",
        "ftp://facebook.com/me",
    ],
)
def test_platform_url_rejects_lookalikes(url):
    assert not is_platform_url(url, ("facebook.com", "fb.com"))


def test_validate_social_field_trims_and_clears():
    assert validate_social_field("twitter", "  https://twitter.com/me  ") == "https://twitter.com/me"
    assert validate_social_field("website", "") == ""
    assert validate_social_field("facebook", None) == ""


def test_validate_social_field_bio_length():
    assert validate_social_field("bio", "b" * 200) == "b" * 200
    with pytest.raises(AuthError) as exc_info:
        validate_social_field("bio", "b" * 201)
    assert exc_info.value.code == ErrorCode.BIO_TOO_LONG


def test_validate_social_field_rejects_non_strings():
    with pytest.raises(AuthError) as exc_info:
        validate_social_field("youtube", 42)
    assert exc_info.value.code == ErrorCode.INVALID_YOUTUBE_URL


def test_collect_social_updates_flat_keys_win():
    changes = collect_social_updates(
        {
            "social": {"bio": "nested", "twitter": "https://twitter.com/nested"},
            "twitter": "https://x.com/flat",
            "name": "ignored",
        }
    )
    assert changes == {"bio": "nested", "twitter": "https://x.com/flat"}


def test_collect_social_updates_ignores_missing_fields():
    assert collect_social_updates({"name": "Only Name"}) == {}
    assert collect_social_updates({"social": "not-a-dict"}) == {}


def test_avatar_url_defaults():
    assert avatar_url(None, "email") == DEFAULT_EMAIL_AVATAR
    assert avatar_url("", "google") == FALLBACK_AVATAR
    assert urlparse(FALLBACK_AVATAR).hostname.endswith(".fbcdn.net")
    assert avatar_url("https://cdn.example.com/a.png", "google") == "https://cdn.example.com/a.png"
    assert avatar_url({"primaryUrl": "https://cdn.example.com/b.webp"}, "email") == "https://cdn.example.com/b.webp"
    assert avatar_url({"variants": {}}, "email") == DEFAULT_EMAIL_AVATAR


def test_auth_error_status_mapping():
    assert AuthError(ErrorCode.INVALID_CREDENTIALS).status_code == 401
    assert AuthError(ErrorCode.ACCOUNT_DISABLED).status_code == 403
    assert AuthError(ErrorCode.USER_NOT_FOUND).status_code == 404
    assert AuthError(ErrorCode.EMAIL_EXISTS).status_code == 400
    assert AuthError(ErrorCode.WEAK_PASSWORD).to_dict() == {
        "success": False,
        "code": "WEAK_PASSWORD",
        "message": "Password must be at least 8 characters long",
    }
