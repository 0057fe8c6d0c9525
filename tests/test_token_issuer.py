# tests/test_token_issuer.py
from datetime import timedelta

import pytest
from bson import ObjectId
from jose import jwt
from mongomock_motor import AsyncMongoMockClient

from story_auth.errors import InvalidTokenSignature, TokenExpired
from story_auth.models.user import User
from story_auth.repositories.refresh_tokens import RefreshTokenStore
from story_auth.services.token_issuer import TokenIssuer
from story_auth.utils.dates import utcnow

SECRET = "issuer-test-secret"


@pytest.fixture
def user():
    return User(_id=str(ObjectId()), email="writer@example.com", role="author", slug="writer")


@pytest.fixture
def store():
    return RefreshTokenStore(AsyncMongoMockClient()["issuer_test"])


@pytest.fixture
def issuer(store):
    return TokenIssuer(SECRET, store)


def test_access_token_carries_identity_claims(issuer, user):
    claims = issuer.verify_access_token(issuer.issue_access_token(user))

    assert claims["id"] == user.id
    assert claims["email"] == "writer@example.com"
    assert claims["role"] == "author"
    assert claims["slug"] == "writer"
    assert len(claims["jti"]) == 32
    assert claims["exp"] - claims["iat"] == int(timedelta(days=15).total_seconds())


def test_each_access_token_has_its_own_jti(issuer, user):
    first = issuer.verify_access_token(issuer.issue_access_token(user))
    second = issuer.verify_access_token(issuer.issue_access_token(user))
    assert first["jti"] != second["jti"]


def test_expired_access_token(store, user):
    issuer = TokenIssuer(SECRET, store, access_token_ttl=timedelta(seconds=-30))
    token = issuer.issue_access_token(user)

    with pytest.raises(TokenExpired):
        issuer.verify_access_token(token)

    # logout still needs the claims of an expired token
    assert issuer.decode_ignoring_expiry(token)["id"] == user.id


def test_foreign_signature_is_rejected(issuer, user):
    forged = jwt.encode({"id": user.id, "jti": "x"}, "some-other-secret", algorithm="HS256")

    with pytest.raises(InvalidTokenSignature):
        issuer.verify_access_token(forged)
    with pytest.raises(InvalidTokenSignature):
        issuer.decode_ignoring_expiry(forged)


def test_garbage_token_is_rejected(issuer):
    with pytest.raises(InvalidTokenSignature):
        issuer.decode_ignoring_expiry("not-a-jwt")


def test_secret_is_required(store):
    with pytest.raises(ValueError):
        TokenIssuer("", store)


async def test_issue_refresh_token_uses_configured_ttl(store, user):
    issuer = TokenIssuer(SECRET, store, refresh_token_ttl=timedelta(days=2))

    token = await issuer.issue_refresh_token(user.id, "ua", "127.0.0.1")

    remaining = token.expiresAt - utcnow()
    assert timedelta(days=2) - timedelta(minutes=1) < remaining <= timedelta(days=2)
