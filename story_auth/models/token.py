from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, Optional
from datetime import datetime
from enum import Enum

from story_auth.utils.dates import utcnow


class TokenStatus(str, Enum):
    ACTIVE = "active"
    REVOKED = "revoked"


class BlacklistReason(str, Enum):
    LOGOUT = "LOGOUT"
    PASSWORD_CHANGE = "PASSWORD_CHANGE"
    SECURITY_ISSUE = "SECURITY_ISSUE"
    OTHER = "OTHER"


class RefreshToken(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = Field(None, alias="_id")
    userId: str  # owner, stored as ObjectId
    token: str  # opaque random value, unique
    userAgent: str = ""
    ipAddress: str = ""
    expiresAt: datetime
    status: TokenStatus = TokenStatus.ACTIVE
    createdAt: datetime

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "RefreshToken":
        data = dict(doc)
        data["_id"] = str(data["_id"]) if data.get("_id") is not None else None
        data["userId"] = str(data["userId"])
        return cls(**data)


class BlacklistedToken(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = Field(None, alias="_id")
    token: str
    jti: Optional[str] = None
    expiresAt: datetime  # when the original token would have expired
    reason: BlacklistReason = BlacklistReason.LOGOUT
    createdAt: datetime

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "BlacklistedToken":
        data = dict(doc)
        data["_id"] = str(data["_id"]) if data.get("_id") is not None else None
        return cls(**data)


# Derived values. Kept as functions over plain records rather than
# properties so callers decide which "now" they evaluate against.

def is_expired(expires_at: datetime, now: Optional[datetime] = None) -> bool:
    return (now or utcnow()) >= expires_at


def is_revoked(token: RefreshToken) -> bool:
    return token.status == TokenStatus.REVOKED


def is_valid(token: RefreshToken, now: Optional[datetime] = None) -> bool:
    """A refresh token is usable iff it is active and not yet expired."""
    return not is_revoked(token) and not is_expired(token.expiresAt, now)


def remaining_seconds(expires_at: datetime, now: Optional[datetime] = None) -> int:
    delta = expires_at - (now or utcnow())
    return max(0, int(delta.total_seconds()))
