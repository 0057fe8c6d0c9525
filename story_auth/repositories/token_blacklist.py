import logging
from datetime import datetime
from typing import Optional

from pymongo import ASCENDING
from pymongo.errors import DuplicateKeyError

from story_auth.models.token import BlacklistReason, BlacklistedToken
from story_auth.utils.dates import utcnow

logger = logging.getLogger(__name__)


class TokenBlacklist:
    """
    Access tokens invalidated before their natural expiry.

    Entries carry the expiry of the token they block, so they can be dropped
    as soon as that token would have stopped verifying on its own.
    """

    collection_name = "token_blacklist"

    def __init__(self, db):
        self.collection = db[self.collection_name]

    async def ensure_indexes(self) -> None:
        await self.collection.create_index([("token", ASCENDING)], unique=True, name="token_unique")
        await self.collection.create_index(
            [("expiresAt", ASCENDING)], expireAfterSeconds=0, name="ttl_index"
        )

    async def add(
        self,
        token: str,
        expires_at: datetime,
        reason: BlacklistReason = BlacklistReason.LOGOUT,
        jti: Optional[str] = None,
    ) -> Optional[BlacklistedToken]:
        """Blacklist ``token``; returns None if it was already blacklisted."""
        doc = {
            "token": token,
            "jti": jti,
            "expiresAt": expires_at,
            "reason": BlacklistReason(reason).value,
            "createdAt": utcnow(),
        }
        try:
            result = await self.collection.insert_one(doc)
        except DuplicateKeyError:
            logger.debug("Token with jti %s already blacklisted", jti)
            return None

        logger.info("Blacklisted access token jti: %s reason: %s", jti, doc["reason"])
        doc["_id"] = result.inserted_id
        return BlacklistedToken.from_document(doc)

    async def is_blacklisted(self, token: str) -> bool:
        doc = await self.collection.find_one({"token": token}, {"_id": 1})
        return doc is not None

    async def remove(self, token: str) -> bool:
        result = await self.collection.delete_one({"token": token})
        return result.deleted_count > 0

    async def cleanup_expired(self) -> int:
        result = await self.collection.delete_many({"expiresAt": {"$lt": utcnow()}})
        if result.deleted_count:
            logger.info("Removed %s expired blacklist entries", result.deleted_count)
        return result.deleted_count
