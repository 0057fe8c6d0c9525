import logging
import secrets
from datetime import timedelta
from typing import List, Optional

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import DuplicateKeyError

from story_auth.errors import StoreError
from story_auth.models.token import RefreshToken, TokenStatus
from story_auth.utils.dates import utcnow

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_TTL_SECONDS = 30 * 24 * 60 * 60
TOKEN_BYTES = 40  # 320 bits, hex-encoded to 80 chars
MAX_GENERATE_ATTEMPTS = 3


def _owner_id(user_id):
    return user_id if isinstance(user_id, ObjectId) else ObjectId(str(user_id))


class RefreshTokenStore:
    """
    Persistence for opaque refresh tokens in the ``refresh_tokens`` collection.

    The store is the only authority on whether a refresh token is usable.
    Records are deleted when consumed; ``revoke``/``revoke_all_for_user`` only
    flip ``status`` so the rows stay visible for inspection until they expire.
    """

    collection_name = "refresh_tokens"

    def __init__(self, db, default_ttl_seconds: int = DEFAULT_REFRESH_TTL_SECONDS):
        self.collection = db[self.collection_name]
        self.default_ttl_seconds = default_ttl_seconds

    async def ensure_indexes(self) -> None:
        await self.collection.create_index([("token", ASCENDING)], unique=True, name="token_unique")
        await self.collection.create_index([("userId", ASCENDING)], name="userId_index")
        # MongoDB drops documents once expiresAt passes; cleanup_expired covers
        # engines and deployments without the TTL monitor.
        await self.collection.create_index(
            [("expiresAt", ASCENDING)], expireAfterSeconds=0, name="ttl_index"
        )

    async def generate(
        self,
        user_id,
        user_agent: str = "",
        ip_address: str = "",
        ttl_seconds: Optional[int] = None,
    ) -> RefreshToken:
        """Create and persist a new active refresh token for ``user_id``."""
        ttl = self.default_ttl_seconds if ttl_seconds is None else ttl_seconds
        now = utcnow()
        doc = {
            "userId": _owner_id(user_id),
            "userAgent": user_agent or "",
            "ipAddress": ip_address or "",
            "expiresAt": now + timedelta(seconds=ttl),
            "status": TokenStatus.ACTIVE.value,
            "createdAt": now,
        }

        for attempt in range(1, MAX_GENERATE_ATTEMPTS + 1):
            doc["token"] = secrets.token_hex(TOKEN_BYTES)
            doc.pop("_id", None)
            try:
                result = await self.collection.insert_one(doc)
            except DuplicateKeyError:
                logger.warning("Refresh token collision on attempt %s, regenerating", attempt)
                continue
            doc["_id"] = result.inserted_id
            return RefreshToken.from_document(doc)

        raise StoreError("Could not store a unique refresh token")

    async def find_by_token(self, token: str) -> Optional[RefreshToken]:
        doc = await self.collection.find_one({"token": token})
        return RefreshToken.from_document(doc) if doc else None

    async def find_all_for_user(self, user_id) -> List[RefreshToken]:
        docs = await self.collection.find({"userId": _owner_id(user_id)}).sort(
            "createdAt", DESCENDING
        ).to_list(None)
        return [RefreshToken.from_document(doc) for doc in docs]

    async def find_active_for_user(self, user_id) -> List[RefreshToken]:
        docs = await self.collection.find(
            {"userId": _owner_id(user_id), "status": TokenStatus.ACTIVE.value}
        ).sort("createdAt", DESCENDING).to_list(None)
        return [RefreshToken.from_document(doc) for doc in docs]

    async def revoke(self, token: str) -> bool:
        result = await self.collection.update_one(
            {"token": token}, {"$set": {"status": TokenStatus.REVOKED.value}}
        )
        return result.modified_count > 0

    async def revoke_all_for_user(self, user_id) -> int:
        """Revoke every active refresh token of a user; returns how many flipped."""
        result = await self.collection.update_many(
            {"userId": _owner_id(user_id), "status": TokenStatus.ACTIVE.value},
            {"$set": {"status": TokenStatus.REVOKED.value}},
        )
        logger.info("Revoked %s refresh tokens for user %s", result.modified_count, user_id)
        return result.modified_count

    async def delete_by_token(self, token: str) -> bool:
        result = await self.collection.delete_one({"token": token})
        return result.deleted_count > 0

    async def delete_all_for_user(self, user_id) -> int:
        result = await self.collection.delete_many({"userId": _owner_id(user_id)})
        return result.deleted_count

    async def cleanup_expired(self) -> int:
        result = await self.collection.delete_many({"expiresAt": {"$lt": utcnow()}})
        if result.deleted_count:
            logger.info("Removed %s expired refresh tokens", result.deleted_count)
        return result.deleted_count
