import logging
from typing import Optional

from bson import ObjectId
from pymongo import ASCENDING
from pymongo.errors import DuplicateKeyError
from slugify import slugify

from story_auth.models.user import User
from story_auth.utils.dates import utcnow

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def duplicate_key_field(exc: DuplicateKeyError) -> Optional[str]:
    """Which unique field of ``users`` a DuplicateKeyError was raised for."""
    details = exc.details or {}
    key = details.get("keyPattern") or details.get("keyValue") or {}
    for field in ("email", "slug"):
        if field in key:
            return field
    # servers that omit keyPattern still name the index in the message
    message = str(exc)
    for field in ("email", "slug"):
        if f"{field}_unique" in message:
            return field
    return None


class UserRepository:
    """Credential store backed by the ``users`` collection."""

    collection_name = "users"

    def __init__(self, db):
        self.collection = db[self.collection_name]

    async def ensure_indexes(self) -> None:
        await self.collection.create_index([("email", ASCENDING)], unique=True, name="email_unique")
        await self.collection.create_index(
            [("slug", ASCENDING)], unique=True, sparse=True, name="slug_unique"
        )

    @staticmethod
    def _to_model(doc: dict) -> User:
        data = dict(doc)
        data["_id"] = str(data["_id"])
        return User(**data)

    async def find_by_id(self, user_id) -> Optional[User]:
        if not user_id or not ObjectId.is_valid(str(user_id)):
            return None
        doc = await self.collection.find_one({"_id": ObjectId(str(user_id))})
        return self._to_model(doc) if doc else None

    async def find_by_email(self, email: str) -> Optional[User]:
        doc = await self.collection.find_one({"email": normalize_email(email)})
        return self._to_model(doc) if doc else None

    async def save(self, user: User) -> User:
        """Insert a new user or replace the stored document in one write."""
        user.email = normalize_email(user.email)
        doc = user.model_dump(by_alias=True, exclude={"id"})
        # slug is sparse-unique: leave the key out rather than store null
        if doc.get("slug") is None:
            doc.pop("slug", None)

        if user.id is None:
            doc["createdAt"] = doc.get("createdAt") or utcnow()
            result = await self.collection.insert_one(doc)
            user.id = str(result.inserted_id)
            user.createdAt = doc["createdAt"]
            logger.debug("Inserted user %s", user.id)
        else:
            await self.collection.replace_one({"_id": ObjectId(user.id)}, doc)
        return user

    async def generate_unique_slug(self, name: str) -> str:
        """Slugify ``name`` and append ``-1``, ``-2``... until no user holds it."""
        base = slugify(name) or "user"
        slug = base
        counter = 1
        while await self.collection.find_one({"slug": slug}, {"_id": 1}):
            slug = f"{base}-{counter}"
            counter += 1
        return slug
