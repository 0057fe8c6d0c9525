import logging

from motor.motor_asyncio import AsyncIOMotorClient

from story_auth.config import Settings
from story_auth.repositories.refresh_tokens import RefreshTokenStore
from story_auth.repositories.token_blacklist import TokenBlacklist
from story_auth.repositories.users import UserRepository

logger = logging.getLogger(__name__)

# MongoDB Setup
client = None
db = None


def init_db(app, settings: Settings, database=None):
    """Attach a database handle to the app; an injected handle skips the client."""
    global client, db
    if database is None:
        client = AsyncIOMotorClient(settings.mongodb_uri)
        database = client.get_default_database()
    db = database
    app.state.db = db
    return db


def close_db():
    global client, db
    if client is not None:
        client.close()
    client = None
    db = None


async def ensure_indexes(database) -> None:
    """Create the unique and TTL indexes the auth collections rely on."""
    await UserRepository(database).ensure_indexes()
    await RefreshTokenStore(database).ensure_indexes()
    await TokenBlacklist(database).ensure_indexes()
    logger.info("MongoDB indexes ensured for users, refresh_tokens, token_blacklist")
