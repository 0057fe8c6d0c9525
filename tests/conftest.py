# tests/conftest.py
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

from story_auth.config import Settings
from story_auth.main import create_app
from story_auth.repositories.refresh_tokens import RefreshTokenStore
from story_auth.repositories.token_blacklist import TokenBlacklist
from story_auth.repositories.users import UserRepository
from story_auth.services.auth_service import AuthService

USER_EMAIL = "reader@example.com"
USER_PASSWORD = "correct-horse"
GOOGLE_EMAIL = "google.reader@example.com"


@pytest.fixture
def settings():
    # bcrypt at its minimum cost keeps the suite fast
    return Settings(
        secret_key="test-signing-secret",
        bcrypt_rounds=4,
        cors_origins=["http://test"],
        log_level="WARNING",
    )


@pytest_asyncio.fixture
async def db():
    client = AsyncMongoMockClient()
    database = client["story_auth_test"]
    await UserRepository(database).ensure_indexes()
    await RefreshTokenStore(database).ensure_indexes()
    await TokenBlacklist(database).ensure_indexes()
    yield database


@pytest.fixture
def auth_service(db, settings):
    return AuthService.from_db(db, settings)


@pytest.fixture
def user_credentials():
    return {"email": USER_EMAIL, "password": USER_PASSWORD}


@pytest_asyncio.fixture
async def registered_user(auth_service):
    await auth_service.register(email=USER_EMAIL, password=USER_PASSWORD, name="Reader")
    return await auth_service.users.find_by_email(USER_EMAIL)


@pytest_asyncio.fixture
async def google_user(auth_service):
    await auth_service.oauth_login(
        email=GOOGLE_EMAIL,
        name="Google Reader",
        avatar="https://lh3.googleusercontent.com/a/photo.jpg",
        google_id="google-123",
    )
    return await auth_service.users.find_by_email(GOOGLE_EMAIL)


@pytest_asyncio.fixture
async def client(db, settings):
    app = create_app(settings, database=db, run_background_tasks=False)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
