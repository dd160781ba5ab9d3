import os
import uuid

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from tortoise import Tortoise

from chatconnect.core import db as db_module
from chatconnect.core.tortoise_store import TortoiseDocumentStore
from chatconnect.main import app, install_services
from chatconnect.services import FriendService, MessageService, ProfileService, RoomPairingService


TEST_DB_URL = "sqlite://:memory:"
TEST_APP_ID = "test-app"
os.environ["DATABASE_URL"] = TEST_DB_URL
db_module.DB_URL = TEST_DB_URL
db_module.TORTOISE_ORM["connections"]["default"] = TEST_DB_URL


async def _init_test_db() -> None:
    """
    Initialize a clean in-memory SQLite database for every test.
    Ensures tables are recreated from scratch.
    """
    await Tortoise.init(config=db_module.TORTOISE_ORM)
    await Tortoise.generate_schemas()


@pytest_asyncio.fixture
async def db():
    """
    Fresh database for one test, closed afterwards.
    """
    await _init_test_db()
    yield
    await Tortoise.close_connections()


@pytest_asyncio.fixture
async def store(db):
    """
    Document store on the fresh database, with its own pubsub channel.
    """
    return TortoiseDocumentStore(app_id=TEST_APP_ID, max_attempts=5)


@pytest.fixture
def rooms(store):
    return RoomPairingService(store)


@pytest.fixture
def profiles(store):
    return ProfileService(store)


@pytest.fixture
def messages(store):
    return MessageService(store)


@pytest.fixture
def friends(store, profiles):
    return FriendService(store, profiles)


@pytest_asyncio.fixture
async def make_user(profiles):
    """
    Factory fixture creating a profile (no login account) and returning its user id.
    """

    async def _make_user(username: str | None = None) -> str:
        user_id = uuid.uuid4().hex
        username = username or f"user_{user_id[:6]}"
        result = await profiles.create_profile(user_id, username, f"{username}@example.com")
        assert result.success, result.message
        return user_id

    return _make_user


@pytest_asyncio.fixture
async def client(store):
    """
    Provide an HTTPX AsyncClient bound to the FastAPI app with a fresh DB
    and a fresh document store.
    """
    install_services(app, store)
    # Use ASGITransport without lifespan parameter (not supported in all httpx versions)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        yield async_client


@pytest_asyncio.fixture
async def auth_header_factory(client):
    """
    Helper fixture registering a user through the API and returning
    (headers, user_id, invite_code).
    """

    async def _register(username: str | None = None, password: str = "UserPass!23"):
        username = username or f"user_{uuid.uuid4().hex[:6]}"
        reg = await client.post(
            "/api/v1/auth/register",
            json={"username": username, "email": f"{username}@example.com", "password": password},
        )
        body = reg.json()
        assert body["success"] is True, body
        resp = await client.post(
            "/api/v1/auth/login",
            json={"username": username, "password": password},
        )
        assert resp.status_code == 200, resp.text
        token = resp.json()["data"]["accessToken"]
        return {"Authorization": f"Bearer {token}"}, body["data"]["id"], body["data"]["inviteCode"]

    return _register
