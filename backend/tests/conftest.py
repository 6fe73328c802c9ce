from typing import AsyncIterator

import fakeredis
import fakeredis.aioredis
import pytest
from dishka import Provider, Scope, provide
from fastapi.testclient import TestClient
from redis.asyncio import Redis

from webchat.config.settings import TestingConfig
from webchat.domain.value_objects.username import Username
from webchat.fastapi_app import create_fastapi_app
from webchat.infrastructure.cache import ConversationCache
from webchat.infrastructure.persistence import (
    SqlAlchemyConversationRepository,
    SqlAlchemyMessageRepository,
    SqlAlchemyUserRepository,
    create_engine,
    create_session_factory,
    dispose_engine,
    init_models,
)
from webchat.realtime.connection import LiveConnection
from webchat.setup.ioc.container import create_container


def fake_redis() -> Redis:
    # Own server per client, so tests never see each other's keys
    return fakeredis.aioredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)


class FakeRedisProvider(Provider):
    """Overrides AppProvider's Redis client with an in-process fake."""

    @provide(scope=Scope.APP)
    async def get_redis(self) -> AsyncIterator[Redis]:
        client = fake_redis()
        yield client
        await client.aclose()


class FakeSocket:
    """Stands in for a WebSocket: records what the hub sends."""

    def __init__(self, fail: bool = False):
        self.sent: list[dict] = []
        self.fail = fail

    async def send_json(self, payload):
        if self.fail:
            raise RuntimeError("socket is closed")
        self.sent.append(payload)

    def of_type(self, event_type: str) -> list[dict]:
        return [p["data"] for p in self.sent if p["type"] == event_type]


# ==================== STORE ====================


@pytest.fixture()
async def engine():
    engine = create_engine(TestingConfig.DATABASE_URL)
    await init_models(engine)
    yield engine
    await dispose_engine(engine)


@pytest.fixture()
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture()
def users(session_factory):
    return SqlAlchemyUserRepository(session_factory)


@pytest.fixture()
def conversations(session_factory):
    return SqlAlchemyConversationRepository(session_factory)


@pytest.fixture()
def messages(session_factory):
    return SqlAlchemyMessageRepository(session_factory)


@pytest.fixture()
async def alice(users):
    return await users.create(Username("alice"))


@pytest.fixture()
async def bob(users):
    return await users.create(Username("bob"))


@pytest.fixture()
async def carol(users):
    return await users.create(Username("carol"))


# ==================== CACHE ====================


@pytest.fixture()
async def redis():
    client = fake_redis()
    yield client
    await client.aclose()


@pytest.fixture()
def cache(redis):
    return ConversationCache(redis, conversation_ttl=900, user_conversations_ttl=300)


# ==================== HUB ====================


@pytest.fixture()
def make_connection():
    def _make(fail: bool = False) -> tuple[LiveConnection, FakeSocket]:
        socket = FakeSocket(fail=fail)
        return LiveConnection(socket.send_json), socket

    return _make


# ==================== APP ====================


@pytest.fixture()
def app():
    """Create a new FastAPI app per test: fresh in-memory database and fake Redis."""
    return create_fastapi_app(create_container(TestingConfig, FakeRedisProvider()))


@pytest.fixture()
def client(app):
    """A test client for the FastAPI app. Entered so lifespan runs and one event loop is shared."""
    with TestClient(app) as client:
        yield client
