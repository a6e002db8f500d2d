"""
Pytest configuration and shared fixtures for the chat platform tests

Provides:
- In-memory SQLite database (StaticPool) shared by the app and the test
- Fake Redis clients (sync for admin sessions, async for resumable streams)
- Test users, admin users and session helpers
- Mock LiteLLM streaming responses
"""

import os

# Must be set before chatapp.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["RESUMABLE_STREAMS_ENABLED"] = "false"
os.environ["CACHE_ENABLED"] = "false"
os.environ["RATE_LIMIT_CHAT"] = "10000/minute"
os.environ["RATE_LIMIT_UPLOAD"] = "10000/minute"
os.environ["RATE_LIMIT_AUTH"] = "10000/minute"
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
from typing import Dict, Generator, List, Optional
from unittest.mock import MagicMock
from uuid import uuid4
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from chatapp.database import Base, get_db, get_session_factory
from chatapp.core.security import create_session_token, hash_password
from chatapp.models.user import User
from chatapp.models.chat import Chat
from chatapp.models.message import Message
from chatapp.models.admin import AdminUser
from chatapp.services.admin_session_store import AdminSessionStore
from chatapp.utils.datetime_utils import utcnow


class FakeRedis:
    """Dict-backed stand-in for the sync Redis client (setex/get/delete)"""

    def __init__(self):
        self.values: Dict[str, str] = {}
        self.ttls: Dict[str, int] = {}

    def setex(self, key, ttl, value):
        self.values[key] = value
        self.ttls[key] = ttl
        return True

    def get(self, key):
        return self.values.get(key)

    def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.values.pop(key, None) is not None:
                removed += 1
        return removed


class FakeAsyncRedis:
    """In-memory stand-in for redis.asyncio with the commands resumable streams use"""

    def __init__(self):
        self.values: Dict[str, str] = {}
        self.streams: Dict[str, List] = {}
        self._sequence = 0

    async def set(self, key, value, nx=False, ex=None):
        if nx and key in self.values:
            return None
        self.values[key] = value
        return True

    async def get(self, key):
        return self.values.get(key)

    async def xadd(self, key, fields):
        self._sequence += 1
        entry_id = f"{self._sequence}-0"
        self.streams.setdefault(key, []).append((entry_id, dict(fields)))
        return entry_id

    async def xread(self, streams, count=None, block=None):
        response = []
        for key, last_id in streams.items():
            last = int(last_id.split("-")[0])
            entries = [
                entry for entry in self.streams.get(key, [])
                if int(entry[0].split("-")[0]) > last
            ]
            if count:
                entries = entries[:count]
            if entries:
                response.append([key, entries])
        return response

    async def expire(self, key, seconds):
        return True

    async def delete(self, *keys):
        for key in keys:
            self.values.pop(key, None)
            self.streams.pop(key, None)
        return len(keys)


@pytest.fixture
def test_db_engine():
    """Fresh in-memory SQLite database per test"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(test_db_engine):
    """Session factory bound to the test engine"""
    return sessionmaker(autocommit=False, autoflush=False, bind=test_db_engine)


@pytest.fixture
def db_session(session_factory) -> Generator[Session, None, None]:
    """Database session for the test body"""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def admin_store(fake_redis) -> AdminSessionStore:
    """Admin session store backed by FakeRedis"""
    return AdminSessionStore(redis_client=fake_redis)


@pytest.fixture
def client(session_factory, admin_store):
    """
    Test client with database, stream context and admin store overridden

    Resumable streams are off (stream context None) unless a test
    overrides get_stream_context_dependency itself.
    """
    from chatapp.main import app
    from chatapp.api.deps import get_admin_session_store, get_stream_context_dependency

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_stream_context_dependency] = lambda: None
    app.dependency_overrides[get_admin_session_store] = lambda: admin_store

    test_client = TestClient(app)
    yield test_client

    app.dependency_overrides.clear()


def make_user(db_session: Session, email: Optional[str] = None, user_type: str = "regular",
              password: Optional[str] = "password123", status: str = "active") -> User:
    """Insert a chat app user"""
    user = User(
        id=uuid4(),
        email=email or f"user-{uuid4().hex[:8]}@example.com",
        password=hash_password(password) if password and user_type == "regular" else None,
        type=user_type,
        status=status,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


def auth_headers(user: User) -> Dict[str, str]:
    """Bearer session token for a user"""
    return {"Authorization": f"Bearer {create_session_token(str(user.id), user.type)}"}


def make_chat(db_session: Session, user: User, title: str = "Test chat",
              visibility: str = "private", created_at=None) -> Chat:
    chat = Chat(
        id=uuid4(),
        user_id=user.id,
        title=title,
        visibility=visibility,
        created_at=created_at or utcnow(),
    )
    db_session.add(chat)
    db_session.commit()
    db_session.refresh(chat)
    return chat


def make_message(db_session: Session, chat: Chat, role: str = "user", text: str = "Hello",
                 created_at=None) -> Message:
    message = Message(
        id=uuid4(),
        chat_id=chat.id,
        role=role,
        parts=[{"type": "text", "text": text}],
        attachments=[],
        created_at=created_at or utcnow(),
    )
    db_session.add(message)
    db_session.commit()
    db_session.refresh(message)
    return message


@pytest.fixture
def test_user(db_session) -> User:
    """Registered chat app user (password: password123)"""
    return make_user(db_session, email="test@example.com")


@pytest.fixture
def other_user(db_session) -> User:
    """Second registered user for ownership checks"""
    return make_user(db_session, email="other@example.com")


@pytest.fixture
def guest_user(db_session) -> User:
    """Guest chat app user"""
    return make_user(db_session, email=f"guest-{uuid4().int % 10**13}", user_type="guest", password=None)


@pytest.fixture
def test_chat(db_session, test_user) -> Chat:
    """Private chat owned by test_user"""
    return make_chat(db_session, test_user)


@pytest.fixture
def admin_user(db_session) -> AdminUser:
    """Active back-office admin"""
    admin = AdminUser(
        id=uuid4(),
        email="admin@example.com",
        name="Admin",
        role="admin",
        status="active",
    )
    db_session.add(admin)
    db_session.commit()
    db_session.refresh(admin)
    return admin


@pytest.fixture
def admin_client(client, admin_user, admin_store):
    """Test client carrying a valid admin session cookie"""
    from chatapp.config import settings

    session_id = admin_store.create(str(admin_user.id))
    client.cookies.set(settings.ADMIN_SESSION_COOKIE_NAME, session_id)
    return client


@pytest.fixture
def mock_litellm_stream():
    """
    Mock LiteLLM streaming response

    The last chunk carries provider usage so no tokenizer is needed.
    """
    def make_stream(chunks=("Hello ", "there", "!"), usage=None):
        usage = usage or {"input_tokens": 12, "output_tokens": 3, "total_tokens": 15}

        async def mock_stream(messages, **kwargs):
            for index, chunk_text in enumerate(chunks):
                chunk = MagicMock()
                chunk.content = chunk_text
                chunk.usage_metadata = usage if index == len(chunks) - 1 else None
                yield chunk

        return mock_stream

    return make_stream


def parse_sse(text: str) -> List:
    """Split an SSE body into decoded data payloads ("[DONE]" kept as a string)"""
    import json

    events = []
    for block in text.split("\n\n"):
        block = block.strip()
        if not block.startswith("data: "):
            continue
        payload = block[len("data: "):]
        events.append(payload if payload == "[DONE]" else json.loads(payload))
    return events


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests for individual components"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests for API endpoints"
    )
    config.addinivalue_line(
        "markers", "asyncio: Async tests requiring asyncio event loop"
    )
