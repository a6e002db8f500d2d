"""
Integration tests for Chat API endpoints

Tests:
- POST /api/chat with SSE streaming and persistence
- Request validation and error codes
- DELETE /api/chat, GET /api/chat/{id}, PATCH visibility
- GET /api/chat/{id}/stream (resume)
"""

import pytest
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import UUID, uuid4

from redis.exceptions import ConnectionError as RedisConnectionError

from chatapp.config import settings
from chatapp.models.chat import Chat
from chatapp.models.message import Message
from chatapp.models.stream import Stream
from chatapp.utils.datetime_utils import utcnow
from tests.conftest import (
    FakeAsyncRedis,
    auth_headers,
    make_chat,
    make_message,
    parse_sse,
)


def _payload(chat_id=None, text="What is RAG?", model="chat-model"):
    return {
        "id": str(chat_id or uuid4()),
        "message": {
            "id": str(uuid4()),
            "role": "user",
            "parts": [{"type": "text", "text": text}],
        },
        "selectedChatModel": model,
        "selectedVisibilityType": "private",
    }


class UnavailableRedis(FakeAsyncRedis):
    """Redis client whose server is unreachable"""

    async def set(self, key, value, nx=False, ex=None):
        raise RedisConnectionError("Connection refused")

    async def get(self, key):
        raise RedisConnectionError("Connection refused")


@pytest.mark.integration
class TestPostChat:
    """Integration tests for POST /api/chat"""

    @patch('chatapp.services.chat_service.ChatLiteLLM')
    def test_chat_streaming(self, mock_llm, client, db_session, test_user, mock_litellm_stream):
        """Test chat endpoint with streaming"""
        llm_instance = MagicMock()
        llm_instance.astream = mock_litellm_stream(chunks=("RAG ", "is ", "a ", "technique"))
        llm_instance.ainvoke = AsyncMock(return_value=MagicMock(content="About RAG"))
        mock_llm.return_value = llm_instance
        payload = _payload()

        response = client.post("/api/chat", json=payload, headers=auth_headers(test_user))

        assert response.status_code == 200
        assert "text/event-stream" in response.headers["content-type"]

        events = parse_sse(response.text)
        assert events[0]["type"] == "start"
        assert events[-1] == "[DONE]"
        deltas = "".join(e["delta"] for e in events if isinstance(e, dict) and e["type"] == "text-delta")
        assert deltas == "RAG is a technique"
        assert any(isinstance(e, dict) and e["type"] == "data-usage" for e in events)

        db_session.expire_all()
        chat = db_session.query(Chat).filter(Chat.id == UUID(payload["id"])).one()
        assert chat.title == "About RAG"
        roles = [m.role for m in db_session.query(Message).filter(
            Message.chat_id == chat.id
        ).order_by(Message.created_at).all()]
        assert roles == ["user", "assistant"]
        assert db_session.query(Stream).filter(Stream.chat_id == chat.id).count() == 1

    @pytest.mark.parametrize("mutate", [
        lambda p: p.pop("message"),
        lambda p: p.update(selectedChatModel="gpt-unknown"),
        lambda p: p.update(selectedVisibilityType="friends"),
        lambda p: p["message"]["parts"][0].update(text=""),
        lambda p: p["message"]["parts"][0].update(text="x" * 2001),
        lambda p: p["message"].update(parts=[{"type": "file", "mediaType": "image/gif",
                                              "name": "a.gif", "url": "https://example.com/a.gif"}]),
        lambda p: p.update(id="not-a-uuid"),
    ])
    def test_invalid_body(self, client, test_user, mutate):
        payload = _payload()
        mutate(payload)

        response = client.post("/api/chat", json=payload, headers=auth_headers(test_user))

        assert response.status_code == 400
        assert response.json()["code"] == "bad_request:api"

    def test_malformed_json(self, client, test_user):
        response = client.post(
            "/api/chat",
            content=b"{not json",
            headers={**auth_headers(test_user), "Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json()["code"] == "bad_request:api"

    def test_requires_session(self, client):
        response = client.post("/api/chat", json=_payload())

        assert response.status_code == 401
        assert response.json()["code"] == "unauthorized:chat"

    def test_other_users_chat(self, client, db_session, test_user, other_user):
        chat = make_chat(db_session, other_user)

        response = client.post("/api/chat", json=_payload(chat_id=chat.id), headers=auth_headers(test_user))

        assert response.status_code == 403
        assert response.json()["code"] == "forbidden:chat"

    def test_daily_limit(self, client, db_session, test_user, test_chat, monkeypatch):
        monkeypatch.setattr(settings, "REGULAR_MAX_MESSAGES_PER_DAY", 1)
        make_message(db_session, test_chat, role="user")
        make_message(db_session, test_chat, role="user")

        response = client.post("/api/chat", json=_payload(chat_id=test_chat.id), headers=auth_headers(test_user))

        assert response.status_code == 429
        body = response.json()
        assert body["code"] == "rate_limit:chat"
        assert body["message"].startswith("You have exceeded")

    @patch('chatapp.services.chat_service.ChatLiteLLM')
    def test_provider_error_is_streamed(self, mock_llm, client, test_user, test_chat):
        async def failing_stream(messages, **kwargs):
            raise RuntimeError("boom")
            yield  # pragma: no cover

        llm_instance = MagicMock()
        llm_instance.astream = failing_stream
        mock_llm.return_value = llm_instance

        response = client.post("/api/chat", json=_payload(chat_id=test_chat.id), headers=auth_headers(test_user))

        assert response.status_code == 200
        events = parse_sse(response.text)
        assert {"type": "error", "errorText": "Oops, an error occurred!"} in events


@pytest.mark.integration
class TestPostChatResumable:
    """Integration tests for POST /api/chat through a resumable stream context"""

    @pytest.fixture
    def stream_redis(self):
        return FakeAsyncRedis()

    @pytest.fixture
    def stream_client(self, client, stream_redis):
        from chatapp.main import app
        from chatapp.api.deps import get_stream_context_dependency
        from chatapp.streaming.resumable import ResumableStreamContext

        context = ResumableStreamContext(stream_redis, poll_interval=0)
        app.dependency_overrides[get_stream_context_dependency] = lambda: context
        return client

    @patch('chatapp.services.chat_service.ChatLiteLLM')
    def test_streams_through_redis(self, mock_llm, stream_client, stream_redis, db_session, test_user,
                                   mock_litellm_stream):
        llm_instance = MagicMock()
        llm_instance.astream = mock_litellm_stream(chunks=("Hello ", "there"))
        llm_instance.ainvoke = AsyncMock(return_value=MagicMock(content="Greeting"))
        mock_llm.return_value = llm_instance
        payload = _payload()

        response = stream_client.post("/api/chat", json=payload, headers=auth_headers(test_user))

        assert response.status_code == 200
        events = parse_sse(response.text)
        assert events[0]["type"] == "start"
        assert events[-1] == "[DONE]"
        deltas = "".join(e["delta"] for e in events if isinstance(e, dict) and e["type"] == "text-delta")
        assert deltas == "Hello there"

        db_session.expire_all()
        chat_id = UUID(payload["id"])
        roles = [m.role for m in db_session.query(Message).filter(
            Message.chat_id == chat_id
        ).order_by(Message.created_at).all()]
        assert roles == ["user", "assistant"]

        stream = db_session.query(Stream).filter(Stream.chat_id == chat_id).one()
        assert stream_redis.values[f"resumable-stream:{stream.id}:state"] == "done"
        chunks = stream_redis.streams[f"resumable-stream:{stream.id}:chunks"]
        assert chunks[-1][1] == {"done": "1"}

    @patch('chatapp.services.chat_service.ChatLiteLLM')
    def test_redis_outage_streams_directly(self, mock_llm, client, db_session, test_user, mock_litellm_stream):
        from chatapp.main import app
        from chatapp.api.deps import get_stream_context_dependency
        from chatapp.streaming.resumable import ResumableStreamContext

        app.dependency_overrides[get_stream_context_dependency] = (
            lambda: ResumableStreamContext(UnavailableRedis(), poll_interval=0)
        )
        llm_instance = MagicMock()
        llm_instance.astream = mock_litellm_stream(chunks=("Still ", "here"))
        llm_instance.ainvoke = AsyncMock(return_value=MagicMock(content="Fallback"))
        mock_llm.return_value = llm_instance

        response = client.post("/api/chat", json=_payload(), headers=auth_headers(test_user))

        assert response.status_code == 200
        events = parse_sse(response.text)
        deltas = "".join(e["delta"] for e in events if isinstance(e, dict) and e["type"] == "text-delta")
        assert deltas == "Still here"
        assert events[-1] == "[DONE]"


@pytest.mark.integration
class TestChatRoutes:
    """Integration tests for chat read/delete/visibility routes"""

    def test_delete_chat(self, client, db_session, test_user, test_chat):
        make_message(db_session, test_chat)

        response = client.delete(f"/api/chat?id={test_chat.id}", headers=auth_headers(test_user))

        assert response.status_code == 200
        assert response.json()["id"] == str(test_chat.id)
        db_session.expire_all()
        assert db_session.query(Chat).count() == 0
        assert db_session.query(Message).count() == 0

    def test_delete_requires_id(self, client, test_user):
        response = client.delete("/api/chat", headers=auth_headers(test_user))
        assert response.status_code == 400
        assert response.json()["code"] == "bad_request:api"

    def test_delete_missing_chat(self, client, test_user):
        response = client.delete(f"/api/chat?id={uuid4()}", headers=auth_headers(test_user))
        assert response.status_code == 404
        assert response.json()["code"] == "not_found:chat"

    def test_delete_other_users_chat(self, client, db_session, test_user, other_user):
        chat = make_chat(db_session, other_user)
        response = client.delete(f"/api/chat?id={chat.id}", headers=auth_headers(test_user))
        assert response.status_code == 403
        assert response.json()["code"] == "forbidden:chat"

    def test_get_chat_with_messages(self, client, db_session, test_user, test_chat):
        make_message(db_session, test_chat, role="user", text="hi")
        make_message(db_session, test_chat, role="assistant", text="hello")

        response = client.get(f"/api/chat/{test_chat.id}", headers=auth_headers(test_user))

        assert response.status_code == 200
        data = response.json()
        assert data["userId"] == str(test_user.id)
        assert [m["role"] for m in data["messages"]] == ["user", "assistant"]
        assert data["createdAt"].endswith("Z")

    def test_private_chat_hidden_from_others(self, client, db_session, test_chat, other_user):
        response = client.get(f"/api/chat/{test_chat.id}", headers=auth_headers(other_user))
        assert response.status_code == 403

        response = client.get(f"/api/chat/{test_chat.id}")
        assert response.status_code == 401

    def test_public_chat_readable(self, client, db_session, test_user, other_user):
        chat = make_chat(db_session, test_user, visibility="public")

        response = client.get(f"/api/chat/{chat.id}", headers=auth_headers(other_user))

        assert response.status_code == 200

    def test_update_visibility(self, client, db_session, test_user, test_chat):
        response = client.patch(
            f"/api/chat/{test_chat.id}/visibility",
            json={"visibility": "public"},
            headers=auth_headers(test_user),
        )

        assert response.status_code == 200
        assert response.json()["visibility"] == "public"

    def test_update_visibility_invalid(self, client, test_user, test_chat):
        response = client.patch(
            f"/api/chat/{test_chat.id}/visibility",
            json={"visibility": "friends"},
            headers=auth_headers(test_user),
        )
        assert response.status_code == 400


@pytest.mark.integration
class TestResumeStream:
    """Integration tests for GET /api/chat/{id}/stream"""

    @pytest.fixture
    def stream_redis(self):
        return FakeAsyncRedis()

    @pytest.fixture
    def stream_client(self, client, stream_redis):
        from chatapp.main import app
        from chatapp.api.deps import get_stream_context_dependency
        from chatapp.streaming.resumable import ResumableStreamContext

        context = ResumableStreamContext(stream_redis, poll_interval=0)
        app.dependency_overrides[get_stream_context_dependency] = lambda: context
        return client

    def _add_stream(self, db_session, chat):
        stream = Stream(id=uuid4(), chat_id=chat.id, created_at=utcnow())
        db_session.add(stream)
        db_session.commit()
        return stream

    def test_disabled_returns_204(self, client, test_user, test_chat):
        response = client.get(f"/api/chat/{test_chat.id}/stream", headers=auth_headers(test_user))
        assert response.status_code == 204

    def test_requires_session(self, stream_client, test_chat):
        response = stream_client.get(f"/api/chat/{test_chat.id}/stream")
        assert response.status_code == 401

    def test_missing_chat(self, stream_client, test_user):
        response = stream_client.get(f"/api/chat/{uuid4()}/stream", headers=auth_headers(test_user))
        assert response.status_code == 404
        assert response.json()["code"] == "not_found:chat"

    def test_private_chat_of_other_user(self, stream_client, test_chat, other_user):
        response = stream_client.get(f"/api/chat/{test_chat.id}/stream", headers=auth_headers(other_user))
        assert response.status_code == 403

    def test_no_streams(self, stream_client, test_user, test_chat):
        response = stream_client.get(f"/api/chat/{test_chat.id}/stream", headers=auth_headers(test_user))
        assert response.status_code == 404
        assert response.json()["code"] == "not_found:stream"

    def test_restores_recent_assistant_message(self, stream_client, db_session, test_user, test_chat):
        self._add_stream(db_session, test_chat)
        message = make_message(db_session, test_chat, role="assistant", text="Finished answer")

        response = stream_client.get(f"/api/chat/{test_chat.id}/stream", headers=auth_headers(test_user))

        assert response.status_code == 200
        events = parse_sse(response.text)
        assert events[0]["type"] == "data-appendMessage"
        assert events[0]["transient"] is True
        assert str(message.id) in events[0]["data"]
        assert events[-1] == "[DONE]"

    def test_empty_stream_for_old_message(self, stream_client, db_session, test_user, test_chat):
        self._add_stream(db_session, test_chat)
        make_message(db_session, test_chat, role="assistant", created_at=utcnow() - timedelta(minutes=5))

        response = stream_client.get(f"/api/chat/{test_chat.id}/stream", headers=auth_headers(test_user))

        assert response.status_code == 200
        assert response.text == ""

    def test_redis_outage_falls_back_to_restore(self, client, db_session, test_user, test_chat):
        from chatapp.main import app
        from chatapp.api.deps import get_stream_context_dependency
        from chatapp.streaming.resumable import ResumableStreamContext

        app.dependency_overrides[get_stream_context_dependency] = (
            lambda: ResumableStreamContext(UnavailableRedis(), poll_interval=0)
        )
        self._add_stream(db_session, test_chat)
        message = make_message(db_session, test_chat, role="assistant", text="Finished answer")

        response = client.get(f"/api/chat/{test_chat.id}/stream", headers=auth_headers(test_user))

        assert response.status_code == 200
        events = parse_sse(response.text)
        assert events[0]["type"] == "data-appendMessage"
        assert str(message.id) in events[0]["data"]

    def test_replays_active_stream(self, stream_client, stream_redis, db_session, test_user, test_chat):
        stream = self._add_stream(db_session, test_chat)
        stream_redis.values[f"resumable-stream:{stream.id}:state"] = "active"
        stream_redis.streams[f"resumable-stream:{stream.id}:chunks"] = [
            ("1-0", {"data": 'data: {"type": "start", "messageId": "m1"}\n\n'}),
            ("2-0", {"data": 'data: {"type": "text-delta", "id": "t1", "delta": "partial"}\n\n'}),
            ("3-0", {"done": "1"}),
        ]

        response = stream_client.get(f"/api/chat/{test_chat.id}/stream", headers=auth_headers(test_user))

        assert response.status_code == 200
        events = parse_sse(response.text)
        assert [e["type"] for e in events] == ["start", "text-delta"]
        assert events[1]["delta"] == "partial"
