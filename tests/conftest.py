"""Pytest configuration and shared fixtures."""

import json
from types import SimpleNamespace

import httpx
import pytest
from fastapi.testclient import TestClient

from memoriza.models import Flashcard, FlashcardSet

UPSTREAM = "http://test-upstream:8080"


class BodyStream(httpx.AsyncByteStream):
    """Reply body that is only produced when the client iterates it."""

    def __init__(self, body: bytes):
        self._body = body

    async def __aiter__(self):
        yield self._body


def streamed_response(status: int, body) -> httpx.Response:
    if isinstance(body, bytes):
        data, content_type = body, "application/octet-stream"
    else:
        data, content_type = json.dumps(body).encode(), "application/json"
    headers = {"content-type": content_type, "content-length": str(len(data))}
    return httpx.Response(status, headers=headers, stream=BodyStream(data))


@pytest.fixture(autouse=True)
def set_test_env(monkeypatch):
    """Set test environment variables for all tests."""
    monkeypatch.setenv("UPSTREAM_URL", UPSTREAM)
    monkeypatch.setenv("USE_UPSTREAM", "false")
    monkeypatch.setenv("UPSTREAM_TIMEOUT", "5")
    monkeypatch.delenv("MEMORIZA_TOKEN", raising=False)


@pytest.fixture
def upstream_generate_payload():
    """Upstream reply to a generate call, with numeric ids as the backend sends them."""
    return {
        "flashcard_set_id": 42,
        "flashcards": [
            {
                "id": 1,
                "flashcard_set_id": 42,
                "card_order": 1,
                "question_text": "What are the four chambers of the heart?",
                "answer_text": "<p><strong>Right atrium</strong>, right ventricle, left atrium, left ventricle.</p>",
                "created_at": "2025-05-01T10:00:00Z",
                "updated_at": "2025-05-01T10:00:00Z",
            },
            {
                "id": 2,
                "flashcard_set_id": 42,
                "card_order": 2,
                "question_text": "What is cardiac output?",
                "answer_text": "<ul><li>CO = SV &times; HR</li></ul>",
                "created_at": "2025-05-01T10:00:00Z",
                "updated_at": "2025-05-01T10:00:00Z",
            },
        ],
    }


@pytest.fixture
def sample_flashcards():
    """Three cards in set order."""
    return [
        Flashcard(id="1", topic="Cardiology", question="Q1", answer="<p>A1</p>", card_order=1),
        Flashcard(id="2", topic="Cardiology", question="Q2", answer="<p>A2</p>", card_order=2),
        Flashcard(id="3", topic="Cardiology", question="Q3", answer="<p>A3</p>", card_order=3),
    ]


@pytest.fixture
def sample_sets():
    """Flashcard sets as listed for a user's dashboard."""
    return [
        FlashcardSet(
            id="10",
            user_id="u1",
            topic="Cardiology",
            created_at="2025-04-01T08:00:00Z",
            updated_at="2025-04-02T09:30:00Z",
            flashcard_count=10,
        ),
        FlashcardSet(
            id="11",
            user_id="u1",
            topic="Neurology",
            created_at="2025-04-03T08:00:00Z",
            updated_at="2025-04-05T14:15:00Z",
            flashcard_count=8,
        ),
        FlashcardSet(
            id="12",
            user_id="u1",
            topic="cardiac surgery",
            created_at="2025-04-04T08:00:00Z",
            updated_at="2025-04-04T08:00:00Z",
            flashcard_count=5,
        ),
    ]


@pytest.fixture
def mock_upstream(monkeypatch):
    """Route every httpx.AsyncClient through an in-memory upstream.

    Register replies in `routes[(method, path)] = (status, body)`; body may be
    a JSON-able object or raw bytes. Every request seen is kept in `calls`.
    Set `fail` to an exception to simulate a connection failure.
    """
    upstream = SimpleNamespace(calls=[], routes={}, fail=None)

    def handler(request: httpx.Request) -> httpx.Response:
        upstream.calls.append(request)
        if upstream.fail is not None:
            raise upstream.fail
        key = (request.method, request.url.path)
        if key not in upstream.routes:
            return streamed_response(404, {"error": "route not found"})
        status, body = upstream.routes[key]
        return streamed_response(status, body)

    real_async_client = httpx.AsyncClient

    def make_client(**kwargs):
        kwargs.pop("transport", None)
        return real_async_client(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(httpx, "AsyncClient", make_client)
    return upstream


@pytest.fixture
def test_client():
    """FastAPI TestClient for integration tests."""
    from memoriza.main import app

    return TestClient(app)


@pytest.fixture
def auth_headers():
    return {"Authorization": "Bearer test-token"}
