"""
Shared fixtures: in-memory Redis, fake text generators and an API client.
"""

from typing import List, Optional

import fakeredis
import pytest
from fastapi.testclient import TestClient

from agent.suggestions import SuggestionAgent
from api.models import SimpleStats
from core.store import DocumentStore


class FakeGenerator:
    """Text generator returning a canned answer (or raising) and recording prompts"""

    def __init__(self, response: str = "", error: Optional[Exception] = None):
        self.response = response
        self.error = error
        self.prompts: List[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.response


def make_store() -> DocumentStore:
    client = fakeredis.FakeAsyncRedis(server=fakeredis.FakeServer(), decode_responses=True)
    return DocumentStore(client, prefix="test")


@pytest.fixture
def store() -> DocumentStore:
    return make_store()


@pytest.fixture
def ab_stats() -> List[SimpleStats]:
    """A: avg 50, 1 click (score 52). B: avg 90, 0 clicks (score 90)."""
    return [
        SimpleStats(variant_id="A", avg_scroll=50.0, clicks=1),
        SimpleStats(variant_id="B", avg_scroll=90.0, clicks=0),
    ]


@pytest.fixture
def client():
    """API client over a fresh in-memory store and an agent without AI credentials."""
    from main import app

    app.state.store = make_store()
    app.state.agent = SuggestionAgent(None)
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.state.store = None
    app.state.agent = None


def post_event(client: TestClient, session_id: str, event_type: str, variant_id=None, **payload):
    body = {"sessionId": session_id, "eventType": event_type, "payload": payload}
    if variant_id is not None:
        body["variantId"] = variant_id
    response = client.post("/api/events", json=body)
    assert response.status_code == 200, response.text
    return response.json()["id"]


def seed_ab_events(client: TestClient):
    """Three A events (scrolls 40 and 60, one click) and one B scroll at 90."""
    post_event(client, "s1", "scroll", "A", scrollPercent=40)
    post_event(client, "s1", "scroll", "A", scrollPercent=60)
    post_event(client, "s2", "click", "A", target="cta")
    post_event(client, "s3", "scroll", "B", scrollPercent=90)
