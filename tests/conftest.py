import json

import pytest
from fastapi.testclient import TestClient

from backend.llm_providers import ProviderUnavailableError
from backend.main import app, get_provider, get_store
from backend.store import ChatStore


class FakeProvider:
    def __init__(self, text="", error=None):
        self.text = text
        self.error = error
        self.calls = []

    async def complete(self, system, user):
        self.calls.append((system, user))
        if self.error:
            raise self.error
        return self.text


def pitch_deck(n=6):
    return {
        "title": "Acme Robotics: Series A!",
        "subtitle": "Automating the warehouse",
        "slides": [
            {
                "title": f"Section {i + 1}",
                "content": [f"Point {i + 1}.a", f"Point {i + 1}.b"],
                "notes": f"Talk about section {i + 1}" if i % 2 == 0 else None,
            }
            for i in range(n)
        ],
    }


def fenced(obj):
    return "```json\n" + json.dumps(obj) + "\n```"


@pytest.fixture
def deck_draft():
    return pitch_deck()


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def chat_store():
    return ChatStore()


@pytest.fixture
def client(provider, chat_store):
    app.dependency_overrides[get_provider] = lambda: provider
    app.dependency_overrides[get_store] = lambda: chat_store
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def unavailable():
    return ProviderUnavailableError("gemini is not available right now. Please try again.")
