"""
Shared fixtures and fakes for the WillChat test suite.

DATABASE_URL is pointed at an in-memory SQLite database BEFORE any WillChat
module is imported, because WillChat.database builds its engine at import
time. No test talks to a real completion provider: the completion client and
title generator are replaced with AsyncMock-backed fakes.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"

from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402

from WillChat.services.conversation_store import ConversationStore  # noqa: E402
from WillChat.services.storage import ConversationStorage, InMemoryKeyValueStore  # noqa: E402

SYSTEM_PROMPT = "You are Will."


def make_mock_client(reply="Hello from Will!", side_effect=None):
    """A stand-in for CompletionClient with an awaitable ``complete``."""
    client = MagicMock()
    client.complete = AsyncMock(return_value=reply, side_effect=side_effect)
    return client


def make_mock_title_generator(title="Generated Title", side_effect=None):
    generator = MagicMock()
    generator.generate = AsyncMock(return_value=title, side_effect=side_effect)
    return generator


@pytest.fixture
def kv():
    return InMemoryKeyValueStore()


@pytest.fixture
def storage(kv):
    return ConversationStorage(kv)


@pytest.fixture
def mock_client():
    return make_mock_client()


@pytest.fixture
def mock_title_generator():
    return make_mock_title_generator()


@pytest.fixture
def make_store(storage, mock_client, mock_title_generator):
    """Factory for initialized stores sharing the test's storage and fakes."""

    def _make(client=None, title_generator=None, initialize=True):
        store = ConversationStore(
            storage=storage,
            client=client or mock_client,
            title_generator=title_generator or mock_title_generator,
            system_prompt=SYSTEM_PROMPT,
        )
        if initialize:
            store.initialize()
        return store

    return _make
