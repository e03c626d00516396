"""HTTP-level tests for the chat and preferences routers."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from WillChat import dependencies
from WillChat.app import app
from WillChat.dependencies import get_conversation_store, get_preferences_store
from WillChat.services.preferences import PreferencesStore
from WillChat.services.storage import InMemoryKeyValueStore


@pytest.fixture
def store(make_store):
    return make_store(initialize=False)


@pytest.fixture
def preferences():
    return PreferencesStore(InMemoryKeyValueStore())


@pytest.fixture
def client(store, preferences):
    app.dependency_overrides[get_conversation_store] = lambda: store
    app.dependency_overrides[get_preferences_store] = lambda: preferences
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


class TestChatRoutes:

    def test_state_initializes_store(self, client):
        res = client.get("/chat/state")

        assert res.status_code == 200
        body = res.json()
        assert len(body["conversations"]) == 1
        assert body["active_conversation_id"] == body["conversations"][0]["id"]
        assert body["active_conversation"]["title"] == "New chat"
        assert body["is_loading"] is False

    def test_send_message_returns_reply(self, client, mock_client):
        res = client.post("/chat/messages", json={"content": "  Hello Will  "})

        assert res.status_code == 200
        messages = res.json()["active_conversation"]["messages"]
        assert [(m["sender"], m["content"]) for m in messages] == [
            ("user", "Hello Will"),
            ("ai", "Hello from Will!"),
        ]
        mock_client.complete.assert_awaited_once()

    def test_blank_message_rejected(self, client):
        res = client.post("/chat/messages", json={"content": "   "})
        assert res.status_code == 400

    def test_conversation_lifecycle(self, client):
        client.post("/chat/messages", json={"content": "first chat"})

        created = client.post("/chat/conversations").json()
        assert len(created["conversations"]) == 2
        new_id = created["active_conversation_id"]
        old_id = created["conversations"][1]["id"]

        renamed = client.patch(f"/chat/conversations/{old_id}", json={"title": "Renamed"}).json()
        assert {c["id"]: c["title"] for c in renamed["conversations"]}[old_id] == "Renamed"

        selected = client.post(f"/chat/conversations/{old_id}/select").json()
        assert selected["active_conversation_id"] == old_id

        remaining = client.delete(f"/chat/conversations/{new_id}").json()
        assert [c["id"] for c in remaining["conversations"]] == [old_id]
        assert remaining["active_conversation_id"] == old_id

    def test_regenerate_replaces_reply(self, client, mock_client):
        sent = client.post("/chat/messages", json={"content": "Tell me a joke"}).json()
        reply_id = sent["active_conversation"]["messages"][1]["id"]
        mock_client.complete.return_value = "A better joke"

        res = client.post(f"/chat/messages/{reply_id}/regenerate")

        messages = res.json()["active_conversation"]["messages"]
        assert len(messages) == 2
        assert messages[1]["content"] == "A better joke"
        assert messages[1]["id"] != reply_id


class TestPreferencesRoutes:

    def test_pro_mode_toggle(self, client):
        assert client.get("/preferences/pro-mode").json() == {"is_pro_mode": False}
        assert client.post("/preferences/pro-mode/activate").json() == {"is_pro_mode": True}
        assert client.get("/preferences/pro-mode").json() == {"is_pro_mode": True}
        assert client.post("/preferences/pro-mode/deactivate").json() == {"is_pro_mode": False}


class TestAppLifespan:

    def test_shutdown_without_requests_does_not_build_store(self, monkeypatch):
        monkeypatch.setattr(dependencies, "_store_singleton", None)
        monkeypatch.setattr(dependencies, "CompletionClient", MagicMock(side_effect=AssertionError("store built")))

        with TestClient(app):
            pass

        assert dependencies._store_singleton is None

    def test_shutdown_drains_existing_store(self, monkeypatch, make_store):
        store = make_store()
        store.wait_for_background_tasks = AsyncMock()
        monkeypatch.setattr(dependencies, "_store_singleton", store)

        with TestClient(app):
            pass

        store.wait_for_background_tasks.assert_awaited_once()
