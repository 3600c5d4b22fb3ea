# tests/test_routes.py
from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from app.config import Settings
from app.main import create_app
from app.models.model_io_presence import RosterEntry
from app.services.service_presence_store import PresenceStore


@pytest.fixture
def settings() -> Settings:
    return Settings(presence_backend="memory", room_names=["자유", "공부"])


@pytest.fixture
def client(settings):
    app = create_app(settings)
    with TestClient(app) as test_client:
        yield test_client


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["presence_backend"] == "memory"


def test_rooms_seeded_on_startup(client):
    response = client.get("/room")

    assert response.status_code == 200
    body = response.json()
    assert body["statusCode"] == 200
    assert [room["name"] for room in body["data"]] == ["자유", "공부"]


def test_post_and_list_room_chats(client):
    room_id = client.get("/room").json()["data"][0]["id"]

    posted = client.post(f"/room/chats/{room_id}", json={"content": "hello"}, headers={"X-User-Id": "u1"})
    assert posted.status_code == 200
    assert posted.json()["data"]["content"] == "hello"

    listed = client.get(f"/room/chats/{room_id}", params={"page": 1})
    assert [chat["content"] for chat in listed.json()["data"]] == ["hello"]


def test_room_chat_requires_user_header(client):
    response = client.post("/room/chats/1", json={"content": "hello"})
    assert response.status_code == 401


def test_room_chat_unknown_room_is_404(client):
    response = client.post("/room/chats/999", json={"content": "hello"}, headers={"X-User-Id": "u1"})
    assert response.status_code == 404


def test_dm_flow(client):
    opened = client.post("/dm/create/DMRoom", json={"receiverId": "u2"}, headers={"X-User-Id": "u1"})
    assert opened.status_code == 200
    dm_room_id = opened.json()["data"]["DMRoomId"]

    sent = client.post(
        f"/dm/chats/{dm_room_id}",
        json={"receiverId": "u2", "content": "hi"},
        headers={"X-User-Id": "u1"},
    )
    assert sent.status_code == 200

    rooms = client.get("/dm", headers={"X-User-Id": "u2"}).json()["data"]
    assert rooms[0]["DMRoomId"] == dm_room_id
    assert rooms[0]["lastDm"]["content"] == "hi"

    left = client.delete(f"/dm/exit/{dm_room_id}", headers={"X-User-Id": "u2"})
    assert left.status_code == 200
    assert left.json()["data"] == {}


def test_presence_snapshot_reads_roster(client):
    container = client.app.state.container
    store = PresenceStore.from_settings(container.settings, container.cache_backend)
    assert client.get("/presence/room1").json()["data"] == {
        "room": "room1",
        "userList": [],
        "userCount": 0,
    }

    async def seed_roster() -> None:
        await store.set_roster("room1", [RosterEntry(handle="c1", display_name="Alice")])

    client.portal.call(seed_roster)

    snapshot = client.get("/presence/room1").json()["data"]
    assert snapshot["userList"] == ["Alice"]
    assert snapshot["userCount"] == 1
    assert client.get("/presence").json()["data"] == ["room1"]
