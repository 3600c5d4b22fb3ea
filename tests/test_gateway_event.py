# tests/test_gateway_event.py
from __future__ import annotations

import pytest
import socketio
from pydantic import ValidationError

from app.config import Settings
from app.gateways.gateway_event import build_socketio_server, handle_inbound, register_gateway_handlers
from app.models.model_io_presence import (
    GetRoomUserListEvent,
    RoomExitEvent,
    RoomJoinEvent,
    UserLoginEvent,
    parse_inbound_event,
)


# -----------------------------
# Payload validation
# -----------------------------

def test_parse_known_events():
    assert parse_inbound_event("userLogin", {"id": "u1"}) == UserLoginEvent(id="u1")
    assert parse_inbound_event("roomJoin", {"nickname": "Alice", "room": "room1"}) == RoomJoinEvent(
        nickname="Alice", room="room1"
    )
    assert parse_inbound_event("roomExit", None) == RoomExitEvent()
    assert parse_inbound_event("getRoomUserList", "room1") == GetRoomUserListEvent(room="room1")


def test_parse_numeric_room_as_string():
    event = parse_inbound_event("roomJoin", {"nickname": "Alice", "room": 42})
    assert event.room == "42"


@pytest.mark.parametrize(
    ("event_name", "data"),
    [
        ("userLogin", {}),
        ("roomJoin", {"nickname": "", "room": "room1"}),
        ("roomJoin", {"nickname": "Alice"}),
        ("getRoomUserList", None),
        ("unknownEvent", {}),
    ],
)
def test_parse_rejects_malformed_payloads(event_name, data):
    with pytest.raises(ValidationError):
        parse_inbound_event(event_name, data)


# -----------------------------
# Dispatch
# -----------------------------

@pytest.mark.asyncio
async def test_handle_inbound_routes_to_coordinator(coordinator, store, transport):
    await coordinator.connect("c1")

    await handle_inbound(coordinator, "c1", "userLogin", {"id": "u1"})
    await handle_inbound(coordinator, "c1", "roomJoin", {"nickname": "Alice", "room": "room1"})

    assert await store.get_latest_connection("u1") == "c1"
    assert (await coordinator.snapshot_room("room1")).user_list == ["Alice"]

    await handle_inbound(coordinator, "c1", "getRoomUserList", "room1")
    assert transport.payloads("userList", to="room1")[-1] == {"userList": ["Alice"]}

    await handle_inbound(coordinator, "c1", "roomExit", None)
    assert (await coordinator.snapshot_room("room1")).user_list == []


@pytest.mark.asyncio
async def test_handle_inbound_drops_invalid_payload(coordinator, transport):
    await coordinator.connect("c1")

    await handle_inbound(coordinator, "c1", "roomJoin", {"room": "room1"})

    assert transport.emits == []
    assert coordinator.session("c1").room is None


class RecordingServer:
    """Collects handlers registered through sio.event / sio.on."""

    def __init__(self) -> None:
        self.handlers = {}

    def event(self, handler):
        self.handlers[handler.__name__] = handler
        return handler

    def on(self, name):
        def decorator(handler):
            self.handlers[name] = handler
            return handler
        return decorator


@pytest.mark.asyncio
async def test_registered_handlers_drive_lifecycle(coordinator):
    sio = RecordingServer()
    register_gateway_handlers(sio, coordinator)

    assert set(sio.handlers) == {
        "connect", "disconnect", "userLogin", "roomJoin", "roomExit", "getRoomUserList",
    }

    await sio.handlers["connect"]("c1", {})
    await sio.handlers["roomJoin"]("c1", {"nickname": "Alice", "room": "room1"})
    assert (await coordinator.snapshot_room("room1")).user_list == ["Alice"]

    await sio.handlers["disconnect"]("c1")
    await sio.handlers["disconnect"]("c1")
    assert (await coordinator.snapshot_room("room1")).user_list == []


# -----------------------------
# Server construction
# -----------------------------

def test_redis_backend_shares_emits_across_workers():
    sio = build_socketio_server(Settings(presence_backend="redis", redis_url="redis://cache:6379/0"))
    assert isinstance(sio.manager, socketio.AsyncRedisManager)


def test_memory_backend_keeps_emits_local():
    sio = build_socketio_server(Settings(presence_backend="memory"))
    assert not isinstance(sio.manager, socketio.AsyncRedisManager)
