# tests/test_delivery.py
from __future__ import annotations

import pytest

from app.services.service_delivery import DeliveryFanout

from conftest import HangingCacheBackend, make_store


@pytest.mark.asyncio
async def test_broadcast_targets_room(fanout, transport):
    await fanout.broadcast_to_room("room1", "message", {"content": "hi"})

    assert transport.emits == [("message", {"content": "hi"}, "room1")]


@pytest.mark.asyncio
async def test_send_to_identity_uses_latest_connection(coordinator, fanout, transport):
    await coordinator.connect("c1")
    await coordinator.connect("c2")
    await coordinator.login("c1", "u1")
    await coordinator.login("c2", "u1")

    assert await fanout.send_to_identity("u1", "dm", {"content": "hi"}) is True
    assert transport.emits == [("dm", {"content": "hi"}, "c2")]


@pytest.mark.asyncio
async def test_send_to_offline_identity_is_silent(fanout, transport):
    assert await fanout.send_to_identity("nobody", "dm", {"content": "hi"}) is False
    assert transport.emits == []


@pytest.mark.asyncio
async def test_send_to_identity_treats_store_failure_as_offline(transport):
    store = make_store(HangingCacheBackend(), timeout_sec=0.05)
    fanout = DeliveryFanout(transport, store)

    assert await fanout.send_to_identity("u1", "dm", {"content": "hi"}) is False
    assert transport.emits == []
