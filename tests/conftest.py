# tests/conftest.py
from __future__ import annotations

import asyncio
from collections import defaultdict
from typing import Any

import pytest

from app.internal.cache_store import MemoryCacheBackend, Mutation
from app.internal.chat_repository import ChatRepository
from app.services.service_delivery import DeliveryFanout
from app.services.service_presence import PresenceCoordinator
from app.services.service_presence_store import PresenceStore


class FakeTransport:
    """Records room subscriptions and emits the way socketio.AsyncServer would."""

    def __init__(self) -> None:
        self.rooms: dict[str, set[str]] = defaultdict(set)
        self.emits: list[tuple[str, Any, str | None]] = []

    async def enter_room(self, sid: str, room: str) -> None:
        self.rooms[room].add(sid)

    async def leave_room(self, sid: str, room: str) -> None:
        self.rooms[room].discard(sid)

    async def emit(self, event: str, data: Any = None, to: str | None = None) -> None:
        self.emits.append((event, data, to))

    def payloads(self, event: str, to: str | None = None) -> list[Any]:
        return [d for e, d, t in self.emits if e == event and (to is None or t == to)]

    def names(self, to: str | None = None) -> list[str]:
        return [e for e, _, t in self.emits if to is None or t == to]


class YieldingCacheBackend(MemoryCacheBackend):
    """Memory cache that gives up the event loop around every round trip,
    so concurrent handlers interleave exactly at the store-I/O boundary."""

    async def get(self, key: str) -> Any | None:
        await asyncio.sleep(0)
        value = await super().get(key)
        await asyncio.sleep(0)
        return value

    async def set(self, key: str, value: Any, ttl_sec: int) -> None:
        await asyncio.sleep(0)
        await super().set(key, value, ttl_sec)
        await asyncio.sleep(0)

    async def update(self, key: str, mutate: Mutation, ttl_sec: int) -> Any:
        await asyncio.sleep(0)
        value = await super().update(key, mutate, ttl_sec)
        await asyncio.sleep(0)
        return value


class HangingCacheBackend(MemoryCacheBackend):
    """Cache whose reads never answer in time."""

    async def get(self, key: str) -> Any | None:
        await asyncio.sleep(10)
        return None

    async def update(self, key: str, mutate: Mutation, ttl_sec: int) -> Any:
        await asyncio.sleep(10)
        return None


class BrokenCacheBackend(MemoryCacheBackend):
    """Cache whose writes fail like a dropped redis connection while `broken` is set."""

    def __init__(self, broken: bool = True) -> None:
        super().__init__()
        self.broken = broken

    def _check(self) -> None:
        if self.broken:
            raise ConnectionError("cache unavailable")

    async def set(self, key: str, value: Any, ttl_sec: int) -> None:
        self._check()
        await super().set(key, value, ttl_sec)

    async def delete(self, key: str) -> None:
        self._check()
        await super().delete(key)

    async def update(self, key: str, mutate: Mutation, ttl_sec: int) -> Any:
        self._check()
        return await super().update(key, mutate, ttl_sec)


def make_store(backend: MemoryCacheBackend, timeout_sec: float = 1.0) -> PresenceStore:
    return PresenceStore(backend, ttl_sec=60, timeout_sec=timeout_sec, key_prefix="test")


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def backend() -> YieldingCacheBackend:
    return YieldingCacheBackend()


@pytest.fixture
def store(backend) -> PresenceStore:
    return make_store(backend)


@pytest.fixture
def fanout(transport, store) -> DeliveryFanout:
    return DeliveryFanout(transport, store)


@pytest.fixture
def coordinator(store, fanout) -> PresenceCoordinator:
    return PresenceCoordinator(store, fanout)


@pytest.fixture
def repository() -> ChatRepository:
    return ChatRepository()
