"""
접속자 상태를 담는 TTL 캐시 백엔드.

TTL cache backends that hold presence state. The in-process backend mirrors
the default memory store of a cache manager; the redis backend lets presence
survive a process restart and be shared by several workers.
"""

import copy
import json
import time
from collections.abc import Callable
from typing import Any, Final, Protocol

import redis.asyncio as redis
from redis.exceptions import WatchError

from app.config import Settings


# 낙관적 트랜잭션 재시도 횟수 / Attempts of the optimistic WATCH/MULTI loop.
_WATCH_RETRIES_MAX: Final[int] = 16

# 현재 값을 받아 새 값을 돌려주는 함수. 빈 값이면 키를 지운다.
# Maps the current value to the new one; a falsy result deletes the key.
type Mutation = Callable[[Any | None], Any]


class CacheBackend(Protocol):
    """
    접속자 저장소가 의존하는 최소 캐시 인터페이스.
    Minimal cache interface the presence store depends on.
    """

    async def get(self, key: str) -> Any | None: ...

    async def set(self, key: str, value: Any, ttl_sec: int) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def update(self, key: str, mutate: Mutation, ttl_sec: int) -> Any: ...

    async def scan(self, prefix: str) -> list[str]: ...

    async def close(self) -> None: ...


class MemoryCacheBackend:
    """
    프로세스 내부 dict 기반 TTL 캐시.
    In-process dict-backed TTL cache.

    만료된 항목은 조회 시점에 지연 삭제한다. 값은 읽기/쓰기 모두 깊은 복사하여
    호출 측이 저장된 상태를 직접 건드리지 못하게 한다.
    Expired entries are evicted lazily on access. Values are deep-copied on
    both read and write so callers never alias stored state.
    """

    def __init__(self) -> None:
        self._data: dict[str, tuple[Any, float]] = {}

    def _alive(self, key: str) -> bool:
        item = self._data.get(key)
        if item is None:
            return False
        if item[1] <= time.monotonic():
            del self._data[key]
            return False
        return True

    async def get(self, key: str) -> Any | None:
        if not self._alive(key):
            return None
        return copy.deepcopy(self._data[key][0])

    async def set(self, key: str, value: Any, ttl_sec: int) -> None:
        self._data[key] = (copy.deepcopy(value), time.monotonic() + ttl_sec)

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def update(self, key: str, mutate: Mutation, ttl_sec: int) -> Any:
        # 읽기와 쓰기 사이에 await 가 없으므로 이벤트 루프 안에서 원자적이다.
        # No await between read and write, so this is atomic on the loop.
        current = copy.deepcopy(self._data[key][0]) if self._alive(key) else None
        value = mutate(current)
        if value:
            self._data[key] = (copy.deepcopy(value), time.monotonic() + ttl_sec)
        else:
            self._data.pop(key, None)
        return copy.deepcopy(value)

    async def scan(self, prefix: str) -> list[str]:
        return sorted(key for key in list(self._data) if key.startswith(prefix) and self._alive(key))

    async def close(self) -> None:
        self._data.clear()


class RedisCacheBackend:
    """
    redis 기반 TTL 캐시. 값은 JSON 문자열로 저장한다.
    Redis-backed TTL cache storing values as JSON strings.
    """

    def __init__(self, client: redis.Redis) -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisCacheBackend":
        return cls(redis.from_url(url, decode_responses=True))

    async def get(self, key: str) -> Any | None:
        raw = await self._client.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    async def set(self, key: str, value: Any, ttl_sec: int) -> None:
        await self._client.set(key, json.dumps(value, ensure_ascii=False), ex=ttl_sec)

    async def delete(self, key: str) -> None:
        await self._client.delete(key)

    async def update(self, key: str, mutate: Mutation, ttl_sec: int) -> Any:
        """
        WATCH/MULTI 로 읽기-변경-쓰기를 원자적으로 수행한다. 다른 워커가
        중간에 키를 바꾸면 처음부터 다시 시도한다.
        Atomic read-modify-write through WATCH/MULTI; retried from the read
        whenever another worker changes the key in between.
        """
        async with self._client.pipeline(transaction=True) as pipe:
            for _ in range(_WATCH_RETRIES_MAX):
                try:
                    await pipe.watch(key)
                    raw = await pipe.get(key)
                    value = mutate(json.loads(raw) if raw is not None else None)

                    pipe.multi()
                    if value:
                        pipe.set(key, json.dumps(value, ensure_ascii=False), ex=ttl_sec)
                    else:
                        pipe.delete(key)
                    await pipe.execute()
                    return value
                except WatchError:
                    continue

        raise WatchError(f"{key} kept changing; gave up after {_WATCH_RETRIES_MAX} attempts")

    async def scan(self, prefix: str) -> list[str]:
        keys = [key async for key in self._client.scan_iter(match=f"{prefix}*")]
        return sorted(keys)

    async def close(self) -> None:
        await self._client.aclose()


def build_cache_backend(settings: Settings) -> CacheBackend:
    """
    설정의 presence_backend 값에 맞는 캐시 백엔드를 만든다.
    Build the cache backend selected by settings.presence_backend.
    """
    match settings.presence_backend:
        case "redis":
            return RedisCacheBackend.from_url(settings.redis_url)
        case _:
            return MemoryCacheBackend()
