import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Final

from pydantic import ValidationError
from redis.exceptions import RedisError

from app.config import Settings
from app.errors import PresenceStoreError
from app.internal.cache_store import CacheBackend
from app.models.model_io_presence import RosterEntry


logger = logging.getLogger(__name__)

_ROSTER_SEGMENT: Final[str] = "roomUsers"
_CLIENT_SEGMENT: Final[str] = "clientId"


class PresenceStore:
    """
    방별 접속자 목록과 사용자별 최신 연결 id 를 캐시에 보관하는 저장소.
    Keeps per-room rosters and per-identity latest connection handles in a
    TTL cache.

    이 저장소를 변경하는 것은 PresenceCoordinator 뿐이다. 전달(fan-out) 계층은
    최신 연결 조회만 한다.
    Only the PresenceCoordinator mutates this store; the delivery layer only
    reads latest connections.

    모든 캐시 왕복은 timeout_sec 로 제한되며, 시간 초과나 백엔드 오류는
    PresenceStoreError 로 변환된다.
    Every cache round trip is bounded by timeout_sec; timeouts and backend
    failures surface as PresenceStoreError.
    """

    def __init__(
        self,
        backend: CacheBackend,
        *,
        ttl_sec: int,
        timeout_sec: float,
        key_prefix: str = "presence",
    ) -> None:
        self._backend = backend
        self._ttl_sec = ttl_sec
        self._timeout_sec = timeout_sec
        self._prefix = key_prefix

    @classmethod
    def from_settings(cls, settings: Settings, backend: CacheBackend) -> "PresenceStore":
        return cls(
            backend,
            ttl_sec=settings.presence_ttl_sec,
            timeout_sec=settings.store_timeout_sec,
            key_prefix=settings.presence_key_prefix,
        )

    def _roster_key(self, room: str) -> str:
        return f"{self._prefix}:{_ROSTER_SEGMENT}:{room}"

    def _client_key(self, identity: str) -> str:
        return f"{self._prefix}:{_CLIENT_SEGMENT}:{identity}"

    async def _call[T](self, operation: str, awaitable: Awaitable[T]) -> T:
        try:
            async with asyncio.timeout(self._timeout_sec):
                return await awaitable
        except TimeoutError as exc:
            raise PresenceStoreError(
                f"{operation} timed out after {self._timeout_sec}s"
            ) from exc
        except (RedisError, OSError, ValueError) as exc:
            raise PresenceStoreError(f"{operation} failed: {exc}") from exc

    async def get_roster(self, room: str) -> list[RosterEntry]:
        """방 접속자 목록을 입장 순서대로 반환한다(없으면 빈 리스트).
        Return the room roster in join order (empty when absent).
        """
        raw = await self._call("get_roster", self._backend.get(self._roster_key(room)))
        return self._decode_roster(room, raw)

    def _decode_roster(self, room: str, raw: object) -> list[RosterEntry]:
        if not raw:
            return []

        try:
            return [RosterEntry.model_validate(item) for item in raw]
        except (ValidationError, TypeError) as exc:
            raise PresenceStoreError(f"corrupt roster for room {room!r}: {exc}") from exc

    async def set_roster(self, room: str, entries: list[RosterEntry]) -> None:
        """방 접속자 목록을 기록한다. 비어 있으면 키를 삭제한다.
        Write the room roster; an empty roster deletes the key.
        """
        key = self._roster_key(room)
        if not entries:
            await self._call("set_roster", self._backend.delete(key))
            return

        value = [entry.model_dump(by_alias=True) for entry in entries]
        await self._call("set_roster", self._backend.set(key, value, self._ttl_sec))

    async def update_roster(
        self,
        room: str,
        mutate: Callable[[list[RosterEntry]], list[RosterEntry]],
    ) -> list[RosterEntry]:
        """
        방 접속자 목록을 원자적으로 읽고-바꾸고-쓴다. 여러 워커가 같은 캐시를
        공유해도 서로의 변경을 덮어쓰지 않는다. 빈 목록이 되면 키를 삭제한다.
        Atomically read, mutate and write the room roster, so workers sharing
        one cache never overwrite each other. An empty result deletes the key.

        충돌 시 mutate 가 다시 호출될 수 있으며 마지막 결과만 기록된다.
        mutate may run again after a conflict; only its last result is written.
        """

        def apply(raw: object) -> list[dict[str, str]]:
            entries = self._decode_roster(room, raw)
            return [entry.model_dump(by_alias=True) for entry in mutate(entries)]

        value = await self._call(
            "update_roster",
            self._backend.update(self._roster_key(room), apply, self._ttl_sec),
        )
        return self._decode_roster(room, value)

    async def get_latest_connection(self, identity: str) -> str | None:
        """사용자의 최신 연결 id 를 반환한다(없으면 None).
        Return the identity's latest connection handle, or None.
        """
        value = await self._call(
            "get_latest_connection",
            self._backend.get(self._client_key(identity)),
        )
        return value if isinstance(value, str) else None

    async def set_latest_connection(self, identity: str, handle: str) -> None:
        """사용자의 최신 연결 id 를 덮어쓴다.
        Overwrite the identity's latest connection handle.
        """
        await self._call(
            "set_latest_connection",
            self._backend.set(self._client_key(identity), handle, self._ttl_sec),
        )

    async def list_rooms(self) -> list[str]:
        """접속자가 있는 방 이름 목록 (진단용).
        Names of rooms that currently hold a roster (diagnostics).
        """
        prefix = self._roster_key("")
        keys = await self._call("list_rooms", self._backend.scan(prefix))
        return [key[len(prefix):] for key in keys]
