"""
실시간 접속자(presence) 코디네이터.

방 입장/퇴장/연결 종료에 따른 접속자 목록 변경을 직렬화하고, 변경 직후
해당 방 전체에 접속자 목록과 인원 수를 브로드캐스트한다.

Presence coordinator. Serializes every room-membership mutation and follows
each one with a broadcast of the new roster and count to the affected room.

Locking:
- Roster changes go through PresenceStore.update_roster, an atomic
  read-modify-write in the cache, so workers sharing one redis never lose
  each other's update.
- Per-room asyncio.Lock held across the update and its broadcast, so the
  broadcasts of one worker leave in the order its updates were applied.
  Locks live in a weak-value table and vanish once no one holds them.
- Per-connection asyncio.Lock so that events from one socket (join, exit,
  disconnect) are applied one at a time and in arrival order.
"""

import asyncio
import logging
import weakref
from dataclasses import dataclass, field

from app.errors import PresenceStoreError
from app.models.model_io_presence import (
    EVENT_USER_COUNT,
    EVENT_USER_EXIT,
    EVENT_USER_JOIN,
    EVENT_USER_LIST,
    RoomPresenceSnapshot,
    RosterEntry,
    UserCountPayload,
    UserListPayload,
    exit_notice,
    join_notice,
)
from app.services.service_delivery import DeliveryFanout
from app.services.service_presence_store import PresenceStore


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ConnectionSession:
    """
    연결 하나의 임시 상태. 연결당 방은 최대 하나.
    Transient per-connection state; at most one room per connection.
    """

    handle: str
    identity: str | None = None
    display_name: str | None = None
    room: str | None = None
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    @property
    def in_room(self) -> bool:
        return self.room is not None

    def clear_room(self) -> None:
        self.display_name = None
        self.room = None


class PresenceCoordinator:
    """
    접속자 상태 머신: Connected(no room) ⇄ Connected(in room R).
    Presence state machine: Connected(no room) ⇄ Connected(in room R).

    - 같은 방 재입장은 무시한다. / Re-joining the current room is a no-op.
    - 다른 방으로 입장하면 기존 방 퇴장(브로드캐스트 포함) 후 새 방에 입장한다.
      Joining another room exits the current one (with its broadcast) first.
    - disconnect 는 세션을 테이블에서 꺼내므로 중복 신호는 아무 것도 하지 않는다.
      disconnect pops the session, so duplicate signals are no-ops.
    """

    def __init__(self, store: PresenceStore, fanout: DeliveryFanout) -> None:
        self._store = store
        self._fanout = fanout
        self._sessions: dict[str, ConnectionSession] = {}
        # 잡고 있거나 기다리는 쪽이 없으면 락은 사라진다.
        # A lock disappears once nobody holds or awaits it.
        self._room_locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    def _room_lock(self, room: str) -> asyncio.Lock:
        # 조회와 삽입 사이에 await 가 없으므로 이벤트 루프 안에서 원자적이다.
        # No await between lookup and insert, so this is atomic on the loop.
        lock = self._room_locks.get(room)
        if lock is None:
            lock = asyncio.Lock()
            self._room_locks[room] = lock
        return lock

    def session(self, handle: str) -> ConnectionSession | None:
        return self._sessions.get(handle)

    # -------------------------------
    # Connection lifecycle
    # -------------------------------

    async def connect(self, handle: str) -> ConnectionSession:
        """새 연결의 세션을 만든다. 이미 있으면 그대로 돌려준다.
        Create the session of a new connection, or return the existing one.
        """
        session = self._sessions.get(handle)
        if session is None:
            session = ConnectionSession(handle=handle)
            self._sessions[handle] = session
            logger.debug("Connected: %s", handle)
        return session

    async def disconnect(self, handle: str) -> bool:
        """
        전송 계층이 연결을 닫을 때 호출된다. 연결당 최대 한 번만 정리한다.
        Called by the transport on teardown; cleans up at most once.
        """
        session = self._sessions.pop(handle, None)
        if session is None:
            return False

        logger.debug("Disconnected: %s", handle)
        async with session.lock:
            if not session.in_room:
                return False
            return await self._leave_locked(session)

    # -------------------------------
    # Client events
    # -------------------------------

    async def login(self, handle: str, identity: str) -> bool:
        """
        이 연결을 사용자의 최신 연결로 등록한다. 브로드캐스트는 없다.
        Register this connection as the identity's latest one; no broadcast.
        """
        session = self._sessions.get(handle)
        if session is not None:
            session.identity = identity

        try:
            await self._store.set_latest_connection(identity, handle)
        except PresenceStoreError as exc:
            logger.warning("Dropped login of %s on %s: %s", identity, handle, exc)
            return False
        return True

    async def join(self, handle: str, display_name: str, room: str) -> bool:
        """
        닉네임으로 방에 입장한다. 성공하면 방 전체에 입장 알림, 접속자 목록,
        인원 수를 차례로 브로드캐스트한다.
        Join a room under a nickname; on success broadcast the join notice,
        roster and count to the room, in that order.

        Returns False when nothing changed (same room, unknown connection,
        store failure).
        """
        session = self._sessions.get(handle)
        if session is None:
            logger.warning("Ignored join to %s from unknown connection %s", room, handle)
            return False

        async with session.lock:
            if session.room == room:
                return False

            if session.in_room:
                await self._leave_locked(session)
                if session.in_room:
                    # 기존 방 퇴장이 저장소 오류로 실패했다. 입장도 버린다.
                    # Leaving the previous room failed in the store; drop the join too.
                    return False

            return await self._join_locked(session, display_name, room)

    async def exit(self, handle: str) -> bool:
        """
        현재 방에서 퇴장한다. 저장소 오류면 세션은 방에 남아 다시 시도할 수 있다.
        Leave the current room. On a store failure the session stays in the
        room so the client can retry.
        """
        session = self._sessions.get(handle)
        if session is None or not session.in_room:
            return False

        async with session.lock:
            if not session.in_room:
                return False
            return await self._leave_locked(session)

    async def get_room_user_list(self, room: str) -> RoomPresenceSnapshot | None:
        """
        방 전체에 현재 접속자 목록/인원 수를 다시 브로드캐스트한다.
        Re-broadcast the current roster and count to the whole room.
        """
        async with self._room_lock(room):
            try:
                roster = await self._store.get_roster(room)
            except PresenceStoreError as exc:
                logger.warning("Dropped roster resync for %s: %s", room, exc)
                return None

            await self._broadcast_roster(room, roster)
            return _snapshot(room, roster)

    async def snapshot_room(self, room: str) -> RoomPresenceSnapshot:
        """브로드캐스트 없이 현재 접속자 목록을 읽는다.
        Read the current roster without broadcasting.

        Raises PresenceStoreError when the store is unavailable.
        """
        roster = await self._store.get_roster(room)
        return _snapshot(room, roster)

    async def list_rooms(self) -> list[str]:
        return await self._store.list_rooms()

    # -------------------------------
    # Internals (caller holds session.lock)
    # -------------------------------

    async def _join_locked(self, session: ConnectionSession, display_name: str, room: str) -> bool:
        entry = RosterEntry(handle=session.handle, display_name=display_name)

        async with self._room_lock(room):
            await self._fanout.enter_room(session.handle, room)

            try:
                roster = await self._store.update_roster(room, lambda current: [*current, entry])
            except PresenceStoreError as exc:
                logger.warning("Dropped join of %s to %s: %s", display_name, room, exc)
                await self._fanout.leave_room(session.handle, room)
                return False

            session.display_name = display_name
            session.room = room
            logger.info("%s (%s) joined %s; %d present", display_name, session.handle, room, len(roster))

            await self._fanout.broadcast_to_room(room, EVENT_USER_JOIN, join_notice(display_name, room))
            await self._broadcast_roster(room, roster)
            return True

    async def _leave_locked(self, session: ConnectionSession) -> bool:
        room = session.room
        display_name = session.display_name or ""
        if room is None:
            return False

        found = False

        def remove_own_entry(current: list[RosterEntry]) -> list[RosterEntry]:
            nonlocal found
            kept = [entry for entry in current if entry.handle != session.handle]
            found = len(kept) != len(current)
            return kept

        async with self._room_lock(room):
            try:
                roster = await self._store.update_roster(room, remove_own_entry)
            except PresenceStoreError as exc:
                logger.warning("Dropped exit of %s from %s: %s", display_name, room, exc)
                return False

            session.clear_room()

            if not found:
                # 목록이 이미 어긋나 있다 (TTL 만료 등). 구독만 정리하고 넘어간다.
                # Roster already inconsistent (e.g. TTL expiry); only unsubscribe.
                logger.warning("%s (%s) not found in roster of %s", display_name, session.handle, room)
                await self._fanout.leave_room(session.handle, room)
                return False

            logger.info("%s (%s) left %s; %d present", display_name, session.handle, room, len(roster))

            await self._fanout.broadcast_to_room(room, EVENT_USER_EXIT, exit_notice(display_name))
            await self._fanout.leave_room(session.handle, room)
            await self._broadcast_roster(room, roster)
            return True

    async def _broadcast_roster(self, room: str, roster: list[RosterEntry]) -> None:
        names = [entry.display_name for entry in roster]
        await self._fanout.broadcast_to_room(
            room,
            EVENT_USER_LIST,
            UserListPayload(user_list=names).model_dump(by_alias=True),
        )
        await self._fanout.broadcast_to_room(
            room,
            EVENT_USER_COUNT,
            UserCountPayload(user_count=len(names)).model_dump(by_alias=True),
        )


def _snapshot(room: str, roster: list[RosterEntry]) -> RoomPresenceSnapshot:
    names = [entry.display_name for entry in roster]
    return RoomPresenceSnapshot(room=room, user_list=names, user_count=len(names))
