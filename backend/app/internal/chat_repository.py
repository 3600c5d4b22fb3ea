"""
방 채팅/DM 을 보관하는 메모리 저장소.

In-memory store for users, rooms, room chats and direct messages. It stands
in for the relational store behind the chat services; the services only use
the async methods below, so a database-backed repository can replace it.
"""

import itertools
from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass(slots=True)
class UserRecord:
    id: str
    nickname: str
    profile_image_url: str | None = None


@dataclass(slots=True)
class RoomRecord:
    id: int
    name: str


@dataclass(slots=True)
class RoomChatRecord:
    id: int
    room_id: int
    user_id: str
    content: str
    created_at: datetime


@dataclass(slots=True)
class DMRecord:
    id: int
    dm_room_id: int
    sender_id: str
    receiver_id: str
    content: str
    created_at: datetime


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ChatRepository:
    """
    채팅 도메인 메모리 저장소.
    In-memory chat repository.
    """

    users: dict[str, UserRecord] = field(default_factory=dict)
    rooms: dict[int, RoomRecord] = field(default_factory=dict)
    room_chats: list[RoomChatRecord] = field(default_factory=list)
    dm_room_members: dict[int, set[str]] = field(default_factory=dict)
    dms: list[DMRecord] = field(default_factory=list)

    _room_ids: itertools.count = field(default_factory=lambda: itertools.count(1), init=False, repr=False)
    _chat_ids: itertools.count = field(default_factory=lambda: itertools.count(1), init=False, repr=False)
    _dm_room_ids: itertools.count = field(default_factory=lambda: itertools.count(1), init=False, repr=False)
    _dm_ids: itertools.count = field(default_factory=lambda: itertools.count(1), init=False, repr=False)

    # ---- users ----

    async def upsert_user(
        self,
        user_id: str,
        nickname: str,
        profile_image_url: str | None = None,
    ) -> UserRecord:
        """사용자를 저장하거나 덮어쓴다.
        Insert or replace a user.
        """
        user = UserRecord(id=user_id, nickname=nickname, profile_image_url=profile_image_url)
        self.users[user_id] = user
        return user

    async def get_user(self, user_id: str) -> UserRecord | None:
        """id 로 사용자를 찾는다.
        Look up a user by id.
        """
        return self.users.get(user_id)

    async def resolve_display_name(self, user_id: str) -> str:
        """닉네임을 조회한다. 모르는 사용자는 id 를 그대로 쓴다.
        Resolve a nickname; unknown users fall back to their id.
        """
        user = self.users.get(user_id)
        return user.nickname if user is not None else user_id

    # ---- rooms ----

    async def create_room(self, name: str) -> RoomRecord:
        """새 공개 채팅방을 만든다.
        Create a public chat room.
        """
        room = RoomRecord(id=next(self._room_ids), name=name)
        self.rooms[room.id] = room
        return room

    async def list_rooms(self) -> list[RoomRecord]:
        """모든 채팅방을 id 순으로 반환한다.
        Return every chat room ordered by id.
        """
        return sorted(self.rooms.values(), key=lambda room: room.id)

    async def get_room(self, room_id: int) -> RoomRecord | None:
        """id 로 채팅방을 찾는다.
        Look up a chat room by id.
        """
        return self.rooms.get(room_id)

    async def create_room_chat(self, room_id: int, user_id: str, content: str) -> RoomChatRecord:
        """방 채팅 한 건을 저장한다.
        Store one room chat.
        """
        chat = RoomChatRecord(
            id=next(self._chat_ids),
            room_id=room_id,
            user_id=user_id,
            content=content,
            created_at=_now(),
        )
        self.room_chats.append(chat)
        return chat

    async def list_room_chats(self, room_id: int, offset: int, limit: int) -> list[RoomChatRecord]:
        """최신순으로 offset 부터 limit 개를 반환한다.
        Return up to `limit` chats newest first, skipping `offset`.
        """
        chats = [chat for chat in reversed(self.room_chats) if chat.room_id == room_id]
        return chats[offset:offset + limit]

    # ---- direct messages ----

    async def find_latest_dm_between(self, user_a: str, user_b: str) -> DMRecord | None:
        """두 사용자가 주고받은 가장 최근 DM 을 찾는다.
        Find the latest DM exchanged by two users.
        """
        for dm in reversed(self.dms):
            if {dm.sender_id, dm.receiver_id} == {user_a, user_b}:
                return dm
        return None

    async def create_dm_room(self) -> int:
        """멤버가 없는 새 DM 방을 만들고 id 를 반환한다.
        Create an empty DM room and return its id.
        """
        dm_room_id = next(self._dm_room_ids)
        self.dm_room_members[dm_room_id] = set()
        return dm_room_id

    async def dm_room_exists(self, dm_room_id: int) -> bool:
        """DM 방이 있는지 확인한다.
        Whether the DM room exists.
        """
        return dm_room_id in self.dm_room_members

    async def is_dm_member(self, dm_room_id: int, user_id: str) -> bool:
        """사용자가 DM 방 멤버인지 확인한다.
        Whether the user belongs to the DM room.
        """
        return user_id in self.dm_room_members.get(dm_room_id, set())

    async def add_dm_member(self, dm_room_id: int, user_id: str) -> None:
        """사용자를 DM 방 멤버로 넣는다.
        Add the user to the DM room.
        """
        self.dm_room_members.setdefault(dm_room_id, set()).add(user_id)

    async def remove_dm_member(self, dm_room_id: int, user_id: str) -> bool:
        """DM 방에서 사용자를 뺀다. 멤버가 아니었으면 False.
        Remove the user from the DM room; False when not a member.
        """
        members = self.dm_room_members.get(dm_room_id)
        if not members or user_id not in members:
            return False
        members.discard(user_id)
        return True

    async def create_dm(
        self,
        dm_room_id: int,
        sender_id: str,
        receiver_id: str,
        content: str,
    ) -> DMRecord:
        """DM 한 건을 저장한다.
        Store one DM.
        """
        dm = DMRecord(
            id=next(self._dm_ids),
            dm_room_id=dm_room_id,
            sender_id=sender_id,
            receiver_id=receiver_id,
            content=content,
            created_at=_now(),
        )
        self.dms.append(dm)
        return dm

    async def list_dms_for_user(self, dm_room_id: int, user_id: str) -> list[DMRecord]:
        """DM 방에서 사용자가 보내거나 받은 DM 을 오래된 순으로 반환한다.
        DMs the user sent or received in the room, oldest first.
        """
        return [
            dm
            for dm in self.dms
            if dm.dm_room_id == dm_room_id and user_id in (dm.sender_id, dm.receiver_id)
        ]

    async def list_dm_rooms_for_user(self, user_id: str) -> list[int]:
        """사용자가 속한 DM 방 id 목록.
        Ids of the DM rooms the user belongs to.
        """
        return sorted(
            dm_room_id
            for dm_room_id, members in self.dm_room_members.items()
            if user_id in members
        )

    async def latest_dm_in_room(self, dm_room_id: int) -> DMRecord | None:
        """DM 방의 가장 최근 DM.
        Latest DM of the room.
        """
        for dm in reversed(self.dms):
            if dm.dm_room_id == dm_room_id:
                return dm
        return None
