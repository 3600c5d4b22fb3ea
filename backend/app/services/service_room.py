import logging

from project_core import Err, Ok, unwrap_or

from app.errors import ChatError, ChatErrorCode, ChatResult
from app.internal.chat_repository import ChatRepository, RoomChatRecord, RoomRecord
from app.models.model_io_presence import EVENT_MESSAGE
from app.models.model_io_room import RoomChatOut, RoomOut
from app.services.service_delivery import DeliveryFanout
from app.services.service_user import resolve_user_summary


logger = logging.getLogger(__name__)


class RoomChatService:
    """
    공개 채팅방 조회, 채팅 저장 및 방 전체 전달.
    Public chat rooms: listing, persisting chats and fanning them out.
    """

    def __init__(
        self,
        repository: ChatRepository,
        fanout: DeliveryFanout,
        *,
        page_size: int = 100,
    ) -> None:
        self._repository = repository
        self._fanout = fanout
        self._page_size = page_size

    async def seed_rooms(self, names: list[str]) -> None:
        """아직 없는 이름의 방을 만든다. / Create rooms whose names do not exist yet."""
        existing = {room.name for room in unwrap_or(await self.get_all_rooms(), [])}
        for name in names:
            if name not in existing:
                await self._repository.create_room(name)
                existing.add(name)

    async def get_all_rooms(self) -> ChatResult[list[RoomOut]]:
        rooms = await self._repository.list_rooms()
        return Ok([RoomOut(id=room.id, name=room.name) for room in rooms])

    async def _to_out(self, chat: RoomChatRecord, room: RoomRecord) -> RoomChatOut:
        return RoomChatOut(
            id=chat.id,
            room_id=chat.room_id,
            room_name=room.name,
            user=await resolve_user_summary(self._repository, chat.user_id),
            content=chat.content,
            created_at=chat.created_at,
        )

    async def create_room_chat(
        self,
        room_id: int,
        user_id: str,
        content: str,
    ) -> ChatResult[RoomChatOut]:
        """
        방 채팅을 저장한 뒤 같은 방 접속자에게 'message' 이벤트로 알린다.
        Persist a room chat, then broadcast it to the room as a 'message' event.
        """
        if not content.strip():
            return Err(ChatError(ChatErrorCode.INVALID_INPUT, "content must not be blank."))

        room = await self._repository.get_room(room_id)
        if room is None:
            return Err(ChatError(ChatErrorCode.NOT_FOUND, f"room {room_id} does not exist."))

        try:
            chat = await self._repository.create_room_chat(room_id, user_id, content)
            record = await self._to_out(chat, room)
        except Exception as exc:  # noqa: BLE001
            return Err(ChatError(ChatErrorCode.INTERNAL_ERROR, f"Failed to create room chat: {exc}"))

        # 방 이름이 Socket.IO 방 키다. / The room name is the Socket.IO room key.
        await self._fanout.broadcast_to_room(
            room.name,
            EVENT_MESSAGE,
            record.model_dump(mode="json", by_alias=True),
        )
        logger.debug("Room chat %d posted to %s by %s", chat.id, room.name, user_id)
        return Ok(record)

    async def get_room_chats(self, room_id: int, page: int) -> ChatResult[list[RoomChatOut]]:
        """
        최신순으로 page_size 개씩 끊어 조회한다 (page 는 1부터).
        Page through chats newest first, page_size per page (page starts at 1).
        """
        if page < 1:
            return Err(ChatError(ChatErrorCode.INVALID_INPUT, "page must be >= 1."))

        room = await self._repository.get_room(room_id)
        if room is None:
            return Err(ChatError(ChatErrorCode.NOT_FOUND, f"room {room_id} does not exist."))

        chats = await self._repository.list_room_chats(
            room_id,
            offset=(page - 1) * self._page_size,
            limit=self._page_size,
        )
        return Ok([await self._to_out(chat, room) for chat in chats])
