import logging

from project_core import Err, Ok

from app.errors import ChatError, ChatErrorCode, ChatResult
from app.internal.chat_repository import ChatRepository, DMRecord
from app.models.model_io_dm import DMOut, DMRoomIdOut, DMRoomSummary
from app.models.model_io_presence import EVENT_DM
from app.services.service_delivery import DeliveryFanout
from app.services.service_user import resolve_user_summary


logger = logging.getLogger(__name__)


class DirectMessageService:
    """
    DM 방 관리와 DM 저장, 받는 사람의 최신 연결로의 1:1 전달.
    DM rooms, DM persistence and point-to-point delivery to the receiver's
    latest connection.
    """

    def __init__(self, repository: ChatRepository, fanout: DeliveryFanout) -> None:
        self._repository = repository
        self._fanout = fanout

    async def _to_out(self, dm: DMRecord) -> DMOut:
        return DMOut(
            id=dm.id,
            dm_room_id=dm.dm_room_id,
            content=dm.content,
            created_at=dm.created_at,
            send_user=await resolve_user_summary(self._repository, dm.sender_id),
            receive_user=await resolve_user_summary(self._repository, dm.receiver_id),
        )

    async def create_dm_room(self, user_id: str, receiver_id: str) -> ChatResult[DMRoomIdOut]:
        """
        상대방과 DM 을 주고받은 적이 있고 상대방이 아직 그 방에 있다면 그 방에
        다시 들어간다. 아니면 새 DM 방을 만든다.
        Rejoin the pair's latest DM room while the receiver is still a member
        of it; otherwise open a new DM room.
        """
        if user_id == receiver_id:
            return Err(ChatError(ChatErrorCode.INVALID_INPUT, "cannot open a DM room with yourself."))

        previous = await self._repository.find_latest_dm_between(user_id, receiver_id)
        if previous is not None and await self._repository.is_dm_member(previous.dm_room_id, receiver_id):
            await self._repository.add_dm_member(previous.dm_room_id, user_id)
            return Ok(DMRoomIdOut(dm_room_id=previous.dm_room_id))

        dm_room_id = await self._repository.create_dm_room()
        await self._repository.add_dm_member(dm_room_id, user_id)
        logger.debug("DM room %d opened by %s for %s", dm_room_id, user_id, receiver_id)
        return Ok(DMRoomIdOut(dm_room_id=dm_room_id))

    async def create_dm_chat(
        self,
        dm_room_id: int,
        sender_id: str,
        receiver_id: str,
        content: str,
    ) -> ChatResult[DMOut]:
        """
        DM 을 저장하고 받는 사람이 접속 중이면 'dm' 이벤트로 바로 알린다.
        받는 사람이 방을 나갔다면 다시 멤버로 넣는다.
        Persist a DM and push it as a 'dm' event when the receiver is online.
        A receiver who left the room is added back as a member.
        """
        if not content.strip():
            return Err(ChatError(ChatErrorCode.INVALID_INPUT, "content must not be blank."))
        if sender_id == receiver_id:
            return Err(ChatError(ChatErrorCode.INVALID_INPUT, "cannot send a DM to yourself."))
        if not await self._repository.dm_room_exists(dm_room_id):
            return Err(ChatError(ChatErrorCode.NOT_FOUND, f"DM room {dm_room_id} does not exist."))
        if not await self._repository.is_dm_member(dm_room_id, sender_id):
            return Err(ChatError(ChatErrorCode.FORBIDDEN, f"not a member of DM room {dm_room_id}."))

        try:
            await self._repository.add_dm_member(dm_room_id, receiver_id)
            dm = await self._repository.create_dm(dm_room_id, sender_id, receiver_id, content)
            record = await self._to_out(dm)
        except Exception as exc:  # noqa: BLE001
            return Err(ChatError(ChatErrorCode.INTERNAL_ERROR, f"Failed to create DM: {exc}"))

        delivered = await self._fanout.send_to_identity(
            receiver_id,
            EVENT_DM,
            record.model_dump(mode="json", by_alias=True),
        )
        logger.debug("DM %d stored (live delivery: %s)", dm.id, delivered)
        return Ok(record)

    async def get_dm_room_chats(self, dm_room_id: int, user_id: str) -> ChatResult[list[DMOut]]:
        if not await self._repository.dm_room_exists(dm_room_id):
            return Err(ChatError(ChatErrorCode.NOT_FOUND, f"DM room {dm_room_id} does not exist."))

        dms = await self._repository.list_dms_for_user(dm_room_id, user_id)
        return Ok([await self._to_out(dm) for dm in dms])

    async def get_my_dm_rooms(self, user_id: str) -> ChatResult[list[DMRoomSummary]]:
        summaries: list[DMRoomSummary] = []
        for dm_room_id in await self._repository.list_dm_rooms_for_user(user_id):
            latest = await self._repository.latest_dm_in_room(dm_room_id)
            summaries.append(
                DMRoomSummary(
                    dm_room_id=dm_room_id,
                    last_dm=await self._to_out(latest) if latest is not None else None,
                )
            )
        return Ok(summaries)

    async def exit_dm_room(self, user_id: str, dm_room_id: int) -> ChatResult[dict[str, int]]:
        removed = await self._repository.remove_dm_member(dm_room_id, user_id)
        if not removed:
            return Err(ChatError(ChatErrorCode.NOT_FOUND, f"not a member of DM room {dm_room_id}."))
        logger.debug("%s left DM room %d", user_id, dm_room_id)
        return Ok({})
