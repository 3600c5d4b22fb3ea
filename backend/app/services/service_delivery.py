import logging
from typing import Any, Protocol

from app.errors import PresenceStoreError
from app.services.service_presence_store import PresenceStore


logger = logging.getLogger(__name__)


class RealtimeTransport(Protocol):
    """
    실시간 전송 계층이 제공해야 하는 기능. socketio.AsyncServer 가 그대로 만족한다.
    What the realtime transport must provide; socketio.AsyncServer satisfies it.
    """

    async def enter_room(self, sid: str, room: str) -> None: ...

    async def leave_room(self, sid: str, room: str) -> None: ...

    async def emit(self, event: str, data: Any = None, to: str | None = None) -> None: ...


class DeliveryFanout:
    """
    방 단위 브로드캐스트와 1:1 전달을 담당한다.
    Room broadcast and point-to-point delivery.

    방/DM 서비스는 메시지를 저장한 뒤 이 객체를 통해서만 전달한다.
    Room and DM services deliver through this object after persisting.
    """

    def __init__(self, transport: RealtimeTransport, store: PresenceStore) -> None:
        self._transport = transport
        self._store = store

    async def enter_room(self, handle: str, room: str) -> None:
        await self._transport.enter_room(handle, room)

    async def leave_room(self, handle: str, room: str) -> None:
        await self._transport.leave_room(handle, room)

    async def broadcast_to_room(self, room: str, event: str, payload: Any) -> None:
        await self._transport.emit(event, payload, to=room)

    async def send_to_connection(self, handle: str, event: str, payload: Any) -> None:
        await self._transport.emit(event, payload, to=handle)

    async def send_to_identity(self, identity: str, event: str, payload: Any) -> bool:
        """
        사용자의 최신 연결로 1:1 전달한다. 접속 중이 아니면 아무 것도 하지 않는다.
        Deliver to the identity's latest connection; silently skip when offline.

        Returns True when a delivery was attempted.
        """
        try:
            handle = await self._store.get_latest_connection(identity)
        except PresenceStoreError as exc:
            logger.warning("Latest connection lookup failed for %s: %s", identity, exc)
            return False

        if handle is None:
            logger.debug("No live connection for %s; %s dropped", identity, event)
            return False

        await self.send_to_connection(handle, event, payload)
        return True
