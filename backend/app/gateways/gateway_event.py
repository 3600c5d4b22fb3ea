import logging
from typing import Any

import socketio
from pydantic import ValidationError

from app.config import Settings
from app.models.model_io_presence import (
    EVENT_GET_ROOM_USER_LIST,
    EVENT_ROOM_EXIT,
    EVENT_ROOM_JOIN,
    EVENT_USER_LOGIN,
    GetRoomUserListEvent,
    InboundEvent,
    RoomExitEvent,
    RoomJoinEvent,
    UserLoginEvent,
    parse_inbound_event,
)
from app.services.service_presence import PresenceCoordinator


logger = logging.getLogger(__name__)


def build_socketio_server(settings: Settings) -> socketio.AsyncServer:
    """
    ASGI 모드의 Socket.IO 서버를 만든다. redis 백엔드를 쓰면 워커들이 같은
    redis 채널로 emit 을 주고받아, 다른 워커에 붙은 소켓에도 방 브로드캐스트가
    전달된다.
    Build the Socket.IO server in ASGI mode. With the redis backend, workers
    relay emits over a shared redis channel so room broadcasts also reach
    sockets attached to other workers.
    """
    origins: str | list[str] = settings.cors_allow_origins
    if origins == ["*"]:
        origins = "*"

    match settings.presence_backend:
        case "redis":
            client_manager: socketio.AsyncManager = socketio.AsyncRedisManager(
                settings.redis_url,
                channel=f"{settings.presence_key_prefix}:socketio",
            )
        case _:
            client_manager = socketio.AsyncManager()

    return socketio.AsyncServer(
        client_manager=client_manager,
        async_mode="asgi",
        cors_allowed_origins=origins,
        logger=settings.debug,
        engineio_logger=False,
    )


async def dispatch_event(coordinator: PresenceCoordinator, sid: str, event: InboundEvent) -> None:
    """
    검증된 이벤트를 코디네이터 연산으로 보낸다.
    Route a validated event to the matching coordinator operation.
    """
    match event:
        case UserLoginEvent(id=identity):
            await coordinator.login(sid, identity)
        case RoomJoinEvent(nickname=nickname, room=room):
            await coordinator.join(sid, nickname, room)
        case RoomExitEvent():
            await coordinator.exit(sid)
        case GetRoomUserListEvent(room=room):
            await coordinator.get_room_user_list(room)


async def handle_inbound(
    coordinator: PresenceCoordinator,
    sid: str,
    event_name: str,
    data: Any,
) -> None:
    """
    원본 페이로드를 검증하고 처리한다. 잘못된 페이로드는 로그만 남기고 버린다.
    Validate and handle a raw payload; malformed payloads are logged and dropped.
    """
    try:
        event = parse_inbound_event(event_name, data)
    except ValidationError as exc:
        logger.warning(
            "Rejected %s from %s: %d validation error(s)",
            event_name,
            sid,
            exc.error_count(),
        )
        return

    await dispatch_event(coordinator, sid, event)


def register_gateway_handlers(sio: socketio.AsyncServer, coordinator: PresenceCoordinator) -> None:
    """
    Socket.IO 서버에 연결/해제 및 클라이언트 이벤트 핸들러를 등록한다.
    Attach connect/disconnect and client event handlers to the Socket.IO server.
    """

    @sio.event
    async def connect(sid: str, environ: dict[str, Any], auth: Any = None) -> None:
        await coordinator.connect(sid)

    @sio.event
    async def disconnect(sid: str, reason: Any = None) -> None:
        await coordinator.disconnect(sid)

    @sio.on(EVENT_USER_LOGIN)
    async def on_user_login(sid: str, data: Any = None) -> None:
        await handle_inbound(coordinator, sid, EVENT_USER_LOGIN, data)

    @sio.on(EVENT_ROOM_JOIN)
    async def on_room_join(sid: str, data: Any = None) -> None:
        await handle_inbound(coordinator, sid, EVENT_ROOM_JOIN, data)

    @sio.on(EVENT_ROOM_EXIT)
    async def on_room_exit(sid: str, data: Any = None) -> None:
        await handle_inbound(coordinator, sid, EVENT_ROOM_EXIT, data)

    @sio.on(EVENT_GET_ROOM_USER_LIST)
    async def on_get_room_user_list(sid: str, data: Any = None) -> None:
        await handle_inbound(coordinator, sid, EVENT_GET_ROOM_USER_LIST, data)

    logger.info("Realtime gateway handlers registered")
