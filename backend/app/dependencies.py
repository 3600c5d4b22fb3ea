from dataclasses import dataclass
from typing import Annotated

import socketio
from fastapi import Depends, Header, HTTPException, Request, status

from app.config import Settings, get_settings
from app.internal.cache_store import CacheBackend
from app.internal.chat_repository import ChatRepository
from app.services.service_dm import DirectMessageService
from app.services.service_presence import PresenceCoordinator
from app.services.service_room import RoomChatService


@dataclass(slots=True)
class AppContainer:
    """
    앱 하나가 공유하는 실시간/채팅 구성 요소 묶음. app.state.container 에 보관된다.
    Realtime and chat components shared by one app, kept on app.state.container.
    """

    settings: Settings
    sio: socketio.AsyncServer
    cache_backend: CacheBackend
    repository: ChatRepository
    coordinator: PresenceCoordinator
    room_service: RoomChatService
    dm_service: DirectMessageService


def get_app_settings() -> Settings:
    """
    FastAPI 의존성으로 사용할 설정 객체를 반환한다.
    Return application settings for FastAPI dependency injection.
    """
    return get_settings()


def get_container(request: Request) -> AppContainer:
    return request.app.state.container


def get_coordinator(request: Request) -> PresenceCoordinator:
    return get_container(request).coordinator


def get_room_service(request: Request) -> RoomChatService:
    return get_container(request).room_service


def get_dm_service(request: Request) -> DirectMessageService:
    return get_container(request).dm_service


def get_current_user_id(
    x_user_id: Annotated[str | None, Header()] = None,
) -> str:
    """
    앞단 인증 게이트웨이가 넣어 주는 X-User-Id 헤더에서 사용자 id 를 읽는다.
    Read the acting user id from the X-User-Id header set by the upstream
    auth gateway.
    """
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="X-User-Id header is required.",
        )
    return x_user_id


SettingsDep = Annotated[Settings, Depends(get_app_settings)]
CoordinatorDep = Annotated[PresenceCoordinator, Depends(get_coordinator)]
RoomServiceDep = Annotated[RoomChatService, Depends(get_room_service)]
DMServiceDep = Annotated[DirectMessageService, Depends(get_dm_service)]
CurrentUserDep = Annotated[str, Depends(get_current_user_id)]
