import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import socketio
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import Settings, get_settings
from app.dependencies import AppContainer
from app.gateways.gateway_event import build_socketio_server, register_gateway_handlers
from app.internal.cache_store import CacheBackend, build_cache_backend
from app.internal.chat_repository import ChatRepository
from app.logging_config import configure_logging
from app.routers.router_dm import router as router_dm
from app.routers.router_health import router as router_health
from app.routers.router_presence import router as router_presence
from app.routers.router_room import router as router_room
from app.services.service_delivery import DeliveryFanout
from app.services.service_dm import DirectMessageService
from app.services.service_presence import PresenceCoordinator
from app.services.service_presence_store import PresenceStore
from app.services.service_room import RoomChatService


logger = logging.getLogger(__name__)


def build_container(
    settings: Settings,
    *,
    sio: socketio.AsyncServer | None = None,
    cache_backend: CacheBackend | None = None,
    repository: ChatRepository | None = None,
) -> AppContainer:
    """
    설정으로부터 캐시, 저장소, 코디네이터, 채팅 서비스를 조립한다.
    Wire the cache, stores, coordinator and chat services from settings.
    """
    sio = sio or build_socketio_server(settings)
    cache_backend = cache_backend or build_cache_backend(settings)
    repository = repository or ChatRepository()

    store = PresenceStore.from_settings(settings, cache_backend)
    fanout = DeliveryFanout(sio, store)
    coordinator = PresenceCoordinator(store, fanout)

    return AppContainer(
        settings=settings,
        sio=sio,
        cache_backend=cache_backend,
        repository=repository,
        coordinator=coordinator,
        room_service=RoomChatService(repository, fanout, page_size=settings.room_chat_page_size),
        dm_service=DirectMessageService(repository, fanout),
    )


def create_app(settings: Settings | None = None, container: AppContainer | None = None) -> FastAPI:
    """
    FastAPI 앱을 만들고 Socket.IO 게이트웨이 핸들러를 등록한다.
    Build the FastAPI app and register the Socket.IO gateway handlers.
    """
    settings = settings or get_settings()
    configure_logging(settings)
    container = container or build_container(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await container.room_service.seed_rooms(settings.room_names)
        logger.info(
            "Realtime gateway ready (presence backend: %s)",
            settings.presence_backend,
        )
        try:
            yield
        finally:
            await container.cache_backend.close()

    app = FastAPI(
        title=settings.app_title,
        description=settings.app_description,
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.state.container = container

    # CORS 설정 / CORS configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_gateway_handlers(container.sio, container.coordinator)

    # 도메인 라우터 등록 / Register domain routers
    app.include_router(router_health, prefix="/health", tags=["health"])
    app.include_router(router_room, prefix="/room", tags=["room"])
    app.include_router(router_dm, prefix="/dm", tags=["dm"])
    app.include_router(router_presence, prefix="/presence", tags=["presence"])

    return app


app = create_app()

# Socket.IO 가 FastAPI 를 감싸 한 프로세스에서 HTTP 와 소켓을 함께 처리한다.
# Socket.IO wraps FastAPI so one process serves both HTTP and sockets.
asgi_app = socketio.ASGIApp(app.state.container.sio, other_asgi_app=app)
