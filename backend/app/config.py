from functools import lru_cache
from typing import Final, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


APP_TITLE_DEFAULT: Final[str] = "Community Board Realtime API"
APP_VERSION_DEFAULT: Final[str] = "0.1.0"
APP_DESCRIPTION_DEFAULT: Final[str] = (
    "커뮤니티 보드 실시간 채팅/접속자 백엔드 (FastAPI + Socket.IO)"
)

# 원래 캐시 TTL(3일)을 그대로 따른다. / Same 3-day TTL as the original cache.
PRESENCE_TTL_SEC_DEFAULT: Final[int] = 259200

ROOM_NAMES_DEFAULT: Final[tuple[str, ...]] = ("자유", "공부", "취업")


class Settings(BaseSettings):
    """
    애플리케이션 전역 설정.
    Global application settings.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="BACKEND_",
        extra="ignore",
    )

    app_title: str = APP_TITLE_DEFAULT
    app_version: str = APP_VERSION_DEFAULT
    app_description: str = APP_DESCRIPTION_DEFAULT

    environment: str = Field(
        default="local",
        description=(
            "실행 환경(local/dev/prod 등) / "
            "Runtime environment (local/dev/prod, etc.)."
        ),
    )
    debug: bool = Field(
        default=False,
        description="디버그 모드 활성화 여부 / Whether to enable debug mode.",
    )
    log_level: str = Field(
        default="INFO",
        description="루트 로거 레벨 / Root logger level.",
    )

    cors_allow_origins: list[str] = Field(
        default_factory=lambda: ["*"],
        description="HTTP/Socket.IO 허용 오리진 / Allowed CORS origins.",
    )

    presence_backend: Literal["memory", "redis"] = Field(
        default="memory",
        description=(
            "접속자 상태를 보관할 캐시 백엔드.\n"
            "Cache backend that holds presence state."
        ),
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="redis 접속 URL / Redis connection URL.",
    )
    presence_ttl_sec: int = Field(
        default=PRESENCE_TTL_SEC_DEFAULT,
        gt=0,
        description="접속자 캐시 TTL(초) / TTL of presence cache entries (seconds).",
    )
    presence_key_prefix: str = Field(
        default="presence",
        description="접속자 캐시 키 접두사 / Key prefix for presence cache.",
    )
    store_timeout_sec: float = Field(
        default=2.0,
        gt=0,
        description=(
            "캐시 왕복 1회당 최대 대기 시간(초).\n"
            "Upper bound for a single presence-store round trip (seconds)."
        ),
    )

    room_names: list[str] = Field(
        default_factory=lambda: list(ROOM_NAMES_DEFAULT),
        description="초기 생성할 채팅방 이름 / Chat rooms seeded at startup.",
    )
    room_chat_page_size: int = Field(
        default=100,
        gt=0,
        description="방 채팅 조회 페이지 크기 / Page size for room chat history.",
    )


@lru_cache
def get_settings() -> Settings:
    """
    환경 변수 및 .env 파일에서 설정을 로드한다.
    Load settings from environment variables and .env file (cached).
    """
    return Settings()
