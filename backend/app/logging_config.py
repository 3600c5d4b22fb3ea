import logging
from typing import Final

from app.config import Settings


LOG_FORMAT: Final[str] = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(settings: Settings) -> None:
    """
    설정값에 따라 루트 로거를 초기화한다.
    Initialize the root logger from settings.

    debug 가 켜져 있으면 log_level 과 무관하게 DEBUG 로 내린다.
    When debug is on, the level is forced down to DEBUG.
    """
    level_name = "DEBUG" if settings.debug else settings.log_level.upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("app").setLevel(level)
