"""
이 모듈은 접속자 캐시(redis)에서 방별 접속자 목록을 읽어와
터미널에 간단한 테이블 형태로 출력하는 CLI 유틸입니다.

This module provides a simple CLI utility that reads per-room rosters from
the presence cache (redis) and prints them as a table on the terminal.
"""

import argparse
import asyncio
import os
from dataclasses import dataclass
from typing import Final

from app.config import get_settings
from app.errors import PresenceStoreError
from app.internal.cache_store import RedisCacheBackend
from app.services.service_presence_store import PresenceStore


# 목록 출력 시 닉네임 요약 최대 너비 / Max width of the nickname summary column.
_SUMMARY_WIDTH_MAX: Final[int] = 80


@dataclass
class RosterRow:
    """단일 방 행을 표현하는 내부 모델.
    Internal model representing a single room row.
    """

    room: str
    user_count: int
    summary: str


async def load_rosters(store: PresenceStore, room: str | None) -> list[RosterRow]:
    """지정한 방(없으면 전체 방)의 접속자 목록을 RosterRow 리스트로 변환한다.
    Load rosters for the given room (or every room) as RosterRow list.
    """
    rooms = [room] if room else await store.list_rooms()
    rows: list[RosterRow] = []

    for name in rooms:
        roster = await store.get_roster(name)
        rows.append(
            RosterRow(
                room=name,
                user_count=len(roster),
                summary=", ".join(entry.display_name for entry in roster),
            ),
        )

    return rows


def print_table(rows: list[RosterRow]) -> None:
    """RosterRow 리스트를 터미널 테이블로 출력한다.
    Print a list of RosterRow objects as a simple table in the terminal.
    """
    if not rows:
        print("No rooms with live presence.")
        return

    headers = ["#", "Room", "Count", "Users"]

    index_width = max(len(headers[0]), len(str(len(rows))))
    room_width = max(len(headers[1]), *(len(r.room) for r in rows))
    count_width = max(len(headers[2]), *(len(str(r.user_count)) for r in rows))
    summary_width = min(
        max(len(headers[3]), *(len(r.summary) for r in rows)),
        _SUMMARY_WIDTH_MAX,
    )

    row_fmt = (
        f"{{:>{index_width}}}  "
        f"{{:<{room_width}}}  "
        f"{{:>{count_width}}}  "
        f"{{:<{summary_width}}}"
    )

    print(row_fmt.format(*headers))
    print("-" * (index_width + room_width + count_width + summary_width + 6))

    for idx, row in enumerate(rows, start=1):
        summary = row.summary
        if len(summary) > summary_width:
            summary = summary[: summary_width - 3] + "..."
        print(row_fmt.format(idx, row.room, row.user_count, summary))


def parse_args() -> argparse.Namespace:
    """명령행 인자를 파싱한다.
    Parse command-line arguments.
    """
    settings = get_settings()
    parser = argparse.ArgumentParser(
        description=(
            "접속자 캐시에서 방별 접속자 목록을 읽어와 테이블로 출력합니다.\n"
            "Read per-room rosters from the presence cache and print them as a table."
        ),
    )

    parser.add_argument(
        "--redis-url",
        type=str,
        default=os.getenv("BACKEND_REDIS_URL", settings.redis_url),
        help="redis 접속 URL / Redis connection URL.",
    )
    parser.add_argument(
        "--room",
        type=str,
        default=None,
        help="특정 방만 출력 / Only print this room.",
    )

    return parser.parse_args()


async def _run(redis_url: str, room: str | None) -> int:
    settings = get_settings()
    backend = RedisCacheBackend.from_url(redis_url)
    store = PresenceStore.from_settings(settings, backend)

    try:
        rows = await load_rosters(store, room)
    except PresenceStoreError as exc:
        print(f"[ERROR] {exc}")
        return 1
    finally:
        await backend.close()

    print_table(rows)
    return 0


def main() -> None:
    """CLI 엔트리 포인트.
    CLI entry point.
    """
    args = parse_args()
    print(f"[INFO] Reading presence from: {args.redis_url}")
    raise SystemExit(asyncio.run(_run(args.redis_url, args.room)))


if __name__ == "__main__":
    main()
