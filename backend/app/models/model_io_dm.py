"""
DM(1:1 메시지) API 의 입출력 모델을 정의합니다.

Defines input/output models for the direct message API.
"""

from datetime import datetime
from typing import Annotated

from pydantic import Field

from app.models.model_io_common import CamelModel, UserSummary


class DMRoomCreateRequest(CamelModel):
    """DM 방 생성 요청 / Request to open a DM room with another user."""

    receiver_id: Annotated[str, Field(min_length=1, description="상대방 id / Receiver id.")]


class DMRoomIdOut(CamelModel):
    dm_room_id: int = Field(alias="DMRoomId")


class DMCreateRequest(CamelModel):
    """DM 전송 요청 본문 / Request body for sending a DM."""

    receiver_id: Annotated[str, Field(min_length=1, description="받는 사람 id / Receiver id.")]
    content: Annotated[str, Field(
        min_length=1,
        max_length=2000,
        description="DM 내용 / DM content.",
    )]


class DMOut(CamelModel):
    """
    DM 레코드. 저장 직후 받는 사람의 최신 연결로 'dm' 이벤트가 전달된다.
    DM record; pushed as a 'dm' event to the receiver's latest connection
    once persisted.
    """

    id: int
    dm_room_id: int = Field(alias="DMRoomId")
    content: str
    created_at: datetime
    send_user: UserSummary
    receive_user: UserSummary


class DMRoomSummary(CamelModel):
    """
    참여 중인 DM 방과 최신 DM 한 건.
    A DM room the user belongs to, with its latest message.
    """

    dm_room_id: int = Field(alias="DMRoomId")
    last_dm: DMOut | None = None
