"""
공개 채팅방 API 의 입출력 모델을 정의합니다.

Defines input/output models for the public chat room API.
"""

from datetime import datetime
from typing import Annotated

from pydantic import Field

from app.models.model_io_common import CamelModel, UserSummary


class RoomOut(CamelModel):
    """
    채팅방 하나.
    A single chat room.
    """

    id: int
    name: str


class RoomChatCreateRequest(CamelModel):
    """
    방 채팅 작성 요청 본문.
    Request body for posting a room chat message.
    """

    content: Annotated[str, Field(
        min_length=1,
        max_length=2000,
        description="채팅 내용 / Chat message content.",
    )]


class RoomChatOut(CamelModel):
    """
    방 채팅 레코드. 저장 직후 같은 방에 'message' 이벤트로도 전달된다.
    Room chat record; also delivered to the room as a 'message' event once
    persisted.
    """

    id: int
    room_id: int
    room_name: str
    user: UserSummary
    content: str
    created_at: datetime
