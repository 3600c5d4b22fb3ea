"""
실시간 접속자(presence) 게이트웨이의 이벤트 입출력 모델을 정의합니다.

Defines the inbound/outbound event models of the realtime presence gateway.
Inbound Socket.IO payloads are validated into a closed, tagged union before
they reach the coordinator.
"""

from typing import Annotated, Any, Final, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


# 클라이언트 → 서버 이벤트 이름 / Client → server event names
EVENT_USER_LOGIN: Final[str] = "userLogin"
EVENT_ROOM_JOIN: Final[str] = "roomJoin"
EVENT_ROOM_EXIT: Final[str] = "roomExit"
EVENT_GET_ROOM_USER_LIST: Final[str] = "getRoomUserList"

# 서버 → 클라이언트 이벤트 이름 / Server → client event names
EVENT_USER_JOIN: Final[str] = "userJoin"
EVENT_USER_EXIT: Final[str] = "userExit"
EVENT_USER_LIST: Final[str] = "userList"
EVENT_USER_COUNT: Final[str] = "userCount"
EVENT_MESSAGE: Final[str] = "message"
EVENT_DM: Final[str] = "dm"


NonEmptyStr = Annotated[str, Field(min_length=1)]


class _InboundEvent(BaseModel):
    # DM 방 id 처럼 숫자로 들어오는 방 이름도 문자열로 받는다.
    # Room keys sent as numbers (DM room ids) are accepted as strings.
    model_config = ConfigDict(coerce_numbers_to_str=True, extra="ignore", frozen=True)


class UserLoginEvent(_InboundEvent):
    """
    연결을 해당 사용자의 최신 연결로 등록한다.
    Registers the connection as the identity's latest handle.
    """

    event: Literal["userLogin"] = "userLogin"
    id: NonEmptyStr


class RoomJoinEvent(_InboundEvent):
    """
    닉네임으로 방에 입장한다.
    Joins a room under a nickname.
    """

    event: Literal["roomJoin"] = "roomJoin"
    nickname: NonEmptyStr
    room: NonEmptyStr


class RoomExitEvent(_InboundEvent):
    """현재 방에서 퇴장한다. / Leaves the current room."""

    event: Literal["roomExit"] = "roomExit"


class GetRoomUserListEvent(_InboundEvent):
    """방 접속자 목록 재동기화를 요청한다. / Requests a roster resync."""

    event: Literal["getRoomUserList"] = "getRoomUserList"
    room: NonEmptyStr


InboundEvent = Annotated[
    UserLoginEvent | RoomJoinEvent | RoomExitEvent | GetRoomUserListEvent,
    Field(discriminator="event"),
]

_INBOUND_ADAPTER: Final[TypeAdapter[Any]] = TypeAdapter(InboundEvent)


def parse_inbound_event(event_name: str, data: Any) -> InboundEvent:
    """
    Socket.IO 이벤트 이름과 원본 페이로드를 InboundEvent 로 검증한다.
    Validate a Socket.IO event name and raw payload into an InboundEvent.

    getRoomUserList 는 원래 방 이름 문자열만 보내므로 {"room": ...} 으로 감싼다.
    getRoomUserList originally sends a bare room string, so it is wrapped.

    Raises pydantic.ValidationError on malformed payloads.
    """
    if isinstance(data, dict):
        body: dict[str, Any] = dict(data)
    elif data is None:
        body = {}
    else:
        body = {"room": data}

    body["event"] = event_name
    return _INBOUND_ADAPTER.validate_python(body)


class RosterEntry(BaseModel):
    """
    방 접속자 목록의 한 항목. 연결 id 로 식별해 동명이인 제거 모호성을 없앤다.
    One roster entry. Identified by connection handle so that duplicate
    nicknames in one room are removed unambiguously.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    handle: str = Field(alias="sid")
    display_name: str = Field(alias="nickname")


class UserListPayload(BaseModel):
    """userList 이벤트 페이로드 / Payload of the userList event."""

    user_list: list[str] = Field(default_factory=list, serialization_alias="userList")


class UserCountPayload(BaseModel):
    """userCount 이벤트 페이로드 / Payload of the userCount event."""

    user_count: int = Field(default=0, ge=0, serialization_alias="userCount")


class RoomPresenceSnapshot(BaseModel):
    """
    HTTP 진단용 방 접속자 스냅샷.
    Read-only roster snapshot for HTTP diagnostics.
    """

    room: str
    user_list: list[str] = Field(serialization_alias="userList")
    user_count: int = Field(ge=0, serialization_alias="userCount")


def join_notice(nickname: str, room: str) -> str:
    return f"{nickname}님이 {room}에 입장하셨습니다."


def exit_notice(nickname: str) -> str:
    return f"{nickname}님이 퇴장하셨습니다."
