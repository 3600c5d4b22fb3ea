from dataclasses import dataclass
from enum import Enum

from fastapi import HTTPException, status

from project_core import Err, Ok, Result


class ChatErrorCode(str, Enum):
    """
    방 채팅/DM 처리 과정에서 발생하는 에러 코드.
    Error codes for room chat / direct message handling.
    """

    INVALID_INPUT = "invalid_input"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    INTERNAL_ERROR = "internal_error"


@dataclass(slots=True, frozen=True)
class ChatError:
    """
    채팅 도메인 에러 표현.
    Domain error representation for chat services.
    """

    code: ChatErrorCode
    message: str


type ChatResult[T] = Result[T, ChatError]


class PresenceStoreError(Exception):
    """
    접속자 캐시 왕복이 실패하거나 제한 시간을 넘긴 경우.
    Raised when a presence-store round trip fails or times out.

    게이트웨이는 이 예외를 잡아 로그만 남기고 해당 이벤트를 버린다.
    The gateway catches this, logs it and drops the triggering event.
    """


def map_chat_error_to_http_exception(error: ChatError) -> HTTPException:
    """
    ChatError 를 HTTPException 으로 변환한다.
    Map a ChatError into an HTTPException.
    """
    match error.code:
        case ChatErrorCode.INVALID_INPUT:
            return HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=error.message,
            )
        case ChatErrorCode.NOT_FOUND:
            return HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=error.message,
            )
        case ChatErrorCode.FORBIDDEN:
            return HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=error.message,
            )
        case _:
            # INTERNAL_ERROR 또는 알 수 없는 코드
            # INTERNAL_ERROR or unknown error code
            return HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=error.message,
            )


def unwrap_chat_result[T](result: ChatResult[T]) -> T:
    """
    Ok 이면 값을 꺼내고, Err 이면 대응하는 HTTPException 을 던진다.
    Return the Ok value, or raise the HTTPException matching the Err.
    """
    match result:
        case Ok(value=value):
            return value
        case Err(error=chat_error):
            raise map_chat_error_to_http_exception(chat_error)
        case _:
            # Result 타입이 아닌 예기치 못한 값 / Unexpected non-Result value
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Unexpected result type.",
            )
