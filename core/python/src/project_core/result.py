from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class Ok[T]:
    """
    서비스 호출이 성공했을 때의 값.

    Successful branch of a Result.
    """

    # match Ok(value) 구문에서 위치 인자로 매칭될 필드
    # Field matched positionally in `match Ok(value)`
    __match_args__ = ("value",)

    value: T


@dataclass(slots=True, frozen=True)
class Err[E]:
    """
    서비스 호출이 실패했을 때의 에러 정보 (예: ChatError).

    Failed branch of a Result, carrying a domain error such as ChatError.
    """

    __match_args__ = ("error",)

    error: E


type Result[T, E] = Ok[T] | Err[E]
"""
서비스 계층 경계에서 쓰는 Result 타입입니다. 예외 대신 반환값으로 실패를 전달합니다.

Result type used at the service boundary; failures travel as return values
instead of exceptions.

- T: 성공 값 타입 (success type)
- E: 에러 타입 (error type)
"""


def is_ok[T, E](result: Result[T, E]) -> bool:
    """Result 가 Ok 이면 True. / True for an Ok value."""
    return isinstance(result, Ok)


def is_err[T, E](result: Result[T, E]) -> bool:
    """Result 가 Err 이면 True. / True for an Err value."""
    return isinstance(result, Err)


def unwrap_or[T, E](result: Result[T, E], default: T) -> T:
    """
    Ok 이면 값을, Err 이면 default 를 돌려준다.

    Return the Ok value, or `default` for an Err.
    """
    match result:
        case Ok(value):
            return value
        case _:
            return default


__all__ = [
    "Ok",
    "Err",
    "Result",
    "is_ok",
    "is_err",
    "unwrap_or",
]
