"""
여러 API 가 공유하는 입출력 모델.

Shared IO models: camelCase JSON base, user summary and the response envelope
({message, statusCode, data}) every HTTP route returns.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    JSON 에서는 camelCase, 파이썬에서는 snake_case 로 다루는 기본 모델.
    Base model exposed as camelCase in JSON and snake_case in Python.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProfileImage(CamelModel):
    url: str


class UserSummary(CamelModel):
    """
    채팅/DM 레코드에 함께 실리는 사용자 요약.
    User summary embedded in chat and DM records.
    """

    id: str
    nickname: str
    profile_image: ProfileImage | None = None


class ApiResponse(BaseModel):
    """
    모든 HTTP 응답의 공통 양식.
    Common envelope of every HTTP response.
    """

    message: str = ""
    status_code: int = Field(default=200, serialization_alias="statusCode")
    data: Any = Field(default_factory=dict)


def dump_data(data: Any) -> Any:
    """
    응답 data 필드를 camelCase JSON 호환 값으로 변환한다.
    Convert the response data field into camelCase JSON-compatible values.
    """
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json", by_alias=True)
    if isinstance(data, list):
        return [dump_data(item) for item in data]
    if isinstance(data, dict):
        return {key: dump_data(value) for key, value in data.items()}
    return data
