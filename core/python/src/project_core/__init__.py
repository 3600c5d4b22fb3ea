"""
project_core 패키지.

채팅 서비스와 라우터가 함께 쓰는 Result 타입(Ok/Err)을 제공합니다.

The `project_core` package.

Provides the Result type (Ok/Err) shared by the chat services and the HTTP
routers: services return a Result instead of raising, and routers match on it.
"""

from .result import Ok, Err, Result, is_ok, is_err, unwrap_or

__all__ = [
    "Ok",
    "Err",
    "Result",
    "is_ok",
    "is_err",
    "unwrap_or",
]
