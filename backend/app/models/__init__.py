"""
backend에서 사용하는 Pydantic 기반 IO/도메인 모델 패키지.
Pydantic-based IO/domain models used by the backend.

HTTP 요청/응답 스키마와 Socket.IO 이벤트 페이로드 정의를 포함한다.
It contains HTTP request/response schemas and Socket.IO event payloads.
"""
