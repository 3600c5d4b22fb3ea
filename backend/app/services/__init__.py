"""
backend 도메인 서비스/유즈케이스 패키지.
Backend domain services and use cases.

접속자 코디네이터, 전달(fan-out), 방 채팅/DM 서비스를 제공하며
HTTP나 FastAPI에 직접 의존하지 않는다.
It provides the presence coordinator, delivery fan-out and the room chat /
DM services, none of which depend directly on HTTP or FastAPI.
"""
