"""
FastAPI + Socket.IO 기반 커뮤니티 보드 실시간 backend 패키지.
Realtime community-board backend package built with FastAPI and Socket.IO.

애플리케이션 엔트리(main), 설정(config), 실시간 게이트웨이(gateways),
도메인 서비스(services), HTTP 라우터(routers)를 포함한다.
It contains the application entry (main), configuration, the realtime
gateway, domain services, and HTTP routers.
"""
