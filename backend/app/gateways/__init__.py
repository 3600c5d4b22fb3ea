"""
backend 실시간(Socket.IO) 게이트웨이 패키지.
Realtime (Socket.IO) gateway package.

Socket.IO 이벤트를 검증한 뒤 presence 코디네이터로 전달한다.
It validates Socket.IO events and hands them to the presence coordinator.
"""
