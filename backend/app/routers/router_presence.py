from fastapi import APIRouter, HTTPException, status

from app.dependencies import CoordinatorDep
from app.errors import PresenceStoreError
from app.models.model_io_common import ApiResponse, dump_data


router = APIRouter()


@router.get(
    "",
    summary="접속자가 있는 방 목록 / Rooms with live presence",
    response_model=ApiResponse,
)
async def list_presence_rooms_endpoint(coordinator: CoordinatorDep) -> ApiResponse:
    try:
        rooms = await coordinator.list_rooms()
    except PresenceStoreError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc

    return ApiResponse(message="", data=rooms)


@router.get(
    "/{room}",
    summary="방 접속자 스냅샷 / Room roster snapshot",
    response_model=ApiResponse,
)
async def get_room_presence_endpoint(room: str, coordinator: CoordinatorDep) -> ApiResponse:
    """
    브로드캐스트 없이 방 접속자 목록과 인원 수를 읽는다.
    Read a room's roster and count without broadcasting.
    """
    try:
        snapshot = await coordinator.snapshot_room(room)
    except PresenceStoreError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc

    return ApiResponse(message="", data=dump_data(snapshot))
