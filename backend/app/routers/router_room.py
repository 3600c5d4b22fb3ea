from typing import Annotated

from fastapi import APIRouter, Query

from app.dependencies import CurrentUserDep, RoomServiceDep
from app.errors import unwrap_chat_result
from app.models.model_io_common import ApiResponse, dump_data
from app.models.model_io_room import RoomChatCreateRequest


# prefix 는 main.py 의 include_router 에서 관리한다.
# Router-level prefix is managed in main.py via include_router.
router = APIRouter()


@router.get(
    "",
    summary="방 조회 / List rooms",
    response_model=ApiResponse,
)
async def get_all_rooms_endpoint(service: RoomServiceDep) -> ApiResponse:
    """
    모든 채팅방을 조회한다.
    List every chat room.
    """
    result = await service.get_all_rooms()
    return ApiResponse(
        message="방을 성공적으로 조회하였습니다.",
        data=dump_data(unwrap_chat_result(result)),
    )


@router.post(
    "/chats/{room_id}",
    summary="방 채팅 작성 / Post a room chat",
    response_model=ApiResponse,
)
async def create_room_chat_endpoint(
    room_id: int,
    request: RoomChatCreateRequest,
    user_id: CurrentUserDep,
    service: RoomServiceDep,
) -> ApiResponse:
    """
    방 채팅을 저장하고 해당 방 접속자에게 실시간으로 전달한다.
    Persist a room chat and deliver it to the room in real time.
    """
    result = await service.create_room_chat(room_id, user_id, request.content)
    return ApiResponse(
        message="해당 방의 채팅을 성공적으로 작성하였습니다.",
        data=dump_data(unwrap_chat_result(result)),
    )


@router.get(
    "/chats/{room_id}",
    summary="방 채팅 조회 / List room chats",
    response_model=ApiResponse,
)
async def get_room_chats_endpoint(
    room_id: int,
    service: RoomServiceDep,
    page: Annotated[int, Query(ge=1)] = 1,
) -> ApiResponse:
    """
    해당 방의 채팅을 최신순으로 페이지 단위 조회한다.
    Page through a room's chats, newest first.
    """
    result = await service.get_room_chats(room_id, page)
    return ApiResponse(
        message="해당 방의 채팅을 성공적으로 조회하였습니다.",
        data=dump_data(unwrap_chat_result(result)),
    )
