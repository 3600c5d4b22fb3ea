from fastapi import APIRouter

from app.dependencies import CurrentUserDep, DMServiceDep
from app.errors import unwrap_chat_result
from app.models.model_io_common import ApiResponse, dump_data
from app.models.model_io_dm import DMCreateRequest, DMRoomCreateRequest


router = APIRouter()


@router.post(
    "/create/DMRoom",
    summary="DM방 생성 / Open a DM room",
    response_model=ApiResponse,
)
async def create_dm_room_endpoint(
    request: DMRoomCreateRequest,
    user_id: CurrentUserDep,
    service: DMServiceDep,
) -> ApiResponse:
    result = await service.create_dm_room(user_id, request.receiver_id)
    return ApiResponse(
        message="DM방을 성공적으로 생성하였습니다.",
        data=dump_data(unwrap_chat_result(result)),
    )


@router.post(
    "/chats/{dm_room_id}",
    summary="DM 보내기 / Send a DM",
    response_model=ApiResponse,
)
async def create_dm_chat_endpoint(
    dm_room_id: int,
    request: DMCreateRequest,
    user_id: CurrentUserDep,
    service: DMServiceDep,
) -> ApiResponse:
    """
    DM 을 저장하고, 받는 사람이 접속 중이면 최신 연결로 바로 전달한다.
    Persist a DM and push it to the receiver's latest connection if online.
    """
    result = await service.create_dm_chat(dm_room_id, user_id, request.receiver_id, request.content)
    return ApiResponse(
        message="DM을 성공적으로 보냈습니다.",
        data=dump_data(unwrap_chat_result(result)),
    )


@router.get(
    "/chats/{dm_room_id}",
    summary="DM방 DM 조회 / List DMs of a room",
    response_model=ApiResponse,
)
async def get_dm_room_chats_endpoint(
    dm_room_id: int,
    user_id: CurrentUserDep,
    service: DMServiceDep,
) -> ApiResponse:
    result = await service.get_dm_room_chats(dm_room_id, user_id)
    return ApiResponse(
        message="참여중인 특정 DM방의 DM을 성공적으로 조회했습니다.",
        data=dump_data(unwrap_chat_result(result)),
    )


@router.get(
    "",
    summary="참여중인 DM방 조회 / List my DM rooms",
    response_model=ApiResponse,
)
async def get_my_dm_rooms_endpoint(
    user_id: CurrentUserDep,
    service: DMServiceDep,
) -> ApiResponse:
    result = await service.get_my_dm_rooms(user_id)
    return ApiResponse(
        message="참여중인 DM방을 성공적으로 조회했습니다.",
        data=dump_data(unwrap_chat_result(result)),
    )


@router.delete(
    "/exit/{dm_room_id}",
    summary="DM방 나가기 / Leave a DM room",
    response_model=ApiResponse,
)
async def exit_dm_room_endpoint(
    dm_room_id: int,
    user_id: CurrentUserDep,
    service: DMServiceDep,
) -> ApiResponse:
    result = await service.exit_dm_room(user_id, dm_room_id)
    return ApiResponse(
        message="해당 DM방을 성공적으로 나갔습니다.",
        data=dump_data(unwrap_chat_result(result)),
    )
