from app.internal.chat_repository import ChatRepository
from app.models.model_io_common import ProfileImage, UserSummary


async def resolve_user_summary(repository: ChatRepository, user_id: str) -> UserSummary:
    """
    채팅/DM 레코드에 실을 사용자 요약을 만든다. 모르는 사용자는 id 를 닉네임으로 쓴다.
    Build the user summary embedded in chat/DM records; unknown users use
    their id as nickname.
    """
    user = await repository.get_user(user_id)
    if user is None:
        return UserSummary(id=user_id, nickname=await repository.resolve_display_name(user_id))

    profile_image = (
        ProfileImage(url=user.profile_image_url)
        if user.profile_image_url is not None
        else None
    )
    return UserSummary(id=user.id, nickname=user.nickname, profile_image=profile_image)
