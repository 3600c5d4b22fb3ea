# tests/test_chat_services.py
from __future__ import annotations

import pytest

from project_core import Err, Ok

from app.errors import ChatErrorCode
from app.services.service_dm import DirectMessageService
from app.services.service_room import RoomChatService


@pytest.fixture
def room_service(repository, fanout) -> RoomChatService:
    return RoomChatService(repository, fanout, page_size=2)


@pytest.fixture
def dm_service(repository, fanout) -> DirectMessageService:
    return DirectMessageService(repository, fanout)


# -----------------------------
# Room chats
# -----------------------------

@pytest.mark.asyncio
async def test_seed_rooms_skips_existing(room_service, repository):
    await room_service.seed_rooms(["자유", "공부"])
    await room_service.seed_rooms(["자유", "취업"])

    match await room_service.get_all_rooms():
        case Ok(value=rooms):
            assert [room.name for room in rooms] == ["자유", "공부", "취업"]
        case other:
            pytest.fail(f"unexpected result: {other}")


@pytest.mark.asyncio
async def test_room_chat_is_broadcast_to_room_name(room_service, repository, transport):
    room = await repository.create_room("자유")
    await repository.upsert_user("u1", "Alice")

    result = await room_service.create_room_chat(room.id, "u1", "hello")

    assert isinstance(result, Ok)
    assert result.value.user.nickname == "Alice"
    [payload] = transport.payloads("message", to="자유")
    assert payload["content"] == "hello"
    assert payload["roomName"] == "자유"
    assert payload["user"]["id"] == "u1"


@pytest.mark.asyncio
async def test_room_chat_rejects_blank_and_unknown_room(room_service, repository, transport):
    room = await repository.create_room("자유")

    blank = await room_service.create_room_chat(room.id, "u1", "   ")
    missing = await room_service.create_room_chat(999, "u1", "hello")

    assert isinstance(blank, Err) and blank.error.code is ChatErrorCode.INVALID_INPUT
    assert isinstance(missing, Err) and missing.error.code is ChatErrorCode.NOT_FOUND
    assert transport.emits == []


@pytest.mark.asyncio
async def test_room_chats_paged_newest_first(room_service, repository):
    room = await repository.create_room("자유")
    for content in ("one", "two", "three"):
        await room_service.create_room_chat(room.id, "u1", content)

    first = await room_service.get_room_chats(room.id, 1)
    second = await room_service.get_room_chats(room.id, 2)

    assert [chat.content for chat in first.value] == ["three", "two"]
    assert [chat.content for chat in second.value] == ["one"]
    assert (await room_service.get_room_chats(room.id, 0)).error.code is ChatErrorCode.INVALID_INPUT


# -----------------------------
# Direct messages
# -----------------------------

@pytest.mark.asyncio
async def test_dm_room_reused_while_receiver_is_member(dm_service):
    opened = (await dm_service.create_dm_room("u1", "u2")).value.dm_room_id
    await dm_service.create_dm_chat(opened, "u1", "u2", "hi")

    again = (await dm_service.create_dm_room("u2", "u1")).value.dm_room_id
    assert again == opened


@pytest.mark.asyncio
async def test_dm_room_recreated_after_receiver_left(dm_service):
    opened = (await dm_service.create_dm_room("u1", "u2")).value.dm_room_id
    await dm_service.create_dm_chat(opened, "u1", "u2", "hi")
    await dm_service.exit_dm_room("u2", opened)

    again = (await dm_service.create_dm_room("u1", "u2")).value.dm_room_id
    assert again != opened


@pytest.mark.asyncio
async def test_dm_room_with_self_rejected(dm_service):
    result = await dm_service.create_dm_room("u1", "u1")
    assert isinstance(result, Err)
    assert result.error.code is ChatErrorCode.INVALID_INPUT


@pytest.mark.asyncio
async def test_dm_delivered_to_receivers_latest_connection(dm_service, coordinator, transport):
    for handle in ("c1", "c2"):
        await coordinator.connect(handle)
    await coordinator.login("c1", "u2")
    await coordinator.login("c2", "u2")

    dm_room_id = (await dm_service.create_dm_room("u1", "u2")).value.dm_room_id
    result = await dm_service.create_dm_chat(dm_room_id, "u1", "u2", "hi")

    assert isinstance(result, Ok)
    [(event, payload, to)] = transport.emits
    assert (event, to) == ("dm", "c2")
    assert payload["DMRoomId"] == dm_room_id
    assert payload["sendUser"]["id"] == "u1"


@pytest.mark.asyncio
async def test_dm_to_offline_receiver_is_still_stored(dm_service, transport):
    dm_room_id = (await dm_service.create_dm_room("u1", "u2")).value.dm_room_id

    result = await dm_service.create_dm_chat(dm_room_id, "u1", "u2", "hi")

    assert isinstance(result, Ok)
    assert transport.emits == []
    stored = await dm_service.get_dm_room_chats(dm_room_id, "u2")
    assert [dm.content for dm in stored.value] == ["hi"]


@pytest.mark.asyncio
async def test_dm_requires_existing_room_and_membership(dm_service):
    missing = await dm_service.create_dm_chat(999, "u1", "u2", "hi")
    assert missing.error.code is ChatErrorCode.NOT_FOUND

    dm_room_id = (await dm_service.create_dm_room("u1", "u2")).value.dm_room_id
    outsider = await dm_service.create_dm_chat(dm_room_id, "u3", "u2", "hi")
    assert outsider.error.code is ChatErrorCode.FORBIDDEN


@pytest.mark.asyncio
async def test_my_dm_rooms_and_exit(dm_service):
    dm_room_id = (await dm_service.create_dm_room("u1", "u2")).value.dm_room_id
    await dm_service.create_dm_chat(dm_room_id, "u1", "u2", "hi")

    [summary] = (await dm_service.get_my_dm_rooms("u2")).value
    assert summary.dm_room_id == dm_room_id
    assert summary.last_dm.content == "hi"

    assert isinstance(await dm_service.exit_dm_room("u2", dm_room_id), Ok)
    assert (await dm_service.get_my_dm_rooms("u2")).value == []
    assert (await dm_service.exit_dm_room("u2", dm_room_id)).error.code is ChatErrorCode.NOT_FOUND
