"""
Unit tests for ChatListController.
"""

from unittest.mock import AsyncMock

import pytest

from carechat.core.exceptions import StoreUnavailableError
from carechat.interfaces.conversation_store import IConversationStore
from carechat.interfaces.session_commands import ISessionCommands
from carechat.models.chat import ChatMessageCreate
from carechat.models.enums import BusEventType, MessageRole
from carechat.models.events import CurrentChatChanged, MessageCountChanged, RefreshChatList
from carechat.models.user import User
from carechat.services.chat_list_controller import ChatListController


async def create_chat_with_message(store, user_id, text="hello"):
    chat_id = await store.create_chat(user_id)
    await store.append_message(chat_id, ChatMessageCreate(text=text, sender=MessageRole.USER))
    return chat_id


@pytest.fixture
def session_commands():
    return AsyncMock(spec=ISessionCommands)


@pytest.fixture
def chat_list(store, bus, session_commands):
    controller = ChatListController(store=store, bus=bus, session=session_commands, display_limit=3)
    controller.activate()
    yield controller
    controller.deactivate()


class TestInitialLoad:
    @pytest.mark.asyncio
    async def test_sign_in_cleans_up_and_loads(self, store, chat_list, test_user):
        kept = await create_chat_with_message(store, test_user.id)
        await store.create_chat(test_user.id)

        await chat_list.set_user(test_user)

        assert [chat.id for chat in chat_list.chats] == [kept]
        assert chat_list.loading is False

    @pytest.mark.asyncio
    async def test_cleanup_failure_still_loads(self, bus, test_user):
        store = AsyncMock(spec=IConversationStore)
        store.cleanup_empty_chats.side_effect = StoreUnavailableError("Failed to delete chat")
        store.list_chats.return_value = []
        controller = ChatListController(store=store, bus=bus)

        await controller.set_user(test_user)

        store.list_chats.assert_awaited_once_with(test_user.id)

    @pytest.mark.asyncio
    async def test_active_chat_survives_cleanup(self, store, chat_list, bus, test_user):
        active = await store.create_chat(test_user.id)
        bus.publish(CurrentChatChanged(chat_id=active))

        await chat_list.set_user(test_user)

        assert [chat.id for chat in chat_list.visible_chats] == [active]

    @pytest.mark.asyncio
    async def test_same_user_does_not_reload(self, bus, test_user):
        store = AsyncMock(spec=IConversationStore)
        store.list_chats.return_value = []
        controller = ChatListController(store=store, bus=bus)

        await controller.set_user(test_user)
        await controller.set_user(User(id=test_user.id))

        assert store.list_chats.await_count == 1

    @pytest.mark.asyncio
    async def test_sign_out_clears_list(self, store, chat_list, test_user):
        await create_chat_with_message(store, test_user.id)
        await chat_list.set_user(test_user)

        await chat_list.set_user(None)

        assert chat_list.chats == []
        assert await chat_list.refresh() == []


class TestEvents:
    @pytest.mark.asyncio
    async def test_refresh_event_reloads_list(self, store, chat_list, bus, test_user):
        await chat_list.set_user(test_user)
        chat_id = await create_chat_with_message(store, test_user.id)

        bus.publish(RefreshChatList())
        await bus.drain()

        assert [chat.id for chat in chat_list.chats] == [chat_id]

    @pytest.mark.asyncio
    async def test_message_count_and_current_chat_are_tracked(self, chat_list, bus):
        bus.publish(MessageCountChanged(count=4))
        bus.publish(CurrentChatChanged(chat_id="chat-9"))

        assert chat_list.message_count == 4
        assert chat_list.active_chat_id == "chat-9"

    @pytest.mark.asyncio
    async def test_deactivate_stops_listening(self, store, chat_list, bus, test_user):
        await chat_list.set_user(test_user)
        chat_list.deactivate()
        await create_chat_with_message(store, test_user.id)

        bus.publish(RefreshChatList())
        await bus.drain()

        assert chat_list.chats == []
        assert not chat_list.is_active
        for event_type in BusEventType:
            assert bus.subscriber_count(event_type) == 0


class TestViews:
    @pytest.mark.asyncio
    async def test_list_is_newest_first(self, store, chat_list, test_user):
        first = await create_chat_with_message(store, test_user.id, "first")
        second = await create_chat_with_message(store, test_user.id, "second")
        await store.append_message(first, ChatMessageCreate(text="bump", sender=MessageRole.USER))

        await chat_list.set_user(test_user)

        assert [chat.id for chat in chat_list.chats] == [first, second]

    @pytest.mark.asyncio
    async def test_display_limit_splits_overflow(self, store, chat_list, test_user):
        ids = [await create_chat_with_message(store, test_user.id, f"q{i}") for i in range(5)]

        await chat_list.set_user(test_user)

        assert [chat.id for chat in chat_list.displayed_chats] == ids[::-1][:3]
        assert [chat.id for chat in chat_list.overflow_chats] == ids[::-1][3:]

    @pytest.mark.asyncio
    async def test_empty_chats_hidden_unless_active(self, store, chat_list, bus, test_user):
        await chat_list.set_user(test_user)
        empty = await store.create_chat(test_user.id)
        await chat_list.refresh()

        assert chat_list.visible_chats == []

        bus.publish(CurrentChatChanged(chat_id=empty))

        assert [chat.id for chat in chat_list.visible_chats] == [empty]


class TestOperations:
    @pytest.mark.asyncio
    async def test_select_chat_marks_active(self, chat_list, session_commands):
        session_commands.load_chat.return_value = True

        assert await chat_list.select_chat("chat-1") is True

        session_commands.load_chat.assert_awaited_once_with("chat-1")
        assert chat_list.active_chat_id == "chat-1"

    @pytest.mark.asyncio
    async def test_failed_select_keeps_active(self, chat_list, session_commands):
        session_commands.load_chat.return_value = False

        assert await chat_list.select_chat("gone") is False
        assert chat_list.active_chat_id is None

    @pytest.mark.asyncio
    async def test_new_chat_delegates_to_session(self, chat_list, session_commands):
        session_commands.create_new_chat.return_value = "chat-2"

        assert await chat_list.new_chat() == "chat-2"

    @pytest.mark.asyncio
    async def test_delete_removes_cached_entry(self, store, chat_list, session_commands, test_user):
        chat_id = await create_chat_with_message(store, test_user.id)
        await chat_list.set_user(test_user)
        session_commands.delete_chat.return_value = True

        assert await chat_list.delete_chat(chat_id) is True

        session_commands.delete_chat.assert_awaited_once_with(chat_id)
        assert chat_list.chats == []

    @pytest.mark.asyncio
    async def test_cleanup_publishes_refresh(self, store, chat_list, bus, test_user):
        await chat_list.set_user(test_user)
        await store.create_chat(test_user.id)
        received = []
        bus.subscribe(BusEventType.REFRESH_CHAT_LIST, received.append)

        assert await chat_list.cleanup() == 1
        await bus.drain()

        assert received == [RefreshChatList()]
        assert await store.list_chats(test_user.id) == []

    @pytest.mark.asyncio
    async def test_operations_without_session(self, store, bus):
        controller = ChatListController(store=store, bus=bus)

        assert await controller.select_chat("chat-1") is False
        assert await controller.new_chat() is None
        assert await controller.delete_chat("chat-1") is False
