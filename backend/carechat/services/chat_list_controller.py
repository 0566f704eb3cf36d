"""
Chat list controller.

Keeps the sidebar's cached list of the user's chats. The cache is refreshed
when a user signs in and whenever a refresh event arrives on the bus; there
is no polling.
"""

from typing import Optional

from carechat.core.config import get_settings
from carechat.core.exceptions import CareChatError
from carechat.core.logger import logger
from carechat.interfaces.conversation_store import IConversationStore
from carechat.interfaces.session_commands import ISessionCommands
from carechat.models.chat import Chat
from carechat.models.enums import BusEventType
from carechat.models.events import BusEvent, CurrentChatChanged, MessageCountChanged, RefreshChatList
from carechat.models.user import User
from carechat.services.notification_bus import NotificationBus, Subscription


class ChatListController:
    """Cached, event-driven projection of a user's chats."""

    def __init__(
        self,
        store: IConversationStore,
        bus: NotificationBus,
        session: Optional[ISessionCommands] = None,
        display_limit: Optional[int] = None,
    ):
        """
        Initialize the controller.

        Args:
            store: Conversation store to read from
            bus: Bus delivering refresh / message-count / current-chat events
            session: Command surface of the chat window (select, new, delete)
            display_limit: Max chats rendered before the overflow
                (defaults to CHAT_LIST_DISPLAY_LIMIT)
        """
        self.store = store
        self.bus = bus
        self.session = session
        self.display_limit = display_limit or get_settings().CHAT_LIST_DISPLAY_LIMIT

        self._user: Optional[User] = None
        self._chats: list[Chat] = []
        self._subscriptions: list[Subscription] = []
        self.loading = False
        self.active_chat_id: Optional[str] = None
        self.message_count = 0

    # ===========================================
    # Lifecycle
    # ===========================================

    @property
    def is_active(self) -> bool:
        return bool(self._subscriptions)

    def activate(self) -> None:
        """Start listening to the bus."""
        if self._subscriptions:
            return
        self._subscriptions = [
            self.bus.subscribe(BusEventType.REFRESH_CHAT_LIST, self._on_refresh),
            self.bus.subscribe(BusEventType.MESSAGE_COUNT_CHANGED, self._on_message_count),
            self.bus.subscribe(BusEventType.CURRENT_CHAT_CHANGED, self._on_current_chat),
        ]

    def deactivate(self) -> None:
        """Stop listening to the bus."""
        for subscription in self._subscriptions:
            subscription.unsubscribe()
        self._subscriptions = []

    async def set_user(self, user: Optional[User]) -> None:
        """
        Track the signed-in user.

        When a user becomes available, empty chats are cleaned up and the list
        is loaded. Signing out clears the cache.
        """
        previous = self._user
        self._user = user
        if user is None:
            self._chats = []
            return
        if previous is not None and previous.id == user.id:
            return
        await self._initial_load(user)

    # ===========================================
    # Views
    # ===========================================

    @property
    def chats(self) -> list[Chat]:
        """Full cached list, newest-updated first."""
        return list(self._chats)

    @property
    def visible_chats(self) -> list[Chat]:
        """Chats with messages, plus the active chat even when empty."""
        return [
            chat for chat in self._chats
            if chat.message_count or chat.id == self.active_chat_id
        ]

    @property
    def displayed_chats(self) -> list[Chat]:
        return self.visible_chats[: self.display_limit]

    @property
    def overflow_chats(self) -> list[Chat]:
        return self.visible_chats[self.display_limit:]

    # ===========================================
    # Operations
    # ===========================================

    async def refresh(self) -> list[Chat]:
        """Fetch the list again (no-op without a user)."""
        user = self._user
        if user is None:
            return []
        self.loading = True
        try:
            chats = await self.store.list_chats(user.id)
        finally:
            self.loading = False
        # Drop results for a user who signed out while loading
        if self._user is not None and self._user.id == user.id:
            self._chats = chats
        return self.chats

    async def cleanup(self) -> int:
        """Remove empty chats (except the active one) and reload."""
        if self._user is None:
            return 0
        try:
            deleted = await self.store.cleanup_empty_chats(
                self._user.id, exclude_chat_id=self.active_chat_id
            )
        except CareChatError as e:
            logger.error(f"Error during cleanup: {e}")
            return 0
        await self.refresh()
        self.bus.publish(RefreshChatList())
        return deleted

    async def select_chat(self, chat_id: str) -> bool:
        """Open a chat in the chat window."""
        if self.session is None:
            return False
        loaded = await self.session.load_chat(chat_id)
        if loaded:
            self.active_chat_id = chat_id
        return loaded

    async def new_chat(self) -> Optional[str]:
        if self.session is None:
            return None
        return await self.session.create_new_chat()

    async def delete_chat(self, chat_id: str) -> bool:
        """
        Delete a chat through the chat window.

        The cached entry is removed at once; the refresh event that follows
        reconciles the rest of the list.
        """
        if self.session is None:
            return False
        deleted = await self.session.delete_chat(chat_id)
        if deleted:
            self._chats = [chat for chat in self._chats if chat.id != chat_id]
        return deleted

    # ===========================================
    # Internals
    # ===========================================

    async def _initial_load(self, user: User) -> None:
        self.loading = True
        try:
            try:
                await self.store.cleanup_empty_chats(user.id, exclude_chat_id=self.active_chat_id)
            except CareChatError as e:
                logger.error(f"Error cleaning up chats, loading without cleanup: {e}")
            chats = await self.store.list_chats(user.id)
        finally:
            self.loading = False
        if self._user is not None and self._user.id == user.id:
            self._chats = chats

    async def _on_refresh(self, event: BusEvent) -> None:
        await self.refresh()

    def _on_message_count(self, event: BusEvent) -> None:
        if isinstance(event, MessageCountChanged):
            self.message_count = event.count

    def _on_current_chat(self, event: BusEvent) -> None:
        if isinstance(event, CurrentChatChanged):
            self.active_chat_id = event.chat_id
