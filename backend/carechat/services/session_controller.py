"""
Session controller.

State machine behind one chat window. It owns the in-memory transcript and
mediates between user actions, the conversation store and the inference
gateway. Only one operation runs at a time: while the status is not IDLE,
sends are ignored and chat switches are refused.
"""

import asyncio
from typing import AsyncIterator, Callable, Optional, Sequence, Union

from carechat.core.config import get_settings
from carechat.core.exceptions import (
    BusinessLogicError,
    CareChatError,
    InferenceError,
    StreamInterruptedError,
    TransportError,
    ValidationError,
)
from carechat.core.logger import logger
from carechat.interfaces.conversation_store import IConversationStore
from carechat.interfaces.inference_gateway import IInferenceGateway
from carechat.interfaces.session_commands import ISessionCommands
from carechat.models.chat import ChatMessage, ChatMessageCreate, HistoryEntry
from carechat.models.enums import MessageRole, SessionStatus
from carechat.models.events import CurrentChatChanged, MessageCountChanged, RefreshChatList
from carechat.models.session import SessionState
from carechat.models.user import User
from carechat.services.notification_bus import NotificationBus

StateListener = Callable[[SessionState], None]


class SessionController(ISessionCommands):
    """Owns the SessionState of one chat window."""

    def __init__(
        self,
        store: IConversationStore,
        gateway: IInferenceGateway,
        bus: NotificationBus,
        user: Optional[User] = None,
        system_prompt: Optional[str] = None,
        stream_idle_timeout: Optional[float] = None,
    ):
        """
        Initialize the controller.

        Args:
            store: Conversation store (only used when a user is signed in)
            gateway: Inference gateway
            bus: Bus for chat-list notifications
            user: Signed-in user, None for a guest session
            system_prompt: Preamble sent ahead of the transcript
                (defaults to SYSTEM_PROMPT, "" disables it)
            stream_idle_timeout: Max seconds between fragments
                (defaults to STREAM_IDLE_TIMEOUT_SECONDS, <= 0 disables it)
        """
        settings = get_settings()
        self.store = store
        self.gateway = gateway
        self.bus = bus
        self._user = user
        self._system_prompt = settings.SYSTEM_PROMPT if system_prompt is None else system_prompt
        if stream_idle_timeout is None:
            stream_idle_timeout = settings.stream_idle_timeout
        self._idle_timeout = stream_idle_timeout if stream_idle_timeout and stream_idle_timeout > 0 else None
        self._state = SessionState()
        self._listeners: list[StateListener] = []

    # ===========================================
    # Read access
    # ===========================================

    @property
    def state(self) -> SessionState:
        """Current state. Treat as read-only."""
        return self._state

    @property
    def user(self) -> Optional[User]:
        return self._user

    @property
    def status(self) -> SessionStatus:
        return self._state.status

    @property
    def active_chat_id(self) -> Optional[str]:
        return self._state.active_chat_id

    @property
    def messages(self) -> list[ChatMessage]:
        return list(self._state.messages)

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """
        Register a render callback, called after every state change.

        Returns:
            Function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ===========================================
    # Input and identity
    # ===========================================

    def set_input(self, text: str) -> None:
        """Update the pending input buffer."""
        self._state.input_text = text
        self._notify()

    def set_user(self, user: Optional[User]) -> None:
        """
        Switch identity and start over with a provisional session.

        Raises:
            BusinessLogicError: An operation is in flight
        """
        if not self._state.is_idle:
            raise BusinessLogicError(
                f"Cannot change user while {self._state.status.value.lower()}"
            )
        self._user = user
        self._state.error = None
        self._reset_session()
        self._notify()

    # ===========================================
    # Operations
    # ===========================================

    async def send_message(self, text: Optional[str] = None) -> Optional[ChatMessage]:
        """
        Send a user message and stream the assistant reply.

        The user message is shown at once and stays in the transcript on every
        error path. For signed-in users the chat is created on first send and
        both messages are persisted.

        Args:
            text: Message text (defaults to the input buffer)

        Returns:
            The committed assistant message, or None when another operation
            is in flight and the call was ignored

        Raises:
            ValidationError: Text is empty or whitespace
            StoreUnavailableError: Creating the chat or persisting failed
            TransportError: The reply failed before any fragment arrived
        """
        if not self._state.is_idle:
            logger.debug(f"send_message ignored while {self._state.status.value}")
            return None

        content = (self._state.input_text if text is None else text).strip()
        if not content:
            raise ValidationError("Message text must not be empty")

        user_message = ChatMessage(text=content, sender=MessageRole.USER)
        history = self._build_history(user_message)

        self._state.input_text = ""
        self._state.partial_response = ""
        self._state.error = None
        self._append_local(user_message)

        chat_id = self._state.active_chat_id
        if self._user is not None and chat_id is None:
            self._set_status(SessionStatus.CREATING_CHAT)
            try:
                chat_id = await self.store.create_chat(self._user.id)
            except CareChatError as e:
                logger.error(f"Failed to create new chat before sending message: {e}")
                self._fail(e)
                raise
            self._set_active_chat(chat_id)
            self.bus.publish(RefreshChatList())

        self._set_status(SessionStatus.SENDING)

        persist_task: Optional[asyncio.Task] = None
        if self._user is not None:
            persist_task = asyncio.create_task(self._persist(chat_id, user_message))
            # Let the append start before the gateway is contacted
            await asyncio.sleep(0)

        fragments: list[str] = []
        stream_error: Optional[InferenceError] = None
        try:
            async for fragment in self._iter_fragments(history):
                fragments.append(fragment)
                self._state.partial_response += fragment
                self._state.status = SessionStatus.STREAMING
                self._notify()
        except InferenceError as e:
            stream_error = e
        except BaseException as e:
            await self._settle(persist_task)
            self._fail(f"Unexpected error while streaming: {e!r}")
            raise

        reply = "".join(fragments)
        if not reply:
            if isinstance(stream_error, TransportError):
                error = stream_error
            else:
                error = TransportError(
                    stream_error.message if stream_error else "Empty reply from inference service"
                )
            logger.error(f"Error sending message: {error}")
            await self._settle(persist_task)
            self._fail(error)
            raise error

        assistant_message = ChatMessage(text=reply, sender=MessageRole.ASSISTANT)
        self._state.partial_response = ""
        self._append_local(assistant_message)
        if stream_error is not None:
            logger.warning(f"Keeping partial reply ({len(reply)} chars): {stream_error}")
            self._state.error = stream_error.message

        if persist_task is not None:
            try:
                stored_user = await persist_task
                self._confirm(user_message, stored_user)
                stored_reply = await self._persist(chat_id, assistant_message)
                self._confirm(assistant_message, stored_reply)
            except CareChatError as e:
                logger.error(f"Error saving messages to chat {chat_id}: {e}")
                self._fail(e)
                raise

        self._set_status(SessionStatus.IDLE)
        return assistant_message

    async def load_chat(self, chat_id: str) -> bool:
        """
        Replace the transcript with a stored chat.

        The current transcript is cleared first. If the chat is gone or cannot
        be read, the session falls back to a provisional empty chat.

        Returns:
            True when the chat was loaded
        """
        if self._user is None:
            logger.warning("load_chat requires a signed-in user")
            return False
        if not self._state.is_idle:
            logger.warning(f"Refusing to switch chats while {self._state.status.value}")
            return False

        self._state.error = None
        self._reset_session()
        self._set_status(SessionStatus.LOADING_CHAT)

        try:
            chat = await self.store.get_chat(chat_id)
        except CareChatError as e:
            logger.error(f"Error loading chat {chat_id}: {e}")
            self._fail(e)
            return False

        if chat is None or chat.user_id != self._user.id:
            logger.error(f"Failed to load chat {chat_id}: chat does not exist")
            self._fail(f"Chat {chat_id} no longer exists")
            self.bus.publish(RefreshChatList())
            return False

        self._set_messages(list(chat.messages))
        self._set_active_chat(chat.id)
        self._set_status(SessionStatus.IDLE)
        return True

    async def create_new_chat(self) -> Optional[str]:
        """
        Start a new conversation.

        Guests only get a reset transcript. Signed-in users get a stored
        (still empty) chat which becomes active.

        Returns:
            New chat ID, or None for guests and refused calls

        Raises:
            StoreUnavailableError: The chat could not be created
        """
        if not self._state.is_idle:
            logger.warning(f"Refusing to start a new chat while {self._state.status.value}")
            return None
        return await self._start_new_chat()

    async def delete_chat(self, chat_id: str) -> bool:
        """
        Delete a stored chat.

        Deleting the active chat moves the session to a new chat, so the
        active pointer never refers to a deleted ID. Chats owned by another
        user are left alone.

        Returns:
            True when deleted, False when refused

        Raises:
            StoreUnavailableError: The store could not delete the chat
        """
        if self._user is None:
            logger.warning("delete_chat requires a signed-in user")
            return False
        if not self._state.is_idle:
            logger.warning(f"Refusing to delete a chat while {self._state.status.value}")
            return False

        self._state.error = None
        self._set_status(SessionStatus.DELETING)
        try:
            chat = await self.store.get_chat(chat_id)
            if chat is not None and chat.user_id != self._user.id:
                logger.warning(f"Refusing to delete chat {chat_id} owned by another user")
                self._fail(f"Chat {chat_id} cannot be deleted")
                return False
            await self.store.delete_chat(chat_id)
        except CareChatError as e:
            logger.error(f"Error deleting chat {chat_id}: {e}")
            self._fail(e)
            raise

        if chat_id == self._state.active_chat_id:
            self._reset_session()
            try:
                await self._start_new_chat()
            except CareChatError as e:
                logger.warning(f"Continuing with an unsaved chat after deletion: {e}")

        self.bus.publish(RefreshChatList())
        self._set_status(SessionStatus.IDLE)
        return True

    # ===========================================
    # Internals
    # ===========================================

    async def _start_new_chat(self) -> Optional[str]:
        self._state.error = None
        if self._user is None:
            self._reset_session()
            self.bus.publish(RefreshChatList())
            self._set_status(SessionStatus.IDLE)
            return None

        self._set_status(SessionStatus.CREATING_CHAT)
        try:
            chat_id = await self.store.create_chat(self._user.id)
        except CareChatError as e:
            logger.error(f"Error creating new chat: {e}")
            self._fail(e)
            raise

        self._reset_session(chat_id)
        self.bus.publish(RefreshChatList())
        self._set_status(SessionStatus.IDLE)
        return chat_id

    def _build_history(self, new_message: ChatMessage) -> list[HistoryEntry]:
        history: list[HistoryEntry] = []
        if self._system_prompt:
            history.append(HistoryEntry(role=MessageRole.SYSTEM, content=self._system_prompt))
        history.extend(message.to_history_entry() for message in self._state.messages)
        history.append(new_message.to_history_entry())
        return history

    async def _iter_fragments(self, history: Sequence[HistoryEntry]) -> AsyncIterator[str]:
        """Read the gateway stream, bounding the wait for each fragment."""
        stream = self.gateway.stream_reply(history)
        received = False
        try:
            while True:
                try:
                    if self._idle_timeout is None:
                        fragment = await stream.__anext__()
                    else:
                        fragment = await asyncio.wait_for(stream.__anext__(), self._idle_timeout)
                except StopAsyncIteration:
                    return
                except asyncio.TimeoutError as e:
                    message = f"No reply data for {self._idle_timeout:g}s"
                    if received:
                        raise StreamInterruptedError(message) from e
                    raise TransportError(message) from e
                received = True
                yield fragment
        finally:
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                await aclose()

    async def _persist(self, chat_id: str, message: ChatMessage) -> ChatMessage:
        stored = await self.store.append_message(
            chat_id,
            ChatMessageCreate(text=message.text, sender=message.sender),
        )
        self.bus.publish(RefreshChatList())
        return stored

    async def _settle(self, task: Optional[asyncio.Task]) -> None:
        """Wait for a pending persist so its failure is logged, not lost."""
        if task is None:
            return
        try:
            await task
        except CareChatError as e:
            logger.error(f"Error saving user message: {e}")

    def _confirm(self, local: ChatMessage, stored: ChatMessage) -> None:
        """Swap an optimistic message for its stored copy."""
        messages = list(self._state.messages)
        for index, message in enumerate(messages):
            if message is local:
                messages[index] = stored
                self._state.messages = messages
                self._notify()
                return

    def _append_local(self, message: ChatMessage) -> None:
        self._set_messages([*self._state.messages, message])

    def _set_messages(self, messages: list[ChatMessage]) -> None:
        changed = len(messages) != len(self._state.messages)
        self._state.messages = messages
        self._notify()
        if changed:
            self.bus.publish(MessageCountChanged(count=len(messages)))

    def _set_active_chat(self, chat_id: Optional[str]) -> None:
        if chat_id == self._state.active_chat_id:
            return
        self._state.active_chat_id = chat_id
        self._notify()
        self.bus.publish(CurrentChatChanged(chat_id=chat_id))

    def _reset_session(self, chat_id: Optional[str] = None) -> None:
        self._state.partial_response = ""
        self._set_messages([])
        self._set_active_chat(chat_id)

    def _set_status(self, status: SessionStatus) -> None:
        self._state.status = status
        self._notify()

    def _fail(self, error: Union[CareChatError, str]) -> None:
        """Return to IDLE with the error shown; the transcript is left as is."""
        self._state.error = error.message if isinstance(error, CareChatError) else error
        self._state.partial_response = ""
        self._state.status = SessionStatus.IDLE
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception as e:
                logger.error(f"Session listener failed: {e}")
