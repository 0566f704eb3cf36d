"""Domain models."""

from carechat.models.chat import (
    Chat,
    ChatMessage,
    ChatMessageCreate,
    HistoryEntry,
    InferenceRequest,
)
from carechat.models.enums import BusEventType, MessageRole, SessionStatus
from carechat.models.events import (
    BusEvent,
    CurrentChatChanged,
    MessageCountChanged,
    RefreshChatList,
)
from carechat.models.session import SessionState
from carechat.models.user import User

__all__ = [
    "BusEvent",
    "BusEventType",
    "Chat",
    "ChatMessage",
    "ChatMessageCreate",
    "CurrentChatChanged",
    "HistoryEntry",
    "InferenceRequest",
    "MessageCountChanged",
    "MessageRole",
    "RefreshChatList",
    "SessionState",
    "SessionStatus",
    "User",
]
