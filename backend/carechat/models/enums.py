"""
Enum definitions for the application.
"""

from enum import Enum


class MessageRole(str, Enum):
    """
    Author of a message.

    SYSTEM only appears in inference payloads and is never persisted.
    """

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class SessionStatus(str, Enum):
    """
    Operation currently in flight for a chat session.

    IDLE = Nothing running, input enabled
    CREATING_CHAT = Store is creating a new chat record
    SENDING = User message accepted, waiting for the first fragment
    STREAMING = Assistant fragments are arriving
    LOADING_CHAT = Hydrating a stored chat
    DELETING = Store is deleting a chat
    """

    IDLE = "IDLE"
    CREATING_CHAT = "CREATING_CHAT"
    SENDING = "SENDING"
    STREAMING = "STREAMING"
    LOADING_CHAT = "LOADING_CHAT"
    DELETING = "DELETING"


class BusEventType(str, Enum):
    """Kinds of events carried by the notification bus."""

    REFRESH_CHAT_LIST = "refresh-chat-list"
    MESSAGE_COUNT_CHANGED = "message-count-changed"
    CURRENT_CHAT_CHANGED = "current-chat-changed"
