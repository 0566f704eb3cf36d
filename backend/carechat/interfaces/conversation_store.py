"""
Conversation store interface.

Defines the contract for durable chat persistence.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from carechat.models.chat import Chat, ChatMessage, ChatMessageCreate


class IConversationStore(ABC):
    """Abstract interface for chat and message persistence."""

    @abstractmethod
    async def create_chat(self, user_id: str) -> str:
        """
        Create an empty chat with the placeholder title.

        Args:
            user_id: Owner user ID

        Returns:
            New chat ID

        Raises:
            StoreUnavailableError: The backing service is unreachable
        """
        pass

    @abstractmethod
    async def list_chats(self, user_id: str) -> list[Chat]:
        """
        List a user's chats, most recently updated first.

        Never raises: on failure an empty list is returned.

        Args:
            user_id: Owner user ID

        Returns:
            Chats with their messages
        """
        pass

    @abstractmethod
    async def get_chat(self, chat_id: str) -> Optional[Chat]:
        """
        Get a chat with its full message sequence.

        Args:
            chat_id: Chat ID

        Returns:
            Chat, or None when the ID does not resolve

        Raises:
            StoreUnavailableError: Transient failure (distinct from not found)
        """
        pass

    @abstractmethod
    async def append_message(self, chat_id: str, message: ChatMessageCreate) -> ChatMessage:
        """
        Append one message and bump updated_at.

        The title is derived from the message when it is the chat's first
        message and was sent by the user. Not idempotent: call once per
        logical message.

        Args:
            chat_id: Chat ID
            message: Message to append

        Returns:
            Stored message with its store-assigned timestamp

        Raises:
            ValidationError: Empty text or a non-persistable role
            NotFoundError: Chat does not exist
            StoreUnavailableError: The backing service is unreachable
        """
        pass

    @abstractmethod
    async def delete_chat(self, chat_id: str) -> None:
        """
        Delete a chat. Succeeds when the chat is already gone.

        Raises:
            StoreUnavailableError: The backing service is unreachable
        """
        pass

    @abstractmethod
    async def cleanup_empty_chats(
        self,
        user_id: str,
        exclude_chat_id: Optional[str] = None,
    ) -> int:
        """
        Delete every chat of the user that has no messages (best effort).

        Args:
            user_id: Owner user ID
            exclude_chat_id: Chat kept even when empty (the active one)

        Returns:
            Number of chats deleted
        """
        pass
