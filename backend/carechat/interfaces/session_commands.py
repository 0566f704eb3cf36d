"""
Session command surface.

The subset of SessionController the chat list needs to act on the chat window.
"""

from abc import ABC, abstractmethod
from typing import Optional


class ISessionCommands(ABC):
    """Commands the chat list may issue to the active session."""

    @abstractmethod
    async def load_chat(self, chat_id: str) -> bool:
        """Show a stored chat. Returns False when it could not be loaded."""
        pass

    @abstractmethod
    async def create_new_chat(self) -> Optional[str]:
        """Start a new chat. Returns the new chat ID (None for guests)."""
        pass

    @abstractmethod
    async def delete_chat(self, chat_id: str) -> bool:
        """Delete a chat. Returns False when the request was refused."""
        pass
