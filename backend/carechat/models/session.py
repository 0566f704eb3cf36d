"""
In-memory session state.

Owned and written exclusively by SessionController; never persisted.
"""

from typing import Optional

from pydantic import BaseModel, Field

from carechat.models.chat import ChatMessage
from carechat.models.enums import SessionStatus


class SessionState(BaseModel):
    """State of the chat window."""

    messages: list[ChatMessage] = Field(default_factory=list)
    input_text: str = ""
    partial_response: str = ""
    status: SessionStatus = SessionStatus.IDLE
    active_chat_id: Optional[str] = None
    error: Optional[str] = Field(None, description="Last error, shown as a notice")

    @property
    def is_idle(self) -> bool:
        return self.status == SessionStatus.IDLE

    @property
    def is_typing(self) -> bool:
        """True while the assistant reply is pending or streaming."""
        return self.status in (SessionStatus.SENDING, SessionStatus.STREAMING)
