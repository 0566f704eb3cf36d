"""
Chat and message models.

Chats are owned by a user identity and hold an append-only message sequence.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from carechat.models.enums import MessageRole


class ChatMessageCreate(BaseModel):
    """Schema for appending a message to a chat."""

    text: str = Field(..., description="Message text")
    sender: MessageRole = Field(..., description="Message author")


class ChatMessage(ChatMessageCreate):
    """
    Message as held by a session or returned by the store.

    timestamp is assigned by the store; optimistic local messages have none yet.
    """

    id: Optional[str] = Field(None, description="Stored message ID")
    timestamp: Optional[datetime] = Field(None, description="Store write time")

    def to_history_entry(self) -> "HistoryEntry":
        return HistoryEntry(role=self.sender, content=self.text)


class Chat(BaseModel):
    """Chat model."""

    id: str = Field(..., description="Chat ID")
    user_id: str = Field(..., description="Owner user ID")
    title: str = Field(..., description="Chat title")
    created_at: datetime
    updated_at: datetime
    messages: list[ChatMessage] = Field(default_factory=list)

    @property
    def message_count(self) -> int:
        return len(self.messages)

    @property
    def is_provisional(self) -> bool:
        """Chats without messages are eligible for cleanup."""
        return not self.messages


class HistoryEntry(BaseModel):
    """One entry of an inference payload."""

    role: MessageRole
    content: str


class InferenceRequest(BaseModel):
    """Request body for the inference endpoint."""

    message: str = Field(..., description="Latest user message")
    history: list[HistoryEntry] = Field(
        default_factory=list, description="Earlier turns, oldest first"
    )
