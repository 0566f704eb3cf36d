"""
Notification bus events.

Events are small immutable payloads; subscribers must tolerate repeats.
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict

from carechat.models.enums import BusEventType


class BusEvent(BaseModel):
    """Base event."""

    model_config = ConfigDict(frozen=True)

    type: BusEventType


class RefreshChatList(BusEvent):
    """The chat list should be fetched again."""

    type: Literal[BusEventType.REFRESH_CHAT_LIST] = BusEventType.REFRESH_CHAT_LIST


class MessageCountChanged(BusEvent):
    """The active transcript length changed."""

    type: Literal[BusEventType.MESSAGE_COUNT_CHANGED] = BusEventType.MESSAGE_COUNT_CHANGED
    count: int


class CurrentChatChanged(BusEvent):
    """The active chat pointer changed (None for a provisional session)."""

    type: Literal[BusEventType.CURRENT_CHAT_CHANGED] = BusEventType.CURRENT_CHAT_CHANGED
    chat_id: Optional[str] = None
