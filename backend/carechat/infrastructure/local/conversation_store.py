"""
SQLite implementation of the conversation store.
"""

from __future__ import annotations

from typing import Optional
from uuid import uuid4

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload

from carechat.core.config import get_settings
from carechat.core.exceptions import NotFoundError, StoreUnavailableError, ValidationError
from carechat.core.logger import logger
from carechat.infrastructure.local.database import ChatMessageORM, ChatORM, get_session_factory
from carechat.interfaces.conversation_store import IConversationStore
from carechat.models.chat import Chat, ChatMessage, ChatMessageCreate
from carechat.models.enums import MessageRole
from carechat.utils.datetime_utils import advance, now_utc
from carechat.utils.text_utils import derive_title

PERSISTED_ROLES = {MessageRole.USER, MessageRole.ASSISTANT}


class SqliteConversationStore(IConversationStore):
    """SQLite implementation of the conversation store."""

    def __init__(
        self,
        session_factory=None,
        default_title: Optional[str] = None,
        title_max_length: Optional[int] = None,
    ):
        settings = get_settings()
        self._session_factory = session_factory or get_session_factory()
        self._default_title = default_title or settings.DEFAULT_CHAT_TITLE
        self._title_max_length = title_max_length or settings.CHAT_TITLE_MAX_LENGTH

    def _message_orm_to_model(self, orm: ChatMessageORM) -> ChatMessage:
        """Convert message ORM object to Pydantic model."""
        return ChatMessage(
            id=orm.id,
            text=orm.text,
            sender=MessageRole(orm.sender),
            # Rows written by older clients may lack a timestamp
            timestamp=orm.created_at or now_utc(),
        )

    def _chat_orm_to_model(self, orm: ChatORM) -> Chat:
        """Convert chat ORM object (messages loaded) to Pydantic model."""
        created_at = orm.created_at or now_utc()
        return Chat(
            id=orm.id,
            user_id=orm.user_id,
            title=orm.title or self._default_title,
            created_at=created_at,
            updated_at=orm.updated_at or created_at,
            messages=[self._message_orm_to_model(m) for m in orm.messages],
        )

    async def create_chat(self, user_id: str) -> str:
        """Create an empty chat."""
        now = now_utc()
        chat_id = str(uuid4())
        try:
            async with self._session_factory() as session:
                session.add(
                    ChatORM(
                        id=chat_id,
                        user_id=user_id,
                        title=self._default_title,
                        created_at=now,
                        updated_at=now,
                    )
                )
                await session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Error creating new chat: {e}")
            raise StoreUnavailableError("Failed to create chat", details=str(e)) from e
        return chat_id

    async def list_chats(self, user_id: str) -> list[Chat]:
        """List chats for a user, newest-updated first."""
        try:
            async with self._session_factory() as session:
                query = (
                    select(ChatORM)
                    .where(ChatORM.user_id == user_id)
                    .options(selectinload(ChatORM.messages))
                    .order_by(ChatORM.updated_at.desc())
                )
                result = await session.execute(query)
                return [self._chat_orm_to_model(orm) for orm in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.warning(f"Error getting user chats for {user_id}: {e}")
            return []

    async def get_chat(self, chat_id: str) -> Optional[Chat]:
        """Get a chat with its messages."""
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(ChatORM)
                    .where(ChatORM.id == chat_id)
                    .options(selectinload(ChatORM.messages))
                )
                orm = result.scalar_one_or_none()
                return self._chat_orm_to_model(orm) if orm else None
        except SQLAlchemyError as e:
            logger.error(f"Error getting chat {chat_id}: {e}")
            raise StoreUnavailableError("Failed to load chat", details=str(e)) from e

    async def append_message(self, chat_id: str, message: ChatMessageCreate) -> ChatMessage:
        """Append a message in one transaction."""
        if message.sender not in PERSISTED_ROLES:
            raise ValidationError(f"Messages with role '{message.sender.value}' are not stored")
        if not message.text:
            raise ValidationError("Stored messages must have text")

        try:
            async with self._session_factory() as session:
                chat = await session.get(ChatORM, chat_id)
                if chat is None:
                    raise NotFoundError(f"Chat {chat_id} not found")

                position = await session.scalar(
                    select(func.count())
                    .select_from(ChatMessageORM)
                    .where(ChatMessageORM.chat_id == chat_id)
                )
                written_at = advance(chat.updated_at)

                message_orm = ChatMessageORM(
                    id=str(uuid4()),
                    chat_id=chat_id,
                    position=position,
                    sender=message.sender.value,
                    text=message.text,
                    created_at=written_at,
                )
                session.add(message_orm)

                chat.updated_at = written_at
                if position == 0 and message.sender == MessageRole.USER:
                    chat.title = derive_title(message.text, self._title_max_length)

                await session.commit()
                return self._message_orm_to_model(message_orm)
        except SQLAlchemyError as e:
            logger.error(f"Error adding message to chat {chat_id}: {e}")
            raise StoreUnavailableError("Failed to add message", details=str(e)) from e

    async def delete_chat(self, chat_id: str) -> None:
        """Delete a chat and its messages (no-op when absent)."""
        try:
            async with self._session_factory() as session:
                await session.execute(delete(ChatMessageORM).where(ChatMessageORM.chat_id == chat_id))
                await session.execute(delete(ChatORM).where(ChatORM.id == chat_id))
                await session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Error deleting chat {chat_id}: {e}")
            raise StoreUnavailableError("Failed to delete chat", details=str(e)) from e

    async def cleanup_empty_chats(
        self,
        user_id: str,
        exclude_chat_id: Optional[str] = None,
    ) -> int:
        """Delete the user's empty chats, skipping exclude_chat_id."""
        chats = await self.list_chats(user_id)
        empty_chats = [
            chat for chat in chats
            if chat.is_provisional and chat.id != exclude_chat_id
        ]

        deleted = 0
        for chat in empty_chats:
            try:
                await self.delete_chat(chat.id)
                deleted += 1
            except StoreUnavailableError as e:
                logger.warning(f"Failed to clean up empty chat {chat.id}: {e}")

        logger.info(f"Cleaned up {deleted} empty chats")
        return deleted
