"""
Composition root for a chat client.

Builds one NotificationBus shared by the chat window and the chat list,
and hands each controller the collaborators it needs.
"""

from dataclasses import dataclass
from typing import Optional

from carechat.infrastructure.local.conversation_store import SqliteConversationStore
from carechat.infrastructure.local.database import init_db
from carechat.infrastructure.local.http_inference_gateway import HttpInferenceGateway
from carechat.interfaces.conversation_store import IConversationStore
from carechat.interfaces.inference_gateway import IInferenceGateway
from carechat.models.user import User
from carechat.services.chat_list_controller import ChatListController
from carechat.services.notification_bus import NotificationBus
from carechat.services.session_controller import SessionController


@dataclass
class ChatControllers:
    """Controllers of one chat screen."""

    bus: NotificationBus
    session: SessionController
    chat_list: ChatListController

    async def sign_in(self, user: Optional[User]) -> None:
        """Propagate an identity change to both controllers."""
        self.session.set_user(user)
        await self.chat_list.set_user(user)

    async def close(self) -> None:
        self.chat_list.deactivate()
        await self.bus.drain()


async def build_controllers(
    store: IConversationStore,
    gateway: IInferenceGateway,
    user: Optional[User] = None,
    bus: Optional[NotificationBus] = None,
) -> ChatControllers:
    """
    Wire a session and a chat list over one bus.

    The list is activated and, when a user is given, both controllers are
    signed in (which loads the list).
    """
    bus = bus or NotificationBus()
    session = SessionController(store=store, gateway=gateway, bus=bus)
    chat_list = ChatListController(store=store, bus=bus, session=session)
    chat_list.activate()
    controllers = ChatControllers(bus=bus, session=session, chat_list=chat_list)
    if user is not None:
        await controllers.sign_in(user)
    return controllers


async def build_default_controllers(user: Optional[User] = None) -> ChatControllers:
    """Controllers over the configured SQLite store and HTTP inference endpoint."""
    await init_db()
    return await build_controllers(
        store=SqliteConversationStore(),
        gateway=HttpInferenceGateway(),
        user=user,
    )
