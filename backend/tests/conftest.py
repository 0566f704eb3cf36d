"""
Shared pytest fixtures.
"""

from typing import AsyncIterator, Sequence

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine

from carechat.core.exceptions import StreamInterruptedError, TransportError
from carechat.infrastructure.local.conversation_store import SqliteConversationStore
from carechat.infrastructure.local.database import get_session_factory, init_db
from carechat.interfaces.inference_gateway import IInferenceGateway
from carechat.models.chat import HistoryEntry
from carechat.models.user import User
from carechat.services.notification_bus import NotificationBus


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    """Session factory bound to a fresh SQLite file."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await init_db(engine)
    yield get_session_factory(engine)
    await engine.dispose()


@pytest.fixture
def store(session_factory):
    return SqliteConversationStore(session_factory=session_factory)


@pytest.fixture
def test_user_id():
    return "test_user_123"


@pytest.fixture
def test_user(test_user_id):
    return User(id=test_user_id, email="patient@example.com")


@pytest.fixture
def bus():
    return NotificationBus()


class FakeGateway(IInferenceGateway):
    """
    Scripted inference gateway.

    Yields the given fragments, then raises fail_with (if any).
    Records every history it was called with.
    """

    def __init__(self, fragments: Sequence[str] = ("Hello", ", ", "there."), fail_with: Exception | None = None):
        self.fragments = list(fragments)
        self.fail_with = fail_with
        self.calls: list[list[HistoryEntry]] = []
        self.events: list[str] | None = None

    async def stream_reply(self, history: Sequence[HistoryEntry]) -> AsyncIterator[str]:
        self.calls.append(list(history))
        if self.events is not None:
            self.events.append("gateway")
        for fragment in self.fragments:
            yield fragment
        if self.fail_with is not None:
            raise self.fail_with


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def failing_gateway():
    return FakeGateway(fragments=[], fail_with=TransportError("Server error: 500", status_code=500))


@pytest.fixture
def interrupted_gateway():
    return FakeGateway(
        fragments=["Drink water", " and rest"],
        fail_with=StreamInterruptedError("Reply stream interrupted", "Drink water and rest"),
    )
