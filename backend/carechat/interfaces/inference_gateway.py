"""
Inference gateway interface.

Turns a message history into a live stream of reply fragments.
"""

from abc import ABC, abstractmethod
from typing import AsyncIterator, Sequence

from carechat.models.chat import HistoryEntry


class IInferenceGateway(ABC):
    """Abstract interface for streaming replies."""

    @abstractmethod
    def stream_reply(self, history: Sequence[HistoryEntry]) -> AsyncIterator[str]:
        """
        Stream the assistant reply for a history.

        Fragments joined with no separator form the full reply. The stream
        is finite and cannot be restarted; the gateway never retries.

        Args:
            history: Full history, oldest first, ending with the user message

        Yields:
            Text fragments in order

        Raises:
            TransportError: Failure before the first fragment
            StreamInterruptedError: Failure after at least one fragment
        """
        pass
