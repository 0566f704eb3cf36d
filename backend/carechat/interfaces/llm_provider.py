"""
LLM provider interface.

Defines the contract for streaming chat completions.
"""

from abc import ABC, abstractmethod
from typing import AsyncIterator, Optional, Sequence

from carechat.models.chat import HistoryEntry


class ILLMProvider(ABC):
    """Abstract interface for LLM providers."""

    @abstractmethod
    def get_model_name(self) -> str:
        """
        Get the human-readable model name.

        Returns:
            Model name string for logging/display
        """
        pass

    @abstractmethod
    async def open_stream(
        self,
        messages: Sequence[HistoryEntry],
        temperature: Optional[float] = None,
    ) -> AsyncIterator[str]:
        """
        Start a streaming completion.

        Errors raised while opening surface from this call; errors raised
        while reading surface from the returned iterator.

        Args:
            messages: Complete message list including the system preamble
            temperature: Sampling temperature override

        Returns:
            Iterator over non-empty text deltas
        """
        pass
