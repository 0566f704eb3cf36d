"""
In-process implementation of the inference gateway.

Streams straight from an LLM provider, for clients that run next to the model.
"""

from typing import AsyncIterator, Sequence

from carechat.core.exceptions import StreamInterruptedError, TransportError
from carechat.core.logger import logger
from carechat.interfaces.inference_gateway import IInferenceGateway
from carechat.interfaces.llm_provider import ILLMProvider
from carechat.models.chat import HistoryEntry


class LLMInferenceGateway(IInferenceGateway):
    """Inference gateway backed by an ILLMProvider."""

    def __init__(self, llm_provider: ILLMProvider):
        self.llm_provider = llm_provider

    async def stream_reply(self, history: Sequence[HistoryEntry]) -> AsyncIterator[str]:
        """Stream reply fragments from the provider."""
        try:
            stream = await self.llm_provider.open_stream(history)
        except Exception as e:
            logger.error(f"Failed to start completion on {self.llm_provider.get_model_name()}: {e}")
            raise TransportError(f"Failed to start completion: {e}") from e

        received: list[str] = []
        try:
            async for text in stream:
                received.append(text)
                yield text
        except Exception as e:
            if received:
                logger.warning(f"Completion interrupted after {len(received)} fragments: {e}")
                raise StreamInterruptedError("Reply stream interrupted", "".join(received)) from e
            logger.error(f"Completion failed before any output: {e}")
            raise TransportError(f"Completion failed: {e}") from e
