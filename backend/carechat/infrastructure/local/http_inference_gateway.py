"""
HTTP implementation of the inference gateway.

Talks to the inference endpoint: POST {message, history} and read the
chunked plain-text body as reply fragments.
"""

from typing import AsyncIterator, Optional, Sequence

import httpx

from carechat.core.config import get_settings
from carechat.core.exceptions import StreamInterruptedError, TransportError
from carechat.core.logger import logger
from carechat.interfaces.inference_gateway import IInferenceGateway
from carechat.models.chat import HistoryEntry, InferenceRequest
from carechat.models.enums import MessageRole


def build_inference_request(history: Sequence[HistoryEntry]) -> InferenceRequest:
    """
    Split a full history into the endpoint's request body.

    The endpoint owns the system preamble, so system entries are dropped.
    The final entry must be the user message being sent.
    """
    if not history or history[-1].role != MessageRole.USER:
        raise ValueError("History must end with a user message")
    earlier = [entry for entry in history[:-1] if entry.role != MessageRole.SYSTEM]
    return InferenceRequest(message=history[-1].content, history=earlier)


class HttpInferenceGateway(IInferenceGateway):
    """Inference gateway over httpx."""

    def __init__(
        self,
        url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        connect_timeout: Optional[float] = None,
    ):
        """
        Initialize the gateway.

        Args:
            url: Inference endpoint URL (defaults to INFERENCE_URL)
            client: Shared client; one is created per call when omitted
            connect_timeout: Connect timeout in seconds. Reads are unbounded here;
                the session controller bounds the gap between fragments.
        """
        settings = get_settings()
        self._url = url or settings.INFERENCE_URL
        self._client = client
        connect = connect_timeout or settings.INFERENCE_CONNECT_TIMEOUT_SECONDS
        self._timeout = httpx.Timeout(None, connect=connect)

    async def stream_reply(self, history: Sequence[HistoryEntry]) -> AsyncIterator[str]:
        """Stream reply fragments from the endpoint."""
        payload = build_inference_request(history).model_dump(mode="json")
        client = self._client or httpx.AsyncClient(timeout=self._timeout)
        received: list[str] = []
        try:
            async with client.stream("POST", self._url, json=payload, timeout=self._timeout) as response:
                if response.status_code != 200:
                    await response.aread()
                    logger.warning(
                        f"Inference endpoint returned {response.status_code}: {response.text[:200]}"
                    )
                    raise TransportError(
                        f"Server error: {response.status_code}",
                        status_code=response.status_code,
                    )
                async for text in response.aiter_text():
                    if not text:
                        continue
                    received.append(text)
                    yield text
        except httpx.HTTPError as e:
            if received:
                logger.warning(f"Inference stream interrupted after {len(received)} fragments: {e}")
                raise StreamInterruptedError("Reply stream interrupted", "".join(received)) from e
            logger.error(f"Inference request failed: {e}")
            raise TransportError(f"Inference request failed: {e}") from e
        finally:
            if self._client is None:
                await client.aclose()
