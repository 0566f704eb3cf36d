"""
LiteLLM provider implementation.

Supports OpenAI, Bedrock, and other providers via LiteLLM.
Includes support for custom endpoints (api_base) for proxy servers.
"""

import os
from typing import Any, AsyncIterator, Optional, Sequence

import litellm

from carechat.core.config import get_settings
from carechat.core.logger import logger
from carechat.interfaces.llm_provider import ILLMProvider
from carechat.models.chat import HistoryEntry


class LiteLLMProvider(ILLMProvider):
    """LiteLLM provider with custom endpoint support."""

    def __init__(
        self,
        model_name: str,
        api_base: Optional[str] = None,
        api_key: Optional[str] = None,
        temperature: Optional[float] = None,
    ):
        """
        Initialize LiteLLM provider.

        Args:
            model_name: LiteLLM model identifier (e.g., "gpt-4o-mini")
            api_base: Custom API endpoint URL (optional, for proxy servers)
            api_key: Custom API key (optional, overrides default)
            temperature: Default sampling temperature
        """
        self._model_name = model_name
        self._settings = get_settings()
        self._api_base = api_base or self._settings.LITELLM_API_BASE or None
        self._api_key = api_key or self._settings.LITELLM_API_KEY or None
        self._temperature = (
            temperature if temperature is not None else self._settings.LLM_TEMPERATURE
        )

        # Enable debug logging if DEBUG is set
        if self._settings.DEBUG:
            os.environ["LITELLM_LOG"] = "DEBUG"

    def get_model_name(self) -> str:
        """Get human-readable model name."""
        if self._api_base:
            return f"LiteLLM ({self._model_name} @ {self._api_base})"
        return f"LiteLLM ({self._model_name})"

    def _completion_kwargs(
        self,
        messages: Sequence[HistoryEntry],
        temperature: Optional[float],
    ) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "model": self._model_name,
            "messages": [
                {"role": entry.role.value, "content": entry.content} for entry in messages
            ],
            "stream": True,
            "temperature": self._temperature if temperature is None else temperature,
        }
        if self._api_base:
            kwargs["api_base"] = self._api_base
        if self._api_key:
            kwargs["api_key"] = self._api_key
        return kwargs

    async def open_stream(
        self,
        messages: Sequence[HistoryEntry],
        temperature: Optional[float] = None,
    ) -> AsyncIterator[str]:
        """Start a streaming chat completion."""
        logger.debug(f"Opening completion stream on {self.get_model_name()}")
        response = await litellm.acompletion(**self._completion_kwargs(messages, temperature))
        return self._iter_deltas(response)

    @staticmethod
    async def _iter_deltas(response) -> AsyncIterator[str]:
        async for chunk in response:
            choices = getattr(chunk, "choices", None) or []
            if not choices:
                continue
            delta = getattr(choices[0], "delta", None)
            text = getattr(delta, "content", None) if delta else None
            if text:
                yield text
