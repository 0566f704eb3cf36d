"""
Dependency injection for API endpoints.

This module provides FastAPI dependencies that inject the configured
infrastructure implementations.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from carechat.core.config import Settings, get_settings
from carechat.interfaces.llm_provider import ILLMProvider


@lru_cache()
def get_llm_provider() -> ILLMProvider:
    """Get LLM provider instance."""
    from carechat.infrastructure.local.litellm_provider import LiteLLMProvider

    settings = get_settings()
    return LiteLLMProvider(settings.LITELLM_MODEL)


AppSettings = Annotated[Settings, Depends(get_settings)]
LLMProvider = Annotated[ILLMProvider, Depends(get_llm_provider)]
