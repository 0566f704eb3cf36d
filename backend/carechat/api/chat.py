"""
Chat inference endpoint.

Accepts the latest user message plus earlier turns and streams the raw reply
text back, chunk by chunk, with no framing.
"""

from typing import AsyncGenerator, AsyncIterator

from fastapi import APIRouter
from fastapi.responses import JSONResponse, StreamingResponse

from carechat.api.deps import AppSettings, LLMProvider
from carechat.core.logger import logger
from carechat.models.chat import HistoryEntry, InferenceRequest
from carechat.models.enums import MessageRole

router = APIRouter()


def build_messages(request: InferenceRequest, system_prompt: str) -> list[HistoryEntry]:
    """Prepend the system preamble and append the new user message."""
    messages = [HistoryEntry(role=MessageRole.SYSTEM, content=system_prompt)] if system_prompt else []
    messages.extend(request.history)
    messages.append(HistoryEntry(role=MessageRole.USER, content=request.message))
    return messages


@router.post("")
async def chat(
    request: InferenceRequest,
    llm_provider: LLMProvider,
    settings: AppSettings,
):
    """
    Stream a reply for the given message and history.

    Returns 500 when the completion cannot be started. Failures after that
    end the body early; the client keeps what it already received.
    """
    try:
        stream = await llm_provider.open_stream(build_messages(request, settings.SYSTEM_PROMPT))
    except Exception as e:
        logger.error(f"Error in chat API route: {e}")
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to process the request"},
        )

    async def text_generator(source: AsyncIterator[str]) -> AsyncGenerator[bytes, None]:
        try:
            async for text in source:
                yield text.encode("utf-8")
        except Exception as e:
            logger.error(f"Stream error: {e}")

    return StreamingResponse(
        text_generator(stream),
        media_type="text/plain; charset=utf-8",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",  # Disable buffering for nginx
        },
    )
