"""
Unit tests for HttpInferenceGateway, served by httpx.MockTransport.
"""

import json

import httpx
import pytest

from carechat.core.exceptions import StreamInterruptedError, TransportError
from carechat.infrastructure.local.http_inference_gateway import (
    HttpInferenceGateway,
    build_inference_request,
)
from carechat.models.chat import HistoryEntry
from carechat.models.enums import MessageRole

URL = "http://inference.test/api/chat"

HISTORY = [
    HistoryEntry(role=MessageRole.SYSTEM, content="You are a doctor."),
    HistoryEntry(role=MessageRole.USER, content="My knee hurts"),
    HistoryEntry(role=MessageRole.ASSISTANT, content="Since when?"),
    HistoryEntry(role=MessageRole.USER, content="Two days"),
]


class ChunkStream(httpx.AsyncByteStream):
    """Response body that yields chunks, then optionally fails."""

    def __init__(self, chunks, fail_with=None):
        self.chunks = chunks
        self.fail_with = fail_with

    async def __aiter__(self):
        for chunk in self.chunks:
            yield chunk
        if self.fail_with is not None:
            raise self.fail_with


def make_gateway(handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpInferenceGateway(url=URL, client=client)


async def collect(gateway, history=HISTORY):
    return [fragment async for fragment in gateway.stream_reply(history)]


class TestBuildInferenceRequest:
    def test_splits_latest_message_from_history(self):
        request = build_inference_request(HISTORY)

        assert request.message == "Two days"
        assert [(h.role, h.content) for h in request.history] == [
            (MessageRole.USER, "My knee hurts"),
            (MessageRole.ASSISTANT, "Since when?"),
        ]

    def test_rejects_history_without_trailing_user_message(self):
        with pytest.raises(ValueError):
            build_inference_request(HISTORY[:3])
        with pytest.raises(ValueError):
            build_inference_request([])


class TestStreamReply:
    @pytest.mark.asyncio
    async def test_streams_chunks_in_order(self):
        def handler(request):
            return httpx.Response(200, stream=ChunkStream([b"Rest ", b"and ", b"ice it."]))

        fragments = await collect(make_gateway(handler))

        assert "".join(fragments) == "Rest and ice it."

    @pytest.mark.asyncio
    async def test_posts_message_and_history(self):
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, text="ok")

        await collect(make_gateway(handler))

        assert seen["method"] == "POST"
        assert seen["body"] == {
            "message": "Two days",
            "history": [
                {"role": "user", "content": "My knee hurts"},
                {"role": "assistant", "content": "Since when?"},
            ],
        }

    @pytest.mark.asyncio
    async def test_utf8_split_across_chunks(self):
        encoded = "Feel better 🙂".encode("utf-8")

        def handler(request):
            return httpx.Response(200, stream=ChunkStream([encoded[:-2], encoded[-2:]]))

        fragments = await collect(make_gateway(handler))

        assert "".join(fragments) == "Feel better 🙂"

    @pytest.mark.asyncio
    async def test_non_200_raises_transport_error(self):
        def handler(request):
            return httpx.Response(500, json={"error": "Failed to process the request"})

        with pytest.raises(TransportError) as exc_info:
            await collect(make_gateway(handler))

        assert exc_info.value.status_code == 500
        assert exc_info.value.message == "Server error: 500"

    @pytest.mark.asyncio
    async def test_connection_failure_raises_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(TransportError):
            await collect(make_gateway(handler))

    @pytest.mark.asyncio
    async def test_failure_after_first_chunk_is_interruption(self):
        def handler(request):
            return httpx.Response(
                200,
                stream=ChunkStream([b"Drink water"], fail_with=httpx.ReadError("connection reset")),
            )

        gateway = make_gateway(handler)
        fragments = []
        with pytest.raises(StreamInterruptedError) as exc_info:
            async for fragment in gateway.stream_reply(HISTORY):
                fragments.append(fragment)

        assert fragments == ["Drink water"]
        assert exc_info.value.partial_text == "Drink water"

    @pytest.mark.asyncio
    async def test_shared_client_stays_open(self):
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(200, text="ok")))
        gateway = HttpInferenceGateway(url=URL, client=client)

        await collect(gateway)
        await collect(gateway)

        assert not client.is_closed
        await client.aclose()
