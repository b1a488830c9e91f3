import asyncio

import httpx
import pytest

from airframe.adapters.llama_server import LlamaServerAdapter
from airframe.endpoints import EndpointSpec, BackendKind
from airframe.types import InferenceRequest, StreamEventType


class InfiniteResponse:
    async def aiter_lines(self):
        while True:
            yield 'data: {"content":"x"}'
            await asyncio.sleep(0)


@pytest.mark.asyncio
async def test_stream_cancellation_stops_promptly():
    adapter = LlamaServerAdapter()
    response = InfiniteResponse()

    first_token = asyncio.Event()

    async def consume():
        async for _ in adapter._stream_sse(response):
            first_token.set()
            await asyncio.sleep(10)  # keep running until cancelled

    task = asyncio.create_task(consume())
    await asyncio.wait_for(first_token.wait(), timeout=1.0)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await asyncio.wait_for(task, timeout=1.0)


@pytest.mark.asyncio
async def test_aclose_stops_stream_after_first_token():
    async def body():
        while True:
            yield b'data: {"content":"x"}\n\n'
            await asyncio.sleep(0)

    def handler(request):
        return httpx.Response(200, content=body())

    adapter = LlamaServerAdapter(transport=httpx.MockTransport(handler))
    endpoint = EndpointSpec(name="llama", base_url="http://x", backend_kind=BackendKind.LLAMA_SERVER)
    stream = adapter.stream_infer(endpoint, InferenceRequest.from_prompt("go"))

    first = await stream.__anext__()
    assert first.type == StreamEventType.TOKEN

    await stream.aclose()
    with pytest.raises(StopAsyncIteration):
        await stream.__anext__()
