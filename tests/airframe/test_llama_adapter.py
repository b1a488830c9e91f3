import json

import httpx
import pytest

from airframe.adapters.llama_server import LlamaServerAdapter
from airframe.endpoints import EndpointSpec, BackendKind
from airframe.types import InferenceRequest, StreamEventType


class FakeResponse:
    def __init__(self, lines):
        self._lines = lines

    async def aiter_lines(self):
        for line in self._lines:
            yield line


def _endpoint(api_type=None):
    return EndpointSpec(
        name="llama",
        base_url="http://localhost:8080",
        backend_kind=BackendKind.LLAMA_SERVER,
        api_type=api_type,
    )


def test_native_path_and_payload():
    adapter = LlamaServerAdapter()
    request = InferenceRequest.from_prompt("User: hi\nAssistant:", max_tokens=64, temperature=0.1)

    assert adapter._path(_endpoint()) == "/completion"
    payload = adapter._build_payload(_endpoint(), request)
    assert payload["prompt"] == "User: hi\nAssistant:"
    assert payload["n_predict"] == 64
    assert payload["temperature"] == 0.1
    assert payload["cache_prompt"] is True


def test_openai_mode_path_and_payload():
    adapter = LlamaServerAdapter()
    request = InferenceRequest.from_prompt("hi", model="qwen", max_tokens=32)

    assert adapter._path(_endpoint("openai")) == "/v1/completions"
    payload = adapter._build_payload(_endpoint("openai"), request)
    assert payload["prompt"] == "hi"
    assert payload["max_tokens"] == 32
    assert payload["model"] == "qwen"


@pytest.mark.asyncio
async def test_stream_done_emitted_once():
    adapter = LlamaServerAdapter()
    lines = [
        'data: {"content":"Hi"}',
        'data: {"content":"","stop": true}',
        'data: {"content":"ignored"}',
    ]
    events = [ev async for ev in adapter._stream_sse(FakeResponse(lines))]

    done_events = [e for e in events if e.type == StreamEventType.DONE]
    assert len(done_events) == 1
    assert [e.content for e in events if e.type == StreamEventType.TOKEN] == ["Hi"]


@pytest.mark.asyncio
async def test_openai_mode_stream_reads_choice_text():
    adapter = LlamaServerAdapter()
    lines = [
        'data: {"choices":[{"text":"a"}]}',
        'data: {"choices":[{"text":"b","finish_reason":"length"}]}',
    ]
    events = [ev async for ev in adapter._stream_sse(FakeResponse(lines))]

    assert [e.content for e in events if e.type == StreamEventType.TOKEN] == ["a", "b"]
    assert events[-1].finish_reason == "length"


@pytest.mark.asyncio
async def test_stream_infer_over_mock_transport():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/completion"
        body = json.loads(request.content)
        assert body["stream"] is True
        return httpx.Response(
            200,
            content=b'data: {"content":"4"}\n\ndata: {"content":"2","stop":true}\n\n',
        )

    adapter = LlamaServerAdapter(transport=httpx.MockTransport(handler))
    events = [ev async for ev in adapter.stream_infer(_endpoint(), InferenceRequest.from_prompt("6*7?"))]

    assert "".join(e.content for e in events if e.type == StreamEventType.TOKEN) == "42"
    assert events[-1].type == StreamEventType.DONE
