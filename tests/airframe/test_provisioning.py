import json

import httpx
import pytest

from airframe import AirframeError, BackendKind, EndpointSpec, OllamaModelProvisioner, PullProgress


@pytest.fixture
def endpoint():
    return EndpointSpec(name="ollama", base_url="http://localhost:11434", backend_kind=BackendKind.OLLAMA)


def test_pull_progress_percent():
    assert PullProgress("downloading", completed=50, total=200).percent == 25
    assert PullProgress("pulling manifest").percent == -1
    assert PullProgress("downloading", completed=10, total=0).percent == -1


@pytest.mark.asyncio
async def test_is_available_matches_implicit_latest_tag(endpoint):
    def handler(request):
        assert request.url.path == "/api/tags"
        return httpx.Response(200, json={"models": [{"name": "llama3.2:latest"}, {"name": "qwen2:7b"}]})

    provisioner = OllamaModelProvisioner(transport=httpx.MockTransport(handler))

    assert await provisioner.is_available(endpoint, "llama3.2") is True
    assert await provisioner.is_available(endpoint, "qwen2:7b") is True
    assert await provisioner.is_available(endpoint, "qwen2") is False


@pytest.mark.asyncio
async def test_pull_streams_progress(endpoint):
    lines = [
        {"status": "pulling manifest"},
        {"status": "downloading", "completed": 0, "total": 100},
        {"status": "downloading", "completed": 100, "total": 100},
        {"status": "success"},
    ]

    def handler(request):
        assert request.url.path == "/api/pull"
        assert json.loads(request.content)["model"] == "llama3.2"
        return httpx.Response(200, content="\n".join(json.dumps(l) for l in lines).encode())

    provisioner = OllamaModelProvisioner(transport=httpx.MockTransport(handler))
    progress = [p async for p in provisioner.pull(endpoint, "llama3.2")]

    assert [p.percent for p in progress] == [-1, 0, 100, -1]
    assert progress[-1].status == "success"


@pytest.mark.asyncio
async def test_pull_error_line_raises(endpoint):
    def handler(request):
        return httpx.Response(200, content=b'{"error": "model not found"}\n')

    provisioner = OllamaModelProvisioner(transport=httpx.MockTransport(handler))

    with pytest.raises(AirframeError) as exc_info:
        async for _ in provisioner.pull(endpoint, "nope"):
            pass
    assert "model not found" in str(exc_info.value)
