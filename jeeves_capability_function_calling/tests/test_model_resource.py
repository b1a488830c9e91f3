"""Tests for ModelResource lifecycle and generation."""

import pytest

from airframe import (
    AirframeError,
    BackendKind,
    EndpointSpec,
    ErrorCategory,
    InferenceStreamEvent,
    PullProgress,
    StreamEventType,
)
from airframe.endpoints import HealthState
from airframe.health import HealthProbe

from jeeves_capability_function_calling.orchestration.model_resource import (
    ModelNotReadyError,
    ModelResource,
)
from jeeves_capability_function_calling.orchestration.types import (
    ModelChecking,
    ModelDownloading,
    ModelError,
    ModelReady,
    ModelUnavailable,
)


class FakeProbe(HealthProbe):
    def __init__(self, status="healthy", error=None):
        self.status = status
        self.error = error

    async def check(self, endpoint):
        if self.error is not None:
            raise self.error
        return HealthState(status=self.status, detail="probe")


class FakeProvisioner:
    def __init__(self, available=True, progress=(), error=None):
        self.available = available
        self.progress = list(progress)
        self.error = error
        self.pulled = []

    async def is_available(self, endpoint, model):
        return self.available

    async def pull(self, endpoint, model):
        self.pulled.append(model)
        for item in self.progress:
            yield item
        if self.error is not None:
            raise self.error


class FakeClient:
    """AirframeClient stand-in replaying a fixed event list."""

    def __init__(self, events):
        self.events = events
        self.requests = []

    async def stream_infer(self, endpoint, request):
        self.requests.append(request)
        for event in self.events:
            yield event


def endpoint(kind=BackendKind.OLLAMA):
    return EndpointSpec(name=kind.value, base_url="http://localhost:11434", backend_kind=kind)


def resource(mock_logger, probe=None, provisioner=None, client=None, kind=BackendKind.OLLAMA):
    return ModelResource(
        endpoint(kind),
        "llama3.2",
        temperature=0.2,
        max_tokens=64,
        client=client or FakeClient([]),
        probe=probe or FakeProbe(),
        provisioner=provisioner or FakeProvisioner(),
        logger=mock_logger,
    )


def token(text):
    return InferenceStreamEvent(type=StreamEventType.TOKEN, content=text)


DONE = InferenceStreamEvent(type=StreamEventType.DONE)


class TestInitialize:
    @pytest.mark.asyncio
    async def test_ready_when_model_present(self, mock_logger):
        model = resource(mock_logger)
        seen = []
        model.status.subscribe(seen.append)

        status = await model.initialize()

        assert status == ModelReady()
        assert model.is_ready
        # initial Checking is not republished
        assert seen == [ModelReady()]

    @pytest.mark.asyncio
    async def test_downloads_missing_ollama_model(self, mock_logger):
        provisioner = FakeProvisioner(
            available=False,
            progress=[
                PullProgress("pulling manifest"),
                PullProgress("downloading", completed=50, total=200),
                PullProgress("downloading", completed=200, total=200),
                PullProgress("success"),
            ],
        )
        model = resource(mock_logger, provisioner=provisioner)
        seen = []
        model.status.subscribe(seen.append)

        await model.initialize()

        assert provisioner.pulled == ["llama3.2"]
        assert seen == [
            ModelDownloading(0),
            ModelDownloading(-1),
            ModelDownloading(25),
            ModelDownloading(100),
            ModelDownloading(-1),
            ModelReady(),
        ]

    @pytest.mark.asyncio
    async def test_non_ollama_backend_skips_provisioning(self, mock_logger):
        provisioner = FakeProvisioner(available=False)
        model = resource(mock_logger, provisioner=provisioner, kind=BackendKind.LLAMA_SERVER)

        await model.initialize()

        assert model.is_ready
        assert provisioner.pulled == []

    @pytest.mark.asyncio
    async def test_unreachable_server(self, mock_logger):
        model = resource(mock_logger, probe=FakeProbe(status="unhealthy"))

        status = await model.initialize()

        assert isinstance(status, ModelUnavailable)
        assert "http://localhost:11434" in status.reason

    @pytest.mark.asyncio
    async def test_download_failure(self, mock_logger):
        error = AirframeError(ErrorCategory.BACKEND, "pull failed: disk full")
        model = resource(mock_logger, provisioner=FakeProvisioner(available=False, error=error))

        status = await model.initialize()

        assert isinstance(status, ModelError)
        assert "disk full" in status.message

    @pytest.mark.asyncio
    async def test_probe_exception(self, mock_logger):
        model = resource(mock_logger, probe=FakeProbe(error=RuntimeError("boom")))

        assert await model.initialize() == ModelError("boom")

    @pytest.mark.asyncio
    async def test_cleanup_releases(self, mock_logger):
        model = resource(mock_logger)
        await model.initialize()

        model.cleanup()

        assert isinstance(model.status.value, ModelUnavailable)
        with pytest.raises(ModelNotReadyError):
            model.generate("hi")


class TestGenerate:
    def test_refused_before_initialize(self, mock_logger):
        model = resource(mock_logger)

        assert model.status.value == ModelChecking()
        with pytest.raises(ModelNotReadyError):
            model.generate("hi")

    @pytest.mark.asyncio
    async def test_streams_token_text(self, mock_logger):
        client = FakeClient([token("Hel"), token(""), token("lo"), DONE, token("ignored")])
        model = resource(mock_logger, client=client)
        await model.initialize()

        chunks = [chunk async for chunk in model.generate("Say hello")]

        assert chunks == ["Hel", "lo"]
        request = client.requests[0]
        assert request.prompt_text == "Say hello"
        assert request.model == "llama3.2"
        assert request.temperature == 0.2
        assert request.max_tokens == 64
        assert request.stream is True

    @pytest.mark.asyncio
    async def test_error_event_raises(self, mock_logger):
        error = AirframeError(ErrorCategory.CONNECTION, "connection refused")
        client = FakeClient([token("Hi"), InferenceStreamEvent(type=StreamEventType.ERROR, error=error)])
        model = resource(mock_logger, client=client)
        await model.initialize()

        chunks = []
        with pytest.raises(AirframeError) as exc_info:
            async for chunk in model.generate("hi"):
                chunks.append(chunk)

        assert exc_info.value is error
        assert chunks == ["Hi"]
