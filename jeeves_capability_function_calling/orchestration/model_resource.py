"""
Model resource: owns the inference endpoint for the lifetime of the host.

Lifecycle:
    initialize()  Checking -> health probe -> [Ollama: Downloading(pct)] -> Ready
                  unreachable server  -> Unavailable(reason)
                  any other failure   -> Error(message)
    generate()    streams text chunks; only valid while Ready
    cleanup()     releases the resource; generate() is refused afterwards

Status changes are published on ``status`` so hosts can show download
progress and gate input until the model is ready.
"""

from typing import Any, AsyncIterator, Optional, Protocol

from airframe import (
    AirframeClient,
    AirframeError,
    BackendKind,
    EndpointSpec,
    ErrorCategory,
    HttpHealthProbe,
    InferenceRequest,
    OllamaModelProvisioner,
    StreamEventType,
)
from airframe.health import HealthProbe

from jeeves_capability_function_calling._logging import get_component_logger, preview
from jeeves_capability_function_calling.config.thresholds import HEALTH_PROBE_TIMEOUT_SECONDS
from jeeves_capability_function_calling.orchestration.state import ObservableState
from jeeves_capability_function_calling.orchestration.types import (
    ModelChecking,
    ModelDownloading,
    ModelError,
    ModelReady,
    ModelStatus,
    ModelUnavailable,
)


class TextGenerator(Protocol):
    """Anything that turns a prompt into a stream of text chunks."""

    def generate(self, prompt: str) -> AsyncIterator[str]:
        ...


class ModelNotReadyError(RuntimeError):
    """generate() was called before initialize() reached Ready, or after cleanup()."""


class ModelResource:
    def __init__(
        self,
        endpoint: EndpointSpec,
        model: Optional[str] = None,
        *,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        client: Optional[AirframeClient] = None,
        probe: Optional[HealthProbe] = None,
        provisioner: Optional[OllamaModelProvisioner] = None,
        logger: Optional[Any] = None,
    ):
        self.endpoint = endpoint
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._client = client or AirframeClient()
        self._probe = probe or HttpHealthProbe(timeout=HEALTH_PROBE_TIMEOUT_SECONDS)
        self._provisioner = provisioner or OllamaModelProvisioner()
        self._logger = get_component_logger("ModelResource", logger)
        self.status: ObservableState[ModelStatus] = ObservableState(ModelChecking())

    @property
    def is_ready(self) -> bool:
        return isinstance(self.status.value, ModelReady)

    async def initialize(self) -> ModelStatus:
        self.status.set(ModelChecking())
        self._logger.info(
            "model_initializing",
            endpoint=self.endpoint.name,
            backend=self.endpoint.backend_kind.value,
            model=self.model,
        )
        try:
            health = await self._probe.check(self.endpoint)
            if not health.is_reachable:
                reason = f"Model server at {self.endpoint.root_url} is not reachable ({health.detail})"
                self._logger.warning("model_unavailable", detail=health.detail)
                self.status.set(ModelUnavailable(reason))
                return self.status.value

            if self.endpoint.backend_kind == BackendKind.OLLAMA and self.model:
                if not await self._provisioner.is_available(self.endpoint, self.model):
                    await self._download()

            self.status.set(ModelReady())
            self._logger.info("model_ready", model=self.model)
        except Exception as e:
            self._logger.error("model_initialization_failed", error=str(e))
            self.status.set(ModelError(str(e) or type(e).__name__))
        return self.status.value

    async def _download(self) -> None:
        self._logger.info("model_download_started", model=self.model)
        self.status.set(ModelDownloading(0))
        async for progress in self._provisioner.pull(self.endpoint, self.model):
            self.status.set(ModelDownloading(progress.percent))
        self._logger.info("model_download_completed", model=self.model)

    def cleanup(self) -> None:
        self._logger.info("model_released", model=self.model)
        self.status.set(ModelUnavailable("Model resource released"))

    def generate(self, prompt: str) -> AsyncIterator[str]:
        """Stream completion text for ``prompt``.

        Raises:
            ModelNotReadyError: immediately, if the model is not Ready.
            AirframeError: while iterating, if the backend reports an error.
        """
        if not self.is_ready:
            raise ModelNotReadyError(f"model is not ready: {self.status.value}")
        return self._stream(prompt)

    async def _stream(self, prompt: str) -> AsyncIterator[str]:
        request = InferenceRequest.from_prompt(
            prompt,
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            stream=True,
        )
        self._logger.debug("generation_started", prompt=preview(prompt))
        events = self._client.stream_infer(self.endpoint, request)
        try:
            async for event in events:
                if event.type in (StreamEventType.TOKEN, StreamEventType.MESSAGE):
                    if event.content:
                        yield event.content
                elif event.type == StreamEventType.ERROR:
                    raise event.error or AirframeError(ErrorCategory.UNKNOWN, "backend stream error")
                elif event.type == StreamEventType.DONE:
                    return
        finally:
            await events.aclose()
