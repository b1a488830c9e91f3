"""
Backend-neutral streaming client.

One adapter instance per backend kind; the endpoint passed with each call
decides which one handles it. The client never retries or reinterprets
events, it only forwards them and guarantees the adapter stream is closed
when the consumer stops early.
"""

from __future__ import annotations

from typing import AsyncIterator, Dict, Optional

from airframe.adapters.base import BackendAdapter
from airframe.adapters.llama_server import LlamaServerAdapter
from airframe.adapters.openai_chat import OpenAIChatAdapter
from airframe.endpoints import BackendKind, EndpointSpec
from airframe.types import InferenceRequest, InferenceStreamEvent, AirframeError, ErrorCategory, StreamEventType


def _default_adapters() -> Dict[BackendKind, BackendAdapter]:
    return {
        BackendKind.LLAMA_SERVER: LlamaServerAdapter(),
        BackendKind.OPENAI_CHAT: OpenAIChatAdapter(),
        # Ollama serves the OpenAI-compatible /v1/chat/completions route
        BackendKind.OLLAMA: OpenAIChatAdapter(),
    }


class AirframeClient:
    def __init__(
        self,
        adapter_overrides: Dict[BackendKind, BackendAdapter] | None = None,
    ):
        self.adapters = _default_adapters()
        self.adapters.update(adapter_overrides or {})

    def adapter_for(self, endpoint: EndpointSpec) -> Optional[BackendAdapter]:
        return self.adapters.get(endpoint.backend_kind)

    async def stream_infer(
        self, endpoint: EndpointSpec, request: InferenceRequest
    ) -> AsyncIterator[InferenceStreamEvent]:
        """Stream events for ``request``; always ends with exactly one DONE or ERROR."""
        adapter = self.adapter_for(endpoint)
        if adapter is None:
            yield InferenceStreamEvent(
                type=StreamEventType.ERROR,
                error=AirframeError(
                    ErrorCategory.UNKNOWN,
                    f"No adapter for backend {endpoint.backend_kind.value}",
                ),
            )
            return

        events = adapter.stream_infer(endpoint, request)
        try:
            async for event in events:
                yield event
        finally:
            await events.aclose()
