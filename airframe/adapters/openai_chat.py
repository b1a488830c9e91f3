"""
OpenAI Chat Completions adapter.

Supports OpenAI API and compatible endpoints (Ollama's /v1, vLLM, llama.cpp
server in OpenAI mode, LocalAI).
"""
from __future__ import annotations

from typing import Any, AsyncIterator, Dict

from airframe.adapters.base import BackendAdapter, _is_sse_done, _parse_sse_lines
from airframe.endpoints import EndpointSpec
from airframe.types import (
    AirframeError,
    ErrorCategory,
    InferenceRequest,
    InferenceStreamEvent,
    StreamEventType,
)


class OpenAIChatAdapter(BackendAdapter):
    """Adapter for ``POST /v1/chat/completions``."""

    def _path(self, endpoint: EndpointSpec) -> str:
        return "/v1/chat/completions"

    def _headers(self, endpoint: EndpointSpec) -> Dict[str, str]:
        headers = super()._headers(endpoint)
        api_key = endpoint.metadata.get("api_key")
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        return headers

    def _build_payload(self, endpoint: EndpointSpec, request: InferenceRequest) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "messages": [{"role": m.role, "content": m.content} for m in request.messages],
            "stream": request.stream,
        }

        if request.model:
            payload["model"] = request.model

        if request.temperature is not None:
            payload["temperature"] = request.temperature

        if request.max_tokens is not None:
            payload["max_tokens"] = request.max_tokens

        payload.update(request.extra_params)
        return payload

    def _parse_message(self, data: Dict[str, Any]) -> InferenceStreamEvent:
        choices = data.get("choices") or [{}]
        message = choices[0].get("message") or {}
        return InferenceStreamEvent(
            type=StreamEventType.MESSAGE,
            content=message.get("content") or "",
            raw=data,
            finish_reason=choices[0].get("finish_reason"),
            usage=data.get("usage"),
        )

    async def _stream_sse(self, response: Any) -> AsyncIterator[InferenceStreamEvent]:
        """Parse the SSE stream; ``data: [DONE]`` or a finish_reason ends it."""
        async for line in response.aiter_lines():
            for payload in _parse_sse_lines([line]):
                data = self._decode(payload)
                if data is None:
                    err = AirframeError(ErrorCategory.PARSE, "malformed SSE payload", raw_backend=payload)
                    yield InferenceStreamEvent(type=StreamEventType.ERROR, error=err, raw=payload)
                    return

                choices = data.get("choices") or []
                if not choices:
                    continue

                choice = choices[0]
                content = (choice.get("delta") or {}).get("content")
                finish_reason = choice.get("finish_reason")

                if content:
                    yield InferenceStreamEvent(type=StreamEventType.TOKEN, content=content, raw=data)

                if finish_reason:
                    yield InferenceStreamEvent(
                        type=StreamEventType.DONE,
                        finish_reason=finish_reason,
                        raw=data,
                        usage=data.get("usage"),
                    )
                    return
            if _is_sse_done(line):
                yield InferenceStreamEvent(type=StreamEventType.DONE)
                return
