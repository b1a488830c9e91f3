from __future__ import annotations

from typing import Any, AsyncIterator, Dict

from airframe.adapters.base import BackendAdapter, _parse_sse_lines
from airframe.endpoints import EndpointSpec
from airframe.types import (
    AirframeError,
    ErrorCategory,
    InferenceRequest,
    InferenceStreamEvent,
    StreamEventType,
)


class LlamaServerAdapter(BackendAdapter):
    """llama.cpp server: native ``/completion`` or OpenAI-style ``/v1/completions``."""

    @staticmethod
    def _api_type(endpoint: EndpointSpec) -> str:
        return (endpoint.api_type or "native").lower()

    def _path(self, endpoint: EndpointSpec) -> str:
        return "/v1/completions" if self._api_type(endpoint) == "openai" else "/completion"

    def _build_payload(self, endpoint: EndpointSpec, request: InferenceRequest) -> Dict[str, Any]:
        if self._api_type(endpoint) == "openai":
            payload: Dict[str, Any] = {
                "prompt": request.prompt_text,
                "max_tokens": request.max_tokens,
                "temperature": request.temperature,
                "stream": request.stream,
            }
            if request.model:
                payload["model"] = request.model
            return payload
        return {
            "prompt": request.prompt_text,
            "n_predict": request.max_tokens or 512,
            "temperature": 0.7 if request.temperature is None else request.temperature,
            "stop": [],
            "stream": request.stream,
            "cache_prompt": True,
        }

    def _parse_message(self, data: Dict[str, Any]) -> InferenceStreamEvent:
        choice = (data.get("choices") or [{}])[0]
        return InferenceStreamEvent(
            type=StreamEventType.MESSAGE,
            content=data.get("content") or choice.get("text") or "",
            raw=data,
            finish_reason=data.get("stop_type") or choice.get("finish_reason"),
            usage=data.get("usage"),
        )

    async def _stream_sse(self, response: Any) -> AsyncIterator[InferenceStreamEvent]:
        async for line in response.aiter_lines():
            for payload in _parse_sse_lines([line]):
                data = self._decode(payload)
                if data is None:
                    err = AirframeError(ErrorCategory.PARSE, "malformed SSE payload", raw_backend=payload)
                    yield InferenceStreamEvent(type=StreamEventType.ERROR, error=err, raw=payload)
                    return

                choice = (data.get("choices") or [{}])[0]
                content = data.get("content") or choice.get("text")
                is_final = data.get("stop", False) or data.get("done", False)
                finish_reason = data.get("stop_type") or choice.get("finish_reason")

                if content:
                    yield InferenceStreamEvent(type=StreamEventType.TOKEN, content=content, raw=data)
                if is_final or finish_reason:
                    yield InferenceStreamEvent(
                        type=StreamEventType.DONE, finish_reason=finish_reason, raw=data
                    )
                    return
