from __future__ import annotations

import asyncio
import json
from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Dict, Iterable, Optional

import httpx

from airframe.endpoints import EndpointSpec
from airframe.types import (
    AirframeError,
    ErrorCategory,
    InferenceRequest,
    InferenceStreamEvent,
    StreamEventType,
)


def _categorize_exception(exc: Exception) -> AirframeError:
    name = exc.__class__.__name__
    if "Timeout" in name:
        return AirframeError(ErrorCategory.TIMEOUT, str(exc))
    if "Network" in name or "Connect" in name:
        return AirframeError(ErrorCategory.CONNECTION, str(exc))
    return AirframeError(ErrorCategory.BACKEND, str(exc))


# SSE fields other than data carry nothing the adapters use
_SSE_IGNORED_FIELDS = ("event:", "id:", "retry:")


def _parse_sse_lines(lines: Iterable[str]) -> Iterable[str]:
    """Yield JSON payloads from SSE ``data:`` lines or bare JSON lines, up to ``[DONE]``.

    Comment lines (``: keep-alive``) and blank separators are skipped.
    """
    for raw in lines:
        line = raw.strip()
        if not line or line.startswith(":") or line.startswith(_SSE_IGNORED_FIELDS):
            continue
        if line.startswith("data:"):
            line = line[len("data:"):].strip()
        if line == "[DONE]":
            return
        if line:
            yield line


def _is_sse_done(line: str) -> bool:
    return line.replace(" ", "").strip() == "data:[DONE]"


class BackendAdapter(ABC):
    """
    Shared request/retry loop for HTTP streaming backends.

    Subclasses describe the wire format (path, payload, how to read a chunk);
    the base class owns the httpx client, retries and terminal-event rules.
    Retries only happen before the first token has been yielded, so a stream
    never repeats text the consumer already received.
    """

    # seconds; doubled after each failed attempt
    retry_backoff: float = 1.0

    def __init__(
        self,
        timeout: float = 120.0,
        max_retries: int = 3,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self.max_retries = max_retries
        self._transport = transport

    @abstractmethod
    def _path(self, endpoint: EndpointSpec) -> str:
        ...

    @abstractmethod
    def _build_payload(self, endpoint: EndpointSpec, request: InferenceRequest) -> Dict[str, Any]:
        ...

    @abstractmethod
    def _parse_message(self, data: Dict[str, Any]) -> InferenceStreamEvent:
        """Convert a non-streaming response body into a MESSAGE event."""

    @abstractmethod
    def _stream_sse(self, response: Any) -> AsyncIterator[InferenceStreamEvent]:
        ...

    def _headers(self, endpoint: EndpointSpec) -> Dict[str, str]:
        return {"Content-Type": "application/json"}

    def _client(self, endpoint: EndpointSpec) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=endpoint.root_url,
            timeout=httpx.Timeout(self.timeout, connect=10.0),
            headers=self._headers(endpoint),
            transport=self._transport,
        )

    async def stream_infer(
        self, endpoint: EndpointSpec, request: InferenceRequest
    ) -> AsyncIterator[InferenceStreamEvent]:
        path = self._path(endpoint)
        payload = self._build_payload(endpoint, request)

        async with self._client(endpoint) as client:
            for attempt in range(self.max_retries):
                yielded_content = False
                try:
                    if request.stream:
                        async with client.stream("POST", path, json=payload) as resp:
                            if resp.status_code >= 400:
                                raw = await resp.aread()
                                err = AirframeError(
                                    ErrorCategory.BACKEND,
                                    f"HTTP {resp.status_code}",
                                    raw_backend=raw,
                                )
                                yield InferenceStreamEvent(type=StreamEventType.ERROR, error=err)
                                return
                            saw_terminal = False
                            async for event in self._stream_sse(resp):
                                if event.type == StreamEventType.TOKEN:
                                    yielded_content = True
                                saw_terminal = saw_terminal or event.is_terminal
                                yield event
                                if event.is_terminal:
                                    return
                            if not saw_terminal:
                                yield InferenceStreamEvent(type=StreamEventType.DONE)
                            return
                    else:
                        resp = await client.post(path, json=payload)
                        resp.raise_for_status()
                        yield self._parse_message(resp.json())
                        yield InferenceStreamEvent(type=StreamEventType.DONE)
                        return
                except Exception as exc:
                    if not yielded_content and attempt < self.max_retries - 1:
                        await asyncio.sleep(self.retry_backoff * 2 ** attempt)
                        continue
                    err = _categorize_exception(exc)
                    yield InferenceStreamEvent(type=StreamEventType.ERROR, error=err, raw=str(exc))
                    return

    @staticmethod
    def _decode(payload: str) -> Optional[Dict[str, Any]]:
        try:
            data = json.loads(payload)
        except json.JSONDecodeError:
            return None
        return data if isinstance(data, dict) else None
