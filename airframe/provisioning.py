"""
Model provisioning for Ollama endpoints.

Ollama serves only models that have been pulled locally. ``is_available``
checks ``/api/tags``; ``pull`` streams ``/api/pull`` and yields download
progress so callers can surface it while the model is fetched.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import AsyncIterator, Optional

import httpx

from airframe.endpoints import EndpointSpec
from airframe.types import AirframeError, ErrorCategory


@dataclass
class PullProgress:
    status: str
    completed: Optional[int] = None
    total: Optional[int] = None

    @property
    def percent(self) -> int:
        """Whole-number percentage, or -1 while the size is unknown."""
        if not self.total or self.completed is None:
            return -1
        return min(100, int(self.completed * 100 / self.total))


def _same_model(wanted: str, listed: str) -> bool:
    if wanted == listed:
        return True
    # "llama3.2" matches the implicit ":latest" tag
    return ":" not in wanted and listed == f"{wanted}:latest"


class OllamaModelProvisioner:
    def __init__(
        self,
        timeout: float = 600.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self._transport = transport

    def _client(self, endpoint: EndpointSpec) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=endpoint.root_url,
            timeout=httpx.Timeout(self.timeout, connect=10.0),
            transport=self._transport,
        )

    async def is_available(self, endpoint: EndpointSpec, model: str) -> bool:
        async with self._client(endpoint) as client:
            resp = await client.get("/api/tags")
            resp.raise_for_status()
            models = resp.json().get("models") or []
        return any(_same_model(model, m.get("name", "")) for m in models)

    async def pull(self, endpoint: EndpointSpec, model: str) -> AsyncIterator[PullProgress]:
        """Stream pull progress; raises AirframeError if Ollama reports a failure."""
        async with self._client(endpoint) as client:
            async with client.stream("POST", "/api/pull", json={"model": model, "stream": True}) as resp:
                if resp.status_code >= 400:
                    raw = await resp.aread()
                    raise AirframeError(
                        ErrorCategory.BACKEND, f"pull failed: HTTP {resp.status_code}", raw_backend=raw
                    )
                async for line in resp.aiter_lines():
                    if not line.strip():
                        continue
                    try:
                        data = json.loads(line)
                    except json.JSONDecodeError as exc:
                        raise AirframeError(ErrorCategory.PARSE, "malformed pull progress", raw_backend=line) from exc
                    if data.get("error"):
                        raise AirframeError(ErrorCategory.BACKEND, str(data["error"]), raw_backend=data)
                    yield PullProgress(
                        status=data.get("status", ""),
                        completed=data.get("completed"),
                        total=data.get("total"),
                    )
