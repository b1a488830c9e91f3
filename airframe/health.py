from __future__ import annotations

import time
from abc import ABC, abstractmethod
from typing import Optional

import httpx

from .endpoints import EndpointSpec, HealthState, BackendKind


class HealthProbe(ABC):
    @abstractmethod
    async def check(self, endpoint: EndpointSpec) -> HealthState:
        ...


class HttpHealthProbe(HealthProbe):
    """
    HTTP-based health probe for inference endpoints.

    Supports backend-specific health paths:
    - llama_server: GET /health
    - openai_chat: GET /v1/models
    - ollama: GET /api/tags
    """

    def __init__(
        self,
        timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self._transport = transport

    def _get_health_path(self, endpoint: EndpointSpec) -> str:
        """Return the health check path for a given backend kind."""
        if endpoint.backend_kind == BackendKind.LLAMA_SERVER:
            return "/health"
        elif endpoint.backend_kind == BackendKind.OPENAI_CHAT:
            return "/v1/models"
        elif endpoint.backend_kind == BackendKind.OLLAMA:
            return "/api/tags"
        return "/health"

    async def check(self, endpoint: EndpointSpec) -> HealthState:
        url = f"{endpoint.root_url}{self._get_health_path(endpoint)}"
        headers = {}
        if endpoint.metadata.get("api_key"):
            headers["Authorization"] = f"Bearer {endpoint.metadata['api_key']}"

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.get(url, headers=headers)
        except httpx.TimeoutException:
            return HealthState(status="unhealthy", checked_at=time.time(), detail="timeout")
        except httpx.ConnectError as exc:
            return HealthState(
                status="unhealthy",
                checked_at=time.time(),
                detail=f"connection error: {exc}",
            )
        except httpx.HTTPError as exc:
            return HealthState(
                status="unknown",
                checked_at=time.time(),
                detail=f"probe error: {type(exc).__name__}: {exc}",
            )

        if resp.status_code < 400:
            status = "healthy"
        elif resp.status_code < 500:
            status = "degraded"
        else:
            status = "unhealthy"
        return HealthState(status=status, checked_at=time.time(), detail=f"HTTP {resp.status_code}")
