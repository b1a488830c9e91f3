"""Where a model server lives and how healthy it looked last time it was probed."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional


class BackendKind(str, Enum):
    LLAMA_SERVER = "llama_server"
    OPENAI_CHAT = "openai_chat"
    OLLAMA = "ollama"


@dataclass
class EndpointSpec:
    name: str
    base_url: str  # server root, without a trailing /v1
    backend_kind: BackendKind
    api_type: Optional[str] = None  # llama_server only: "native" | "openai"
    metadata: Dict[str, str] = field(default_factory=dict)

    @property
    def root_url(self) -> str:
        return self.base_url.rstrip("/")


@dataclass
class HealthState:
    status: str  # healthy | degraded | unhealthy | unknown
    checked_at: Optional[float] = None
    detail: Optional[str] = None

    @property
    def is_reachable(self) -> bool:
        return self.status in ("healthy", "degraded")
