"""
Wire-neutral request and event types shared by every adapter.

A request is a list of role/content messages; callers that render the whole
conversation into one prompt use ``InferenceRequest.from_prompt``. Responses
are always a stream of ``InferenceStreamEvent``s, even for non-streaming
calls (one MESSAGE followed by DONE).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorCategory(str, Enum):
    TIMEOUT = "timeout"
    BACKEND = "backend"
    CONNECTION = "connection"
    PARSE = "parse"
    UNKNOWN = "unknown"


class StreamEventType(str, Enum):
    TOKEN = "token"
    MESSAGE = "message"
    ERROR = "error"
    DONE = "done"


@dataclass(eq=False)
class AirframeError(Exception):
    """Transport or backend failure, carried inside an ERROR event or raised by callers."""

    category: ErrorCategory
    message: str
    raw_backend: Optional[Any] = None

    def __str__(self) -> str:
        return f"{self.category.value}: {self.message}"


@dataclass
class Message:
    role: str
    content: str


@dataclass
class InferenceRequest:
    messages: List[Message]
    model: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    stream: bool = True
    extra_params: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_prompt(cls, prompt: str, **kwargs: Any) -> "InferenceRequest":
        """Single-turn request: the whole conversation is already rendered into ``prompt``."""
        return cls(messages=[Message(role="user", content=prompt)], **kwargs)

    @property
    def prompt_text(self) -> str:
        return "\n".join(m.content for m in self.messages)


@dataclass
class InferenceStreamEvent:
    """
    Stream-first contract:
      - type: token | message | error | done
      - exactly one terminal event (error or done) per stream
    """
    type: StreamEventType
    content: Optional[str] = None
    raw: Optional[Any] = None
    error: Optional[AirframeError] = None
    finish_reason: Optional[str] = None
    usage: Optional[Dict[str, Any]] = None

    @property
    def is_terminal(self) -> bool:
        return self.type in (StreamEventType.DONE, StreamEventType.ERROR)
