"""
Domain types for the conversation pipeline.

Tagged states are frozen dataclass variants so callers can dispatch on
``isinstance`` and compare by value.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Union

from jeeves_capability_function_calling.capabilities.base import CapabilityResult


class ChatRole(str, Enum):
    """Message role in conversation."""

    USER = "user"
    ASSISTANT = "assistant"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ConversationTurn:
    """A single immutable message in the conversation."""

    role: ChatRole
    content: str
    created_at: datetime = field(default_factory=_utcnow)


# =============================================================================
# MODEL STATUS
# =============================================================================

@dataclass(frozen=True)
class ModelChecking:
    pass


@dataclass(frozen=True)
class ModelDownloading:
    progress: int = 0  # percent, -1 when unknown


@dataclass(frozen=True)
class ModelReady:
    pass


@dataclass(frozen=True)
class ModelError:
    message: str


@dataclass(frozen=True)
class ModelUnavailable:
    reason: str


ModelStatus = Union[ModelChecking, ModelDownloading, ModelReady, ModelError, ModelUnavailable]


# =============================================================================
# CHAT UI STATE
# =============================================================================

@dataclass(frozen=True)
class UiIdle:
    pass


@dataclass(frozen=True)
class UiGenerating:
    partial_text: str = ""


@dataclass(frozen=True)
class UiError:
    message: str


ChatUiState = Union[UiIdle, UiGenerating, UiError]


# =============================================================================
# PIPELINE
# =============================================================================

class PipelineState(str, Enum):
    IDLE = "idle"
    AWAITING_FIRST_PASS = "awaiting_first_pass"
    EXTRACTING = "extracting"
    AWAITING_SECOND_PASS = "awaiting_second_pass"
    TIMED_OUT = "timed_out"
    ERROR = "error"


class TerminalReason(str, Enum):
    COMPLETED = "completed"
    TIMED_OUT = "timed_out"
    ERROR = "error"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class TurnResult:
    """Outcome of one ``send_message`` call."""

    reply: ConversationTurn
    terminal_reason: TerminalReason
    capability_name: Optional[str] = None
    outcome: Optional[CapabilityResult] = None


__all__ = [
    "ChatRole",
    "ConversationTurn",
    "ModelStatus",
    "ModelChecking",
    "ModelDownloading",
    "ModelReady",
    "ModelError",
    "ModelUnavailable",
    "ChatUiState",
    "UiIdle",
    "UiGenerating",
    "UiError",
    "PipelineState",
    "TerminalReason",
    "TurnResult",
]
