"""
Conversation orchestration for the function-calling capability.

Usage:
    from jeeves_capability_function_calling.orchestration import create_wiring

    wiring = create_wiring(settings)
    await wiring["model"].initialize()
    result = await wiring["orchestrator"].send_message("What's my battery level?")
"""

from .types import (
    ChatRole,
    ConversationTurn,
    ModelStatus,
    ModelChecking,
    ModelDownloading,
    ModelReady,
    ModelError,
    ModelUnavailable,
    ChatUiState,
    UiIdle,
    UiGenerating,
    UiError,
    PipelineState,
    TerminalReason,
    TurnResult,
)
from .state import ObservableState
from .model_resource import ModelResource, ModelNotReadyError, TextGenerator
from .synthesizer import ResponseSynthesizer, SynthesisFailed
from .conversation import ConversationOrchestrator
from .sessions import ConversationSessions
from .wiring import (
    create_catalog,
    create_endpoint,
    create_model_resource,
    create_orchestrator,
    create_wiring,
)

__all__ = [
    # Orchestrator
    "ConversationOrchestrator",
    "ConversationSessions",
    "ResponseSynthesizer",
    "SynthesisFailed",
    "ModelResource",
    "ModelNotReadyError",
    "TextGenerator",
    "ObservableState",
    # Wiring
    "create_catalog",
    "create_endpoint",
    "create_model_resource",
    "create_orchestrator",
    "create_wiring",
    # Types
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
