from .types import (
    InferenceRequest,
    InferenceStreamEvent,
    Message,
    AirframeError,
    ErrorCategory,
    StreamEventType,
)
from .endpoints import EndpointSpec, HealthState, BackendKind
from .client import AirframeClient
from .health import HealthProbe, HttpHealthProbe
from .provisioning import OllamaModelProvisioner, PullProgress

__all__ = [
    # Types
    "InferenceRequest",
    "InferenceStreamEvent",
    "Message",
    "AirframeError",
    "ErrorCategory",
    "StreamEventType",
    # Endpoints
    "EndpointSpec",
    "HealthState",
    "BackendKind",
    # Client
    "AirframeClient",
    # Health
    "HealthProbe",
    "HttpHealthProbe",
    # Provisioning
    "OllamaModelProvisioner",
    "PullProgress",
]
