"""
Capability contract and descriptor types.

A capability is a deterministic action the model may request by name. Its
descriptor is the schema the dispatcher validates against and the catalog
text the system prompt is built from. Capabilities report outcomes as
values (``Success`` / ``Failure``); ``execute`` never raises for expected
failure modes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple, Union


class ParameterType(str, Enum):
    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"


@dataclass(frozen=True)
class ParameterSpec:
    """Schema for one named parameter of a capability."""

    name: str
    type: ParameterType = ParameterType.STRING
    required: bool = False
    default: Any = None
    allowed_values: Optional[FrozenSet[str]] = None
    # synonym -> canonical allowed value
    aliases: Optional[Mapping[str, str]] = field(default=None, compare=False)
    description: str = ""

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("parameter name must be non-empty")
        if self.allowed_values is not None:
            object.__setattr__(
                self, "allowed_values", frozenset(v.lower() for v in self.allowed_values)
            )
        if self.aliases is not None:
            normalized = {k.lower(): v.lower() for k, v in self.aliases.items()}
            if self.allowed_values is not None:
                unknown = set(normalized.values()) - self.allowed_values
                if unknown:
                    raise ValueError(
                        f"aliases for {self.name!r} target unknown values: {sorted(unknown)}"
                    )
            object.__setattr__(self, "aliases", MappingProxyType(normalized))


@dataclass(frozen=True)
class CapabilityDescriptor:
    name: str
    description: str
    parameters: Tuple[ParameterSpec, ...] = ()
    trigger_keywords: FrozenSet[str] = frozenset()

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("capability name must be non-empty")
        seen = set()
        for spec in self.parameters:
            if spec.name in seen:
                raise ValueError(f"duplicate parameter {spec.name!r} in {self.name!r}")
            seen.add(spec.name)
        object.__setattr__(self, "parameters", tuple(self.parameters))
        object.__setattr__(
            self, "trigger_keywords", frozenset(k.lower() for k in self.trigger_keywords)
        )

    @property
    def parameter_schema(self) -> Mapping[str, ParameterSpec]:
        """Ordered, read-only mapping of parameter name to spec."""
        return MappingProxyType({spec.name: spec for spec in self.parameters})

    @property
    def required_parameters(self) -> List[str]:
        return [spec.name for spec in self.parameters if spec.required]


# =============================================================================
# RESULTS
# =============================================================================

class FailureKind(str, Enum):
    UNKNOWN_CAPABILITY = "unknown_capability"
    MISSING_PARAMETER = "missing_parameter"
    INVALID_PARAMETER = "invalid_parameter"
    EXECUTION_ERROR = "execution_error"
    SOURCE_UNAVAILABLE = "source_unavailable"
    TIMEOUT = "timeout"


@dataclass(frozen=True)
class Success:
    payload: Any
    capability_name: Optional[str] = None


@dataclass(frozen=True)
class Failure:
    kind: FailureKind
    message: str
    parameter: Optional[str] = None


CapabilityResult = Union[Success, Failure]


@dataclass(frozen=True)
class PromptExample:
    """A user utterance paired with the invocation the model should emit for it."""

    utterance: str
    parameters: Mapping[str, Any] = field(default_factory=dict, compare=False)


def describe_payload(payload: Any) -> str:
    """Generic ``key: value`` rendering used when a capability has no summary of its own."""
    if isinstance(payload, Mapping):
        lines = []
        for key, value in payload.items():
            if value is None:
                continue
            label = str(key).replace("_", " ").capitalize()
            lines.append(f"{label}: {value}")
        return "\n".join(lines) if lines else "Done."
    if payload is None or payload == "":
        return "Done."
    return str(payload)


class Capability(ABC):
    """Base class for every capability the model can invoke."""

    @property
    @abstractmethod
    def descriptor(self) -> CapabilityDescriptor:
        ...

    @property
    def name(self) -> str:
        return self.descriptor.name

    @abstractmethod
    async def execute(self, parameters: Mapping[str, Any]) -> CapabilityResult:
        """Run with validated parameters. Must return a result, never raise."""

    def summarize(self, payload: Any) -> str:
        return describe_payload(payload)

    def prompt_examples(self) -> List[PromptExample]:
        return []

    def infer_parameters(self, text: str) -> Optional[Dict[str, Any]]:
        """Best-effort parameters from free text; None means they cannot be inferred."""
        return None
