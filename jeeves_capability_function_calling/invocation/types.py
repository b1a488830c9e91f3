"""Typed values passed between extraction, validation and dispatch."""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional

from jeeves_capability_function_calling.capabilities.base import Capability


@dataclass(frozen=True)
class InvocationRequest:
    """A capability call as extracted from model text; values are still raw strings."""

    capability_name: str
    raw_parameters: Mapping[str, Optional[str]] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "raw_parameters", MappingProxyType(dict(self.raw_parameters)))


@dataclass(frozen=True)
class ValidatedCall:
    """A call whose parameters have been coerced against the capability's schema."""

    capability: Capability
    parameters: Mapping[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "parameters", MappingProxyType(dict(self.parameters)))


__all__ = ["InvocationRequest", "ValidatedCall"]
