"""
Capabilities the model can invoke.

Capabilities are registered at bootstrap time, not at import time.

Usage:
    from jeeves_capability_function_calling.capabilities import (
        CapabilityCatalog,
        register_all_capabilities,
    )

    catalog = CapabilityCatalog()
    register_all_capabilities(catalog, settings)
"""

from .base import (
    Capability,
    CapabilityDescriptor,
    CapabilityResult,
    Failure,
    FailureKind,
    ParameterSpec,
    ParameterType,
    PromptExample,
    Success,
    describe_payload,
)
from .catalog import CapabilityCatalog, DuplicateCapabilityError
from .registration import register_all_capabilities

__all__ = [
    # Contract
    "Capability",
    "CapabilityDescriptor",
    "ParameterSpec",
    "ParameterType",
    "PromptExample",
    "describe_payload",
    # Results
    "CapabilityResult",
    "Success",
    "Failure",
    "FailureKind",
    # Catalog
    "CapabilityCatalog",
    "DuplicateCapabilityError",
    "register_all_capabilities",
]
