"""
Capability catalog.

Holds the capabilities a model may invoke, in registration order. The
catalog is append-only and is populated once at bootstrap (see
``registration.py``); lookups afterwards are read-only.

Example:
    catalog = CapabilityCatalog()
    catalog.register(BatteryStatusCapability())
    catalog.find_by_name("battery_status")
"""

from typing import Any, Dict, List, Optional

from jeeves_capability_function_calling._logging import get_component_logger, preview
from jeeves_capability_function_calling.capabilities.base import Capability


class DuplicateCapabilityError(ValueError):
    """Raised when a second capability claims an already registered name."""


class CapabilityCatalog:
    def __init__(self, logger: Optional[Any] = None):
        self._logger = get_component_logger("CapabilityCatalog", logger)
        self._capabilities: Dict[str, Capability] = {}

    def register(self, capability: Capability) -> None:
        name = capability.descriptor.name
        if name in self._capabilities:
            raise DuplicateCapabilityError(f"capability {name!r} is already registered")
        self._capabilities[name] = capability
        self._logger.info(
            "capability_registered",
            capability=name,
            parameters=[p.name for p in capability.descriptor.parameters],
        )

    def find_by_name(self, name: str) -> Optional[Capability]:
        return self._capabilities.get(name)

    def detect_by_keyword(self, text: str) -> Optional[Capability]:
        """First capability, in registration order, with a trigger keyword inside ``text``."""
        lowered = text.lower()
        for capability in self._capabilities.values():
            for keyword in capability.descriptor.trigger_keywords:
                if keyword in lowered:
                    self._logger.debug(
                        "capability_detected_by_keyword",
                        capability=capability.descriptor.name,
                        keyword=keyword,
                        text=preview(text),
                    )
                    return capability
        return None

    def all_capabilities(self) -> List[Capability]:
        return list(self._capabilities.values())

    def names(self) -> List[str]:
        return list(self._capabilities)

    def __len__(self) -> int:
        return len(self._capabilities)

    def __contains__(self, name: object) -> bool:
        return name in self._capabilities


__all__ = ["CapabilityCatalog", "DuplicateCapabilityError"]
