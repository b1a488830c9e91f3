"""
Capability registration.

Single entry point for populating a catalog. Called at bootstrap time,
not at import time, so importing the package has no side effects.
"""

from typing import Any, Dict, Optional

import structlog

from jeeves_capability_function_calling.capabilities.catalog import CapabilityCatalog
from jeeves_capability_function_calling.config.settings import FunctionCallingSettings


def register_all_capabilities(
    catalog: CapabilityCatalog,
    settings: Optional[FunctionCallingSettings] = None,
    logger: Optional[Any] = None,
) -> Dict[str, Any]:
    """
    Register the built-in capabilities with ``catalog``.

    Order matters for keyword detection: capabilities with narrow trigger
    words go first, the file search (broadest vocabulary) last.

    Returns:
        Dict with registration results:
        - count: Number of capabilities registered
        - registered: Capability names in registration order
    """
    if logger is None:
        logger = structlog.get_logger("capabilities.registration")
    settings = settings or FunctionCallingSettings()

    # Deferred to avoid import-time side effects
    from jeeves_capability_function_calling.capabilities.battery import BatteryStatusCapability
    from jeeves_capability_function_calling.capabilities.search_ms import SearchMsQueryCapability
    from jeeves_capability_function_calling.capabilities.weather import WeatherCapability

    logger.info("registering_capabilities")

    catalog.register(BatteryStatusCapability(logger=logger))
    catalog.register(WeatherCapability(timeout=settings.weather_timeout_seconds, logger=logger))
    catalog.register(SearchMsQueryCapability(location=settings.search_location, logger=logger))

    registered = catalog.names()
    logger.info("capabilities_registered", count=len(registered), capabilities=registered)

    return {
        "count": len(registered),
        "registered": registered,
    }


__all__ = ["register_all_capabilities"]
