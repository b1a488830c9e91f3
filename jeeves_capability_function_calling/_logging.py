"""Capability-local structured logging utilities.

Direct structlog usage; every component binds its name so log lines can be
filtered per stage of the function-calling pipeline.
"""

import structlog
from typing import Any, Optional

# Raw user/model text is only ever logged truncated to this many characters.
PREVIEW_CHARS = 50


def get_component_logger(component: str, logger: Optional[Any] = None) -> Any:
    """Get logger bound to a component name.

    Args:
        component: Component name (e.g., "Dispatcher", "ConversationOrchestrator")
        logger: Optional injected logger. If None, uses default structlog logger.

    Returns:
        Logger bound to the component name
    """
    base = logger or structlog.get_logger()
    return base.bind(component=component)


def preview(text: Optional[str]) -> str:
    """Truncate free text before it goes into a log event."""
    if not text:
        return ""
    return text[:PREVIEW_CHARS]
