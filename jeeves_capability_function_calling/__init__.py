"""
Jeeves Function Calling - capability invocation from model text

A text-generating model asks for deterministic actions by emitting a JSON
invocation. This capability detects and parses that text, validates it
against the capability's schema, runs it, and asks the model to phrase the
result for the user.

Architecture:
    Model (first pass) -> Extract -> Dispatch -> Synthesize (second pass)

Key components:
- capabilities/: capability contract, catalog and built-in capabilities
  (battery_status, get_weather, create_search_ms_query)
- invocation/: extraction of invocations from text and dispatch
- orchestration/: conversation state machine, model resource, synthesis
- prompts/function_calling/: system and synthesis prompts
- config/: thresholds and JEEVES_* environment settings

Usage:
    from jeeves_capability_function_calling import create_wiring

    wiring = create_wiring()
    await wiring["model"].initialize()
    result = await wiring["orchestrator"].send_message("Find my holiday photos")

See gradio_app.py for a standalone host.
"""

from jeeves_capability_function_calling.orchestration.wiring import create_wiring

CAPABILITY_ID = "function_calling"
CAPABILITY_VERSION = "0.1.0"

__version__ = CAPABILITY_VERSION
__capability__ = CAPABILITY_ID

__all__ = [
    "create_wiring",
    "CAPABILITY_ID",
    "CAPABILITY_VERSION",
    "__version__",
    "__capability__",
]
