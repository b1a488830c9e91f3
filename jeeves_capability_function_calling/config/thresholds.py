"""Tuning constants for the function-calling pipeline.

Environment-driven values live in settings.py; these are the defaults it
falls back to and the knobs that are not worth exposing.
"""

# =============================================================================
# CONVERSATION CONTEXT
# =============================================================================

# Prior turns included in each prompt (the current user message is extra)
MAX_CONTEXT_MESSAGES = 6

# Push a UI update every N streamed chunks
TOKEN_DEBOUNCE_COUNT = 2


# =============================================================================
# TIMEOUTS (seconds)
# =============================================================================

INFERENCE_TIMEOUT_SECONDS = 30.0
SYNTHESIS_TIMEOUT_SECONDS = 30.0
WEATHER_TIMEOUT_SECONDS = 10.0
HEALTH_PROBE_TIMEOUT_SECONDS = 5.0

# Transient UI errors clear themselves after this delay
ERROR_CLEAR_DELAY_SECONDS = 3.0


# =============================================================================
# USER-FACING TEXT
# =============================================================================

FALLBACK_RESPONSE = "I'm having trouble responding right now. Please try again."
MODEL_NOT_READY_MESSAGE = "Model not ready. Please wait for download to complete."
SAFE_ERROR_MESSAGE = "Something went wrong while generating a response."

TIMEOUT_MARKER = "\n\n[Response timed out]"
INTERRUPTED_MARKER = "\n\n[Response interrupted]"
CANCELLED_MARKER = "\n\n[Response cancelled]"


# =============================================================================
# SEARCH
# =============================================================================

DEFAULT_SEARCH_LOCATION = "S:\\"
DEFAULT_SEARCH_DISPLAY_NAME = "Search Results"


# =============================================================================
# SESSIONS
# =============================================================================

# Chat sessions kept by a host before the least recently used one is closed
MAX_SESSIONS = 64
