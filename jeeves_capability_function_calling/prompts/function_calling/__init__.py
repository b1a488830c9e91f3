"""
Prompts for the two model passes of a turn:
- system: capability catalog, rules and examples for the first pass
- synthesize: turns a capability result into a user-facing answer
"""

from .system import (
    function_calling_system,
    build_system_prompt,
    build_conversation_prompt,
)
from .synthesize import function_calling_synthesize, build_synthesis_prompt

__all__ = [
    "function_calling_system",
    "function_calling_synthesize",
    "build_system_prompt",
    "build_conversation_prompt",
    "build_synthesis_prompt",
]
