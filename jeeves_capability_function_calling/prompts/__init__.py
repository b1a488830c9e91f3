"""Prompts for the function-calling capability.

Importing this package registers every prompt with the PromptRegistry.
"""

from .registry import PromptRegistry, PromptVersion, register_prompt
from . import function_calling  # noqa: F401

__all__ = ["PromptRegistry", "PromptVersion", "register_prompt"]
