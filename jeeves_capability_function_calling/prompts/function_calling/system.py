"""
System prompt for the first pass.

The capability catalog and the worked examples are rendered from the
registered capabilities, so the model only ever sees names the dispatcher
can resolve.
"""

from typing import Any, Iterable, List, Sequence

from jeeves_capability_function_calling.capabilities.base import Capability, ParameterSpec
from jeeves_capability_function_calling.invocation.extractor import encode_invocation
from jeeves_capability_function_calling.prompts.registry import PromptRegistry, register_prompt

_ROLE_LABELS = {"user": "User", "assistant": "Assistant"}


@register_prompt(
    name="function_calling.system",
    version="1.0",
    description="Capability catalog, rules and examples for invocation-or-answer",
)
def function_calling_system() -> str:
    return """You are an AI assistant with {capability_count} functions available.

AVAILABLE FUNCTIONS:

{capabilities}

RULES:
1. ONLY use the functions listed above - do NOT invent new functions
2. To call a function, reply with the JSON object only, no other text
3. For anything else, respond in plain text
4. Dates use ISO 8601: 2024-10-04T13:00:00
5. Sizes are in bytes: 10MB=10485760, 100MB=104857600, 1GB=1073741824

EXAMPLES:

{examples}
User: Who is Ada Lovelace?
Assistant: Ada Lovelace was a mathematician known for her work on Charles Babbage's Analytical Engine.

WRONG (never do this):
User: Find my emails
Assistant: {{"function": "get_emails", "parameters": {{...}}}}
^ WRONG - get_emails is not a valid function. Use an available function or answer in plain text."""


def _describe_parameter(spec: ParameterSpec) -> str:
    label = "required" if spec.required else "optional"
    text = f"{spec.type.value} ({label})"
    if spec.description:
        text = f"{text} {spec.description}"
    return text


def render_capability_catalog(capabilities: Sequence[Capability]) -> str:
    blocks: List[str] = []
    for index, capability in enumerate(capabilities, start=1):
        descriptor = capability.descriptor
        schema = {spec.name: _describe_parameter(spec) for spec in descriptor.parameters}
        blocks.append(
            f"{index}. {descriptor.name} - {descriptor.description}\n"
            f"{encode_invocation(descriptor.name, schema)}"
        )
    return "\n\n".join(blocks)


def render_examples(capabilities: Iterable[Capability]) -> str:
    lines: List[str] = []
    for capability in capabilities:
        for example in capability.prompt_examples():
            lines.append(f"User: {example.utterance}")
            lines.append(
                f"Assistant: {encode_invocation(capability.descriptor.name, example.parameters)}"
            )
            lines.append("")
    return "\n".join(lines)


def build_system_prompt(capabilities: Sequence[Capability]) -> str:
    return PromptRegistry.get_instance().get(
        "function_calling.system",
        context={
            "capability_count": len(capabilities),
            "capabilities": render_capability_catalog(capabilities),
            "examples": render_examples(capabilities),
        },
    )


def build_conversation_prompt(system_prompt: str, history: Iterable[Any], user_text: str) -> str:
    """
    Render the full single-string prompt:

        <system prompt>

        Conversation:
        User: ...
        Assistant: ...
        User: <user_text>
        Assistant:

    ``history`` holds prior turns (oldest first) with ``role`` and ``content``.
    """
    parts = [system_prompt, "\n\n"]
    lines = []
    for turn in history:
        role = getattr(turn.role, "value", turn.role)
        label = _ROLE_LABELS.get(role)
        if label is None:
            continue
        lines.append(f"{label}: {turn.content}\n")
    if lines:
        parts.append("Conversation:\n")
        parts.extend(lines)
    parts.append(f"User: {user_text}\n")
    parts.append("Assistant:")
    return "".join(parts)
