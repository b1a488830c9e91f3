"""
Invocation extraction from free model text.

The model is asked to answer with a JSON object when it wants a capability:

    {"function": "get_weather", "parameters": {"city": "Paris"}}

Models wrap that object in prose or a fenced code block often enough that
extraction tries two candidates, first success wins:

1. the content of the first fenced code block
2. the balanced-brace span starting at the first ``{`` of the whole text

Extraction never raises; anything that does not parse is "no invocation".
"""

import json
import re
from typing import Any, Dict, Iterator, Mapping, Optional

import structlog

from jeeves_capability_function_calling._logging import preview
from jeeves_capability_function_calling.invocation.types import InvocationRequest

logger = structlog.get_logger("invocation.extractor")

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)


def balanced_span(text: str, start: int = 0) -> Optional[str]:
    """Return the ``{...}`` span opening at the first brace at/after ``start``.

    Quoted strings are skipped so braces inside values do not close the span.
    """
    begin = text.find("{", start)
    if begin == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for i in range(begin, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[begin:i + 1]
    return None


def _candidates(text: str) -> Iterator[str]:
    fenced = _FENCED_BLOCK.search(text)
    if fenced:
        span = balanced_span(fenced.group(1))
        if span:
            yield span
    span = balanced_span(text)
    if span:
        yield span


def _render_value(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def _parse_candidate(candidate: str) -> Optional[InvocationRequest]:
    try:
        data = json.loads(candidate)
    except (json.JSONDecodeError, RecursionError):
        return None
    if not isinstance(data, dict):
        return None

    name = data.get("function")
    if not isinstance(name, str) or not name.strip():
        name = data.get("name")
    if not isinstance(name, str) or not name.strip():
        return None

    params = data.get("parameters")
    if params is None:
        params = {}
    if not isinstance(params, dict):
        return None

    return InvocationRequest(
        capability_name=name.strip(),
        raw_parameters={str(k): _render_value(v) for k, v in params.items()},
    )


def extract(raw_text: Optional[str]) -> Optional[InvocationRequest]:
    """Parse the first well-formed invocation out of ``raw_text``, or None."""
    if not raw_text:
        return None
    for candidate in _candidates(raw_text):
        request = _parse_candidate(candidate)
        if request is not None:
            logger.debug(
                "invocation_extracted",
                capability=request.capability_name,
                parameter_count=len(request.raw_parameters),
            )
            return request
    logger.debug("invocation_not_found", text=preview(raw_text))
    return None


def looks_like_invocation(text: Optional[str]) -> bool:
    """Cheap pre-check; True for every text ``extract`` could succeed on."""
    if not text or "{" not in text:
        return False
    lowered = text.lower()
    return '"function"' in lowered or '"name"' in lowered


def encode_invocation(name: str, parameters: Optional[Mapping[str, Any]] = None) -> str:
    """Render the wire format the model is asked to produce."""
    payload: Dict[str, Any] = {"function": name, "parameters": dict(parameters or {})}
    return json.dumps(payload, ensure_ascii=False)


__all__ = ["extract", "looks_like_invocation", "encode_invocation", "balanced_span"]
