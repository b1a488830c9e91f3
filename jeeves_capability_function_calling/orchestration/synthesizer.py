"""
Response synthesis: turn a capability result into the user-facing answer.

Success results go back to the model once more with the synthesis prompt.
When that second pass fails (timeout, backend fault, empty text, or the
model tries to call another function) the answer falls back to the
capability's own deterministic summary. Failures never reach the model:
they get a fixed phrasing per failure kind.
"""

import asyncio
from typing import Any, Dict, Optional

from jeeves_capability_function_calling._logging import get_component_logger, preview
from jeeves_capability_function_calling._serialization import to_canonical_json
from jeeves_capability_function_calling.capabilities.base import (
    CapabilityResult,
    Failure,
    FailureKind,
    Success,
    describe_payload,
)
from jeeves_capability_function_calling.capabilities.catalog import CapabilityCatalog
from jeeves_capability_function_calling.config.thresholds import SYNTHESIS_TIMEOUT_SECONDS
from jeeves_capability_function_calling.invocation.extractor import extract, looks_like_invocation
from jeeves_capability_function_calling.orchestration.model_resource import TextGenerator
from jeeves_capability_function_calling.prompts.function_calling.synthesize import build_synthesis_prompt

FAILURE_MESSAGES: Dict[FailureKind, str] = {
    FailureKind.UNKNOWN_CAPABILITY: "I tried to use a function that isn't available. Could you rephrase your request?",
    FailureKind.MISSING_PARAMETER: "I need a bit more information to do that.",
    FailureKind.INVALID_PARAMETER: "One of the values in that request wasn't valid. Could you rephrase it?",
    FailureKind.EXECUTION_ERROR: "Sorry, something went wrong while doing that. Please try again.",
    FailureKind.SOURCE_UNAVAILABLE: "That information isn't available on this device.",
    FailureKind.TIMEOUT: "That took too long to respond. Please try again in a moment.",
}


class SynthesisFailed(Exception):
    pass


class ResponseSynthesizer:
    def __init__(
        self,
        generator: TextGenerator,
        catalog: CapabilityCatalog,
        *,
        timeout: float = SYNTHESIS_TIMEOUT_SECONDS,
        include_diagnostics: bool = False,
        logger: Optional[Any] = None,
    ):
        self._generator = generator
        self._catalog = catalog
        self._timeout = timeout
        self._include_diagnostics = include_diagnostics
        self._logger = get_component_logger("ResponseSynthesizer", logger)

    async def synthesize(self, result: CapabilityResult, user_query: str) -> str:
        if isinstance(result, Failure):
            return self.describe_failure(result)

        try:
            return await self._second_pass(result, user_query)
        except SynthesisFailed as e:
            self._logger.warning(
                "synthesis_failed_using_template",
                capability=result.capability_name,
                reason=str(e),
            )
            return self.template(result)

    def describe_failure(self, failure: Failure) -> str:
        message = FAILURE_MESSAGES.get(failure.kind, FAILURE_MESSAGES[FailureKind.EXECUTION_ERROR])
        if failure.kind == FailureKind.MISSING_PARAMETER and failure.parameter:
            message = f"I need a bit more information to do that. Please tell me the {failure.parameter}."
        if self._include_diagnostics:
            message = f"{message}\n\n[diagnostic: {failure.kind.value}: {failure.message}]"
        return message

    def template(self, result: Success) -> str:
        capability = self._catalog.find_by_name(result.capability_name or "")
        if capability is not None:
            return capability.summarize(result.payload)
        return describe_payload(result.payload)

    async def _second_pass(self, result: Success, user_query: str) -> str:
        try:
            result_json = to_canonical_json(result.payload)
        except (TypeError, ValueError) as e:
            raise SynthesisFailed(f"payload is not JSON serializable: {e}") from e
        prompt = build_synthesis_prompt(
            capability_name=result.capability_name or "unknown",
            user_query=user_query,
            result_json=result_json,
        )
        try:
            text = await asyncio.wait_for(self._collect(prompt), timeout=self._timeout)
        except asyncio.TimeoutError:
            raise SynthesisFailed(f"no answer within {self._timeout}s") from None
        except Exception as e:
            raise SynthesisFailed(f"{type(e).__name__}: {e}") from e

        text = text.strip()
        if not text:
            raise SynthesisFailed("empty answer")
        if looks_like_invocation(text) and extract(text) is not None:
            raise SynthesisFailed("model answered with another invocation")
        self._logger.debug("synthesis_completed", answer=preview(text))
        return text

    async def _collect(self, prompt: str) -> str:
        stream = self._generator.generate(prompt)
        chunks = []
        try:
            async for chunk in stream:
                chunks.append(chunk)
        finally:
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                await aclose()
        return "".join(chunks)
