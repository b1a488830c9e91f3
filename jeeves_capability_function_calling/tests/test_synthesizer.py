"""Tests for ResponseSynthesizer (second pass and failure phrasing)."""

from datetime import datetime

import pytest

from jeeves_capability_function_calling._serialization import to_canonical_json
from jeeves_capability_function_calling.capabilities.base import Failure, FailureKind, Success
from jeeves_capability_function_calling.orchestration.synthesizer import (
    FAILURE_MESSAGES,
    ResponseSynthesizer,
)
from jeeves_capability_function_calling.tests.fakes import HANG, ScriptedGenerator

BATTERY = Success(
    {"level": 85, "status": "Discharging", "power_source": "Battery"},
    capability_name="battery_status",
)


def synthesizer(generator, catalog, mock_logger, **kwargs):
    kwargs.setdefault("timeout", 0.2)
    return ResponseSynthesizer(generator, catalog, logger=mock_logger, **kwargs)


class TestSecondPass:
    @pytest.mark.asyncio
    async def test_model_answer_is_used(self, catalog, mock_logger):
        generator = ScriptedGenerator(["You have ", "85% battery left. "])
        answer = await synthesizer(generator, catalog, mock_logger).synthesize(BATTERY, "battery?")

        assert answer == "You have 85% battery left."
        assert generator.closed == 1

    @pytest.mark.asyncio
    async def test_prompt_carries_query_and_canonical_result(self, catalog, mock_logger):
        generator = ScriptedGenerator(["ok"])
        await synthesizer(generator, catalog, mock_logger).synthesize(BATTERY, "How is my battery?")

        prompt = generator.prompts[0]
        assert '"battery_status"' in prompt
        assert "How is my battery?" in prompt
        assert '{"level":85,"power_source":"Battery","status":"Discharging"}' in prompt

    @pytest.mark.asyncio
    async def test_empty_answer_falls_back_to_summary(self, catalog, mock_logger):
        generator = ScriptedGenerator(["  ", "\n"])
        answer = await synthesizer(generator, catalog, mock_logger).synthesize(BATTERY, "battery?")

        assert answer.startswith("Battery Status:\n- Level: 85%")

    @pytest.mark.asyncio
    async def test_timeout_falls_back_to_summary(self, catalog, mock_logger):
        generator = ScriptedGenerator(["You have", HANG])
        answer = await synthesizer(generator, catalog, mock_logger, timeout=0.05).synthesize(BATTERY, "battery?")

        assert answer.startswith("Battery Status:")
        assert generator.closed == 1

    @pytest.mark.asyncio
    async def test_backend_error_falls_back_to_summary(self, catalog, mock_logger):
        generator = ScriptedGenerator(["You", RuntimeError("connection reset")])
        answer = await synthesizer(generator, catalog, mock_logger).synthesize(BATTERY, "battery?")

        assert answer.startswith("Battery Status:")

    @pytest.mark.asyncio
    async def test_second_invocation_is_not_shown(self, catalog, mock_logger):
        generator = ScriptedGenerator(['{"function": "get_weather", "parameters": {"city": "Paris"}}'])
        answer = await synthesizer(generator, catalog, mock_logger).synthesize(BATTERY, "battery?")

        assert answer.startswith("Battery Status:")

    @pytest.mark.asyncio
    async def test_unregistered_capability_uses_generic_summary(self, catalog, mock_logger):
        generator = ScriptedGenerator([])
        result = Success({"answer_value": 42}, capability_name="elsewhere")

        answer = await synthesizer(generator, catalog, mock_logger).synthesize(result, "?")

        assert answer == "Answer value: 42"

    @pytest.mark.asyncio
    async def test_unserializable_payload_uses_summary(self, catalog, mock_logger):
        generator = ScriptedGenerator(["unused"])
        result = Success({"tags": {"a"}}, capability_name="elsewhere")

        answer = await synthesizer(generator, catalog, mock_logger).synthesize(result, "?")

        assert answer == "Tags: {'a'}"
        assert generator.prompts == []


class TestFailurePhrasing:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("kind", list(FailureKind))
    async def test_failures_skip_the_model(self, catalog, mock_logger, kind):
        generator = ScriptedGenerator()
        answer = await synthesizer(generator, catalog, mock_logger).synthesize(
            Failure(kind, "internal detail"), "?"
        )

        assert answer == FAILURE_MESSAGES[kind]
        assert "internal detail" not in answer
        assert generator.prompts == []

    def test_missing_parameter_names_the_parameter(self, catalog, mock_logger):
        failure = Failure(FailureKind.MISSING_PARAMETER, "missing 'city'", parameter="city")
        answer = synthesizer(ScriptedGenerator(), catalog, mock_logger).describe_failure(failure)

        assert answer == "I need a bit more information to do that. Please tell me the city."

    def test_diagnostics_append_failure_detail(self, catalog, mock_logger):
        failure = Failure(FailureKind.SOURCE_UNAVAILABLE, "no battery detected")
        answer = synthesizer(
            ScriptedGenerator(), catalog, mock_logger, include_diagnostics=True
        ).describe_failure(failure)

        assert answer == (
            FAILURE_MESSAGES[FailureKind.SOURCE_UNAVAILABLE]
            + "\n\n[diagnostic: source_unavailable: no battery detected]"
        )


def test_canonical_json_is_order_independent():
    a = to_canonical_json({"b": 1, "a": "é", "at": datetime(2024, 10, 4, 13, 0)})
    b = to_canonical_json({"at": datetime(2024, 10, 4, 13, 0), "a": "é", "b": 1})

    assert a == b == '{"a":"é","at":"2024-10-04T13:00:00","b":1}'
