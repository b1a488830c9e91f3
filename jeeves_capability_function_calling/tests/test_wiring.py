"""Tests for the wiring factories."""

import pytest

from airframe import BackendKind

from jeeves_capability_function_calling import create_wiring
from jeeves_capability_function_calling.config.settings import FunctionCallingSettings
from jeeves_capability_function_calling.orchestration.types import ModelChecking, UiError
from jeeves_capability_function_calling.orchestration.wiring import create_endpoint


class TestCreateEndpoint:
    def test_ollama_default(self):
        endpoint = create_endpoint(FunctionCallingSettings())

        assert endpoint.backend_kind == BackendKind.OLLAMA
        assert endpoint.root_url == "http://localhost:11434"
        assert endpoint.metadata == {}

    def test_openai_style_v1_suffix_is_stripped(self):
        settings = FunctionCallingSettings(
            llm_backend="openai_chat",
            llm_base_url="https://api.openai.com/v1/",
            llm_api_key="sk-test",
        )
        endpoint = create_endpoint(settings)

        assert endpoint.backend_kind == BackendKind.OPENAI_CHAT
        assert endpoint.base_url == "https://api.openai.com"
        assert endpoint.metadata == {"api_key": "sk-test"}

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            create_endpoint(FunctionCallingSettings(llm_backend="gpt"))


class TestCreateWiring:
    def test_components(self, mock_logger):
        wiring = create_wiring(FunctionCallingSettings(search_location="E:\\"), logger=mock_logger)

        assert set(wiring) == {"settings", "catalog", "model", "orchestrator"}
        assert wiring["catalog"].names() == ["battery_status", "get_weather", "create_search_ms_query"]
        assert wiring["catalog"].find_by_name("create_search_ms_query").location == "E:\\"
        assert wiring["model"].status.value == ModelChecking()
        assert wiring["model"].model == "llama3.2"

    @pytest.mark.asyncio
    async def test_orchestrator_waits_for_model(self, mock_logger):
        orchestrator = create_wiring(FunctionCallingSettings(), logger=mock_logger)["orchestrator"]

        assert await orchestrator.send_message("hello") is None
        assert isinstance(orchestrator.ui_state.value, UiError)
        await orchestrator.close()
