"""Environment-backed settings for the function-calling capability.

All variables share the ``JEEVES_`` prefix used by the host apps.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from jeeves_capability_function_calling.config import thresholds

_BACKENDS = ("ollama", "openai_chat", "llama_server")


def _read_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


def _read_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


def _read_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class FunctionCallingSettings:
    llm_backend: str = "ollama"
    llm_base_url: str = "http://localhost:11434"
    llm_model: str = "llama3.2"
    llm_api_key: str = ""
    llm_temperature: float = 0.2
    llm_max_tokens: int = 512
    inference_timeout_seconds: float = thresholds.INFERENCE_TIMEOUT_SECONDS
    synthesis_timeout_seconds: float = thresholds.SYNTHESIS_TIMEOUT_SECONDS
    search_location: str = thresholds.DEFAULT_SEARCH_LOCATION
    weather_timeout_seconds: float = thresholds.WEATHER_TIMEOUT_SECONDS
    include_diagnostics: bool = False

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "FunctionCallingSettings":
        """Build settings from ``JEEVES_*`` variables; invalid values raise ValueError."""
        env = os.environ if env is None else env

        backend = env.get("JEEVES_LLM_BACKEND", "ollama").strip().lower()
        if backend not in _BACKENDS:
            raise ValueError(
                f"JEEVES_LLM_BACKEND must be one of {', '.join(_BACKENDS)}, got {backend!r}"
            )

        temperature_raw = env.get("JEEVES_LLM_TEMPERATURE", "").strip()
        try:
            temperature = float(temperature_raw) if temperature_raw else 0.2
        except ValueError:
            raise ValueError(
                f"JEEVES_LLM_TEMPERATURE must be a number, got {temperature_raw!r}"
            ) from None

        return cls(
            llm_backend=backend,
            llm_base_url=env.get("JEEVES_LLM_BASE_URL", "http://localhost:11434"),
            llm_model=env.get("JEEVES_LLM_MODEL", "llama3.2"),
            llm_api_key=env.get("JEEVES_LLM_API_KEY", ""),
            llm_temperature=temperature,
            llm_max_tokens=_read_int(env, "JEEVES_LLM_MAX_TOKENS", 512),
            inference_timeout_seconds=_read_float(
                env, "JEEVES_INFERENCE_TIMEOUT_SECONDS", thresholds.INFERENCE_TIMEOUT_SECONDS
            ),
            synthesis_timeout_seconds=_read_float(
                env, "JEEVES_SYNTHESIS_TIMEOUT_SECONDS", thresholds.SYNTHESIS_TIMEOUT_SECONDS
            ),
            search_location=env.get("JEEVES_SEARCH_LOCATION") or thresholds.DEFAULT_SEARCH_LOCATION,
            weather_timeout_seconds=_read_float(
                env, "JEEVES_WEATHER_TIMEOUT_SECONDS", thresholds.WEATHER_TIMEOUT_SECONDS
            ),
            include_diagnostics=_read_bool(env, "JEEVES_INCLUDE_DIAGNOSTICS", False),
        )
