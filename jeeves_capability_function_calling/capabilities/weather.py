"""
Current weather capability.

Uses the Open-Meteo public APIs (no key required):
1. geocoding-api.open-meteo.com resolves the city name to coordinates
2. api.open-meteo.com returns current conditions for those coordinates
"""

from typing import Any, Dict, List, Mapping, Optional

import httpx

from jeeves_capability_function_calling._logging import get_component_logger
from jeeves_capability_function_calling.capabilities.base import (
    Capability,
    CapabilityDescriptor,
    CapabilityResult,
    Failure,
    FailureKind,
    ParameterSpec,
    PromptExample,
    Success,
)
from jeeves_capability_function_calling.config.thresholds import WEATHER_TIMEOUT_SECONDS

GEOCODING_URL = "https://geocoding-api.open-meteo.com/v1/search"
FORECAST_URL = "https://api.open-meteo.com/v1/forecast"

# WMO weather interpretation codes
WEATHER_CODES: Dict[int, str] = {
    0: "Clear sky",
    1: "Mainly clear",
    2: "Partly cloudy",
    3: "Overcast",
    45: "Fog",
    48: "Depositing rime fog",
    51: "Light drizzle",
    53: "Moderate drizzle",
    55: "Dense drizzle",
    61: "Slight rain",
    63: "Moderate rain",
    65: "Heavy rain",
    71: "Slight snow",
    73: "Moderate snow",
    75: "Heavy snow",
    80: "Rain showers",
    81: "Heavy rain showers",
    82: "Violent rain showers",
    95: "Thunderstorm",
    96: "Thunderstorm with hail",
    99: "Thunderstorm with heavy hail",
}

WEATHER_DESCRIPTOR = CapabilityDescriptor(
    name="get_weather",
    description="Get the current weather for a city",
    parameters=(
        ParameterSpec("city", required=True, description="City name, e.g. Paris"),
    ),
    trigger_keywords=frozenset(["weather", "temperature", "forecast", "rain"]),
)


class WeatherCapability(Capability):
    def __init__(
        self,
        timeout: float = WEATHER_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        logger: Optional[Any] = None,
    ):
        self._timeout = timeout
        self._transport = transport
        self._logger = get_component_logger("WeatherCapability", logger)

    @property
    def descriptor(self) -> CapabilityDescriptor:
        return WEATHER_DESCRIPTOR

    async def execute(self, parameters: Mapping[str, Any]) -> CapabilityResult:
        city = str(parameters.get("city") or "").strip()
        if not city:
            return Failure(FailureKind.MISSING_PARAMETER, "city is required", parameter="city")

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                geo = await client.get(GEOCODING_URL, params={"name": city, "count": 1})
                geo.raise_for_status()
                matches = geo.json().get("results") or []
                if not matches:
                    return Failure(FailureKind.EXECUTION_ERROR, f"unknown city: {city}")
                place = matches[0]

                forecast = await client.get(
                    FORECAST_URL,
                    params={
                        "latitude": place["latitude"],
                        "longitude": place["longitude"],
                        "current": "temperature_2m,wind_speed_10m,weather_code",
                    },
                )
                forecast.raise_for_status()
                current = forecast.json().get("current") or {}
        except httpx.TimeoutException:
            self._logger.warning("weather_request_timed_out", city=city)
            return Failure(FailureKind.TIMEOUT, f"weather service did not answer within {self._timeout}s")
        except httpx.HTTPError as e:
            self._logger.warning("weather_request_failed", city=city, error=str(e))
            return Failure(FailureKind.EXECUTION_ERROR, f"weather service error: {e}")
        except (KeyError, ValueError) as e:
            return Failure(FailureKind.EXECUTION_ERROR, f"unexpected weather response: {e}")

        code = current.get("weather_code")
        return Success({
            "city": place.get("name", city),
            "country": place.get("country"),
            "temperature_c": current.get("temperature_2m"),
            "wind_speed_kmh": current.get("wind_speed_10m"),
            "conditions": WEATHER_CODES.get(code, "Unknown") if code is not None else None,
        })

    def summarize(self, payload: Any) -> str:
        where = payload["city"]
        if payload.get("country"):
            where = f"{where}, {payload['country']}"
        parts = [f"Weather in {where}:"]
        if payload.get("conditions"):
            parts.append(payload["conditions"])
        if payload.get("temperature_c") is not None:
            parts.append(f"{payload['temperature_c']}°C")
        if payload.get("wind_speed_kmh") is not None:
            parts.append(f"wind {payload['wind_speed_kmh']} km/h")
        return " ".join(parts)

    def prompt_examples(self) -> List[PromptExample]:
        return [PromptExample("What's the weather in Paris?", {"city": "Paris"})]
