"""Battery status capability backed by psutil."""

from typing import Any, Callable, Dict, List, Mapping, Optional

import psutil

from jeeves_capability_function_calling._logging import get_component_logger
from jeeves_capability_function_calling.capabilities.base import (
    Capability,
    CapabilityDescriptor,
    CapabilityResult,
    Failure,
    FailureKind,
    PromptExample,
    Success,
)

BATTERY_DESCRIPTOR = CapabilityDescriptor(
    name="battery_status",
    description="Check device battery level, charging status and power source",
    parameters=(),
    trigger_keywords=frozenset([
        "battery",
        "charge",
        "charging",
        "power",
        "battery level",
        "battery status",
        "how much battery",
        "battery percentage",
    ]),
)


def _charging_status(percent: float, plugged: Optional[bool]) -> str:
    if plugged is None:
        return "Unknown"
    if plugged:
        return "Full" if percent >= 100 else "Charging"
    return "Discharging"


class BatteryStatusCapability(Capability):
    """Reads the host battery through ``psutil.sensors_battery``.

    ``reader`` is injectable so the capability can run against a fake
    sensor; it must return an object with ``percent``, ``secsleft`` and
    ``power_plugged`` attributes, or None when there is no battery.
    """

    def __init__(
        self,
        reader: Optional[Callable[[], Any]] = None,
        logger: Optional[Any] = None,
    ):
        self._reader = reader or psutil.sensors_battery
        self._logger = get_component_logger("BatteryStatusCapability", logger)

    @property
    def descriptor(self) -> CapabilityDescriptor:
        return BATTERY_DESCRIPTOR

    async def execute(self, parameters: Mapping[str, Any]) -> CapabilityResult:
        try:
            battery = self._reader()
        except Exception as e:
            self._logger.warning("battery_read_failed", error=str(e))
            return Failure(FailureKind.SOURCE_UNAVAILABLE, f"battery sensor error: {e}")

        if battery is None:
            return Failure(FailureKind.SOURCE_UNAVAILABLE, "no battery detected on this device")

        plugged = battery.power_plugged
        payload: Dict[str, Any] = {
            "level": int(round(battery.percent)),
            "status": _charging_status(battery.percent, plugged),
            "power_source": "AC Adapter" if plugged else ("Battery" if plugged is False else "Unknown"),
        }
        # psutil reports unknown/unlimited time as negative sentinels
        secsleft = battery.secsleft
        if not plugged and isinstance(secsleft, (int, float)) and secsleft >= 0:
            payload["time_remaining_minutes"] = int(secsleft // 60)

        self._logger.debug("battery_read", level=payload["level"], status=payload["status"])
        return Success(payload)

    def summarize(self, payload: Any) -> str:
        lines = [
            "Battery Status:",
            f"- Level: {payload['level']}%",
            f"- Status: {payload['status']}",
            f"- Power Source: {payload['power_source']}",
        ]
        if payload.get("time_remaining_minutes") is not None:
            hours, minutes = divmod(payload["time_remaining_minutes"], 60)
            lines.append(f"- Time Remaining: {hours}h {minutes:02d}m")
        return "\n".join(lines)

    def prompt_examples(self) -> List[PromptExample]:
        return [PromptExample("How much battery do I have left?", {})]

    def infer_parameters(self, text: str) -> Optional[Dict[str, Any]]:
        return {}
