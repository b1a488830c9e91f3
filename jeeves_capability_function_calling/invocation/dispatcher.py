"""
Dispatcher: validate an extracted invocation and run the capability.

Every outcome is a ``CapabilityResult`` value. Unknown names, missing or
malformed parameters and capability faults become ``Failure``s so the
conversation can always continue; only task cancellation propagates.
"""

import dataclasses
import math
from typing import Any, Dict, Optional, Union

from jeeves_capability_function_calling._logging import get_component_logger
from jeeves_capability_function_calling.capabilities.base import (
    Capability,
    CapabilityResult,
    Failure,
    FailureKind,
    ParameterSpec,
    ParameterType,
    Success,
)
from jeeves_capability_function_calling.capabilities.catalog import CapabilityCatalog
from jeeves_capability_function_calling.invocation.types import InvocationRequest, ValidatedCall


class _CoercionError(ValueError):
    pass


def _coerce_string(spec: ParameterSpec, raw: str) -> str:
    if spec.allowed_values is None:
        return raw
    value = raw.strip().lower()
    if spec.aliases:
        value = spec.aliases.get(value, value)
    if value not in spec.allowed_values:
        allowed = ", ".join(sorted(spec.allowed_values))
        raise _CoercionError(f"{spec.name} must be one of: {allowed} (got {raw!r})")
    return value


def _coerce_integer(spec: ParameterSpec, raw: str) -> int:
    text = raw.strip()
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        raise _CoercionError(f"{spec.name} must be an integer (got {raw!r})") from None
    if not math.isfinite(number) or not number.is_integer():
        raise _CoercionError(f"{spec.name} must be an integer (got {raw!r})")
    return int(number)


def _coerce_number(spec: ParameterSpec, raw: str) -> float:
    try:
        number = float(raw.strip())
    except ValueError:
        raise _CoercionError(f"{spec.name} must be a number (got {raw!r})") from None
    if not math.isfinite(number):
        raise _CoercionError(f"{spec.name} must be a finite number (got {raw!r})")
    return number


_COERCERS = {
    ParameterType.STRING: _coerce_string,
    ParameterType.INTEGER: _coerce_integer,
    ParameterType.NUMBER: _coerce_number,
}


class Dispatcher:
    def __init__(self, catalog: CapabilityCatalog, logger: Optional[Any] = None):
        self._catalog = catalog
        self._logger = get_component_logger("Dispatcher", logger)

    def validate(
        self, capability: Capability, request: InvocationRequest
    ) -> Union[ValidatedCall, Failure]:
        """Coerce raw parameters against the descriptor, in descriptor order."""
        descriptor = capability.descriptor
        schema = descriptor.parameter_schema
        typed: Dict[str, Any] = {}

        for name, spec in schema.items():
            raw = request.raw_parameters.get(name)
            if raw is None or raw.strip() == "":
                if spec.required:
                    return Failure(
                        FailureKind.MISSING_PARAMETER,
                        f"missing required parameter {name!r} for {descriptor.name}",
                        parameter=name,
                    )
                if spec.default is not None:
                    typed[name] = spec.default
                continue
            try:
                typed[name] = _COERCERS[spec.type](spec, raw)
            except _CoercionError as e:
                return Failure(FailureKind.INVALID_PARAMETER, str(e), parameter=name)

        ignored = [key for key in request.raw_parameters if key not in schema]
        if ignored:
            self._logger.debug("unknown_parameters_ignored", capability=descriptor.name, keys=ignored)

        return ValidatedCall(capability=capability, parameters=typed)

    async def dispatch(self, request: InvocationRequest) -> CapabilityResult:
        capability = self._catalog.find_by_name(request.capability_name)
        if capability is None:
            self._logger.info("dispatch_unknown_capability", capability=request.capability_name)
            return Failure(
                FailureKind.UNKNOWN_CAPABILITY,
                f"no capability named {request.capability_name!r}",
            )

        validated = self.validate(capability, request)
        if isinstance(validated, Failure):
            self._logger.info(
                "dispatch_failed",
                capability=request.capability_name,
                kind=validated.kind.value,
                parameter=validated.parameter,
            )
            return validated

        name = capability.descriptor.name
        try:
            result = await capability.execute(validated.parameters)
        except Exception as e:
            self._logger.error("capability_execution_error", capability=name, error=str(e))
            return Failure(FailureKind.EXECUTION_ERROR, f"{name} failed: {e}")

        if isinstance(result, Success):
            self._logger.info("dispatch_succeeded", capability=name)
            return dataclasses.replace(result, capability_name=name)
        if isinstance(result, Failure):
            self._logger.info("dispatch_failed", capability=name, kind=result.kind.value)
            return result

        self._logger.error("capability_returned_non_result", capability=name, type=type(result).__name__)
        return Failure(FailureKind.EXECUTION_ERROR, f"{name} returned an invalid result")


__all__ = ["Dispatcher"]
