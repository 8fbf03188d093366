"""health: probe the broker server's health status."""

from typing import Any

from ..client import CryptoBrokerLibrary, HealthDataPayload
from ..telemetry.provider import TracerProviderHandle
from .base import InstrumentedCommand, Operation


def _call(library: CryptoBrokerLibrary, payload: HealthDataPayload) -> Any:
    return library.health_data(payload)


HEALTH_OPERATION: Operation[HealthDataPayload] = Operation(
    name="Health",
    call=_call,
    success_message="Health check completed successfully",
    response_label="Health check response",
    timing_label="Health check",
    banner="Checking broker server health",
)


def new_health_command(tracer_provider: TracerProviderHandle) -> InstrumentedCommand[HealthDataPayload]:
    return InstrumentedCommand(HEALTH_OPERATION, HealthDataPayload, tracer_provider)
