"""fake-endpoint: call the broker's no-op endpoint, useful for tracing round trips."""

from typing import Any

from ..client import CryptoBrokerLibrary, FakeEndpointPayload
from ..telemetry.provider import TracerProviderHandle
from .base import InstrumentedCommand, Operation


def _call(library: CryptoBrokerLibrary, payload: FakeEndpointPayload) -> Any:
    return library.fake_endpoint(payload)


FAKE_ENDPOINT_OPERATION: Operation[FakeEndpointPayload] = Operation(
    name="FakeEndpoint",
    call=_call,
    success_message="Fake endpoint operation completed successfully",
    response_label="Fake endpoint response",
    timing_label="Fake endpoint call",
    banner="Calling fake endpoint",
)


def new_fake_endpoint_command(
    tracer_provider: TracerProviderHandle,
) -> InstrumentedCommand[FakeEndpointPayload]:
    return InstrumentedCommand(FAKE_ENDPOINT_OPERATION, FakeEndpointPayload, tracer_provider)
