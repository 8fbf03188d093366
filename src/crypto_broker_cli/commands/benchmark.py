"""benchmark: run the server-side cryptographic benchmarks."""

from typing import Any

from ..client import BenchmarkDataPayload, CryptoBrokerLibrary
from ..telemetry import attributes as attrs
from ..telemetry.provider import TracerProviderHandle
from .base import Attributes, InstrumentedCommand, Operation


def _call(library: CryptoBrokerLibrary, payload: BenchmarkDataPayload) -> Any:
    return library.benchmark_data(payload)


def _response_attributes(response: Any, rendered: str) -> Attributes:
    return {attrs.CRYPTO_BENCHMARK_RESULTS_SIZE: len(rendered)}


BENCHMARK_OPERATION: Operation[BenchmarkDataPayload] = Operation(
    name="Benchmark",
    call=_call,
    success_message="Benchmark operation completed successfully",
    response_label="Benchmark results",
    timing_label="Benchmark execution",
    response_attributes=_response_attributes,
    banner="Running server-side benchmarks",
)


def new_benchmark_command(
    tracer_provider: TracerProviderHandle,
) -> InstrumentedCommand[BenchmarkDataPayload]:
    return InstrumentedCommand(BENCHMARK_OPERATION, BenchmarkDataPayload, tracer_provider)
