"""Shared fixtures: in-memory tracing, a fake client library and a clean OTEL environment."""

from typing import Any

import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from crypto_broker_cli.client import (
    BenchmarkDataResponse,
    FakeEndpointResponse,
    HashDataResponse,
    HealthDataResponse,
    SignCertificateResponse,
)
from crypto_broker_cli.telemetry import TracerProviderHandle

_OTEL_ENV = (
    "OTEL_TRACES_EXPORTER",
    "OTEL_EXPORTER_OTLP_ENDPOINT",
    "OTEL_EXPORTER_OTLP_PROTOCOL",
    "OTEL_TRACES_SAMPLER",
    "OTEL_TRACES_SAMPLER_ARG",
    "OTEL_SERVICE_NAME",
    "OTEL_SERVICE_VERSION",
    "CRYPTO_BROKER_CLIENT_FACTORY",
    "CRYPTO_BROKER_CLI_CONFIG",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Start every test without OTEL_* or CLI variables from the outer environment."""
    for name in _OTEL_ENV:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def span_exporter() -> InMemorySpanExporter:
    return InMemorySpanExporter()


@pytest.fixture
def tracer_handle(span_exporter: InMemorySpanExporter) -> TracerProviderHandle:
    """Handle whose spans are exported synchronously to memory."""
    provider = TracerProvider(shutdown_on_exit=False)
    provider.add_span_processor(SimpleSpanProcessor(span_exporter))
    return TracerProviderHandle(provider)


class FakeLibrary:
    """Stands in for the external client library; records every request."""

    def __init__(self, error: Exception | None = None, response: Any = None):
        self.error = error
        self.response = response
        self.requests: list[tuple[str, Any]] = []
        self.closed = 0

    def _respond(self, method: str, payload: Any, default: Any) -> Any:
        self.requests.append((method, payload))
        if self.error is not None:
            raise self.error
        return self.response if self.response is not None else default

    def hash_data(self, payload):
        return self._respond(
            "hash_data", payload, HashDataResponse(hash_value="ab" * 32, hash_algorithm="SHA-256")
        )

    def sign_certificate(self, payload, encoding):
        self.encoding = encoding
        return self._respond(
            "sign_certificate", payload, SignCertificateResponse(signed_certificate="CERT" * 10)
        )

    def health_data(self, payload):
        return self._respond("health_data", payload, HealthDataResponse(status="SERVING"))

    def benchmark_data(self, payload):
        return self._respond(
            "benchmark_data",
            payload,
            BenchmarkDataResponse(results=[{"name": "sha256", "ops": 1000}]),
        )

    def fake_endpoint(self, payload):
        return self._respond("fake_endpoint", payload, FakeEndpointResponse(message="ok"))

    def close(self) -> None:
        self.closed += 1


@pytest.fixture
def fake_library() -> FakeLibrary:
    return FakeLibrary()


class RecordingSleep:
    """Replacement for time.sleep that records requested delays."""

    def __init__(self):
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def fake_sleep() -> RecordingSleep:
    return RecordingSleep()
