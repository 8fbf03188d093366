"""Tests for tracer provider configuration, construction and shutdown."""

import threading

import pytest
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor, SpanExportResult
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.sdk.trace.sampling import ALWAYS_OFF

from crypto_broker_cli.errors import ConfigurationError, TracerShutdownError
from crypto_broker_cli.telemetry import (
    TracerConfig,
    TracerProviderFactory,
    TracerProviderHandle,
    new_tracer_provider_handle,
    parse_exporter_kinds,
)


class RecordingExporterFactory:
    """Exporter factory that hands out one in-memory exporter and counts calls."""

    def __init__(self):
        self.exporter = InMemorySpanExporter()
        self.calls = 0

    def __call__(self, config: TracerConfig) -> InMemorySpanExporter:
        self.calls += 1
        return self.exporter


def _factory(kind: str = "console") -> tuple[TracerProviderFactory, RecordingExporterFactory]:
    recording = RecordingExporterFactory()
    return TracerProviderFactory({kind: recording}), recording


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (None, []),
        ("", []),
        ("console", ["console"]),
        (" OTLP , console ", ["otlp", "console"]),
        ("console,console", ["console"]),
        ("zipkin,none", []),
        ("none,console", ["console"]),
    ],
)
def test_parse_exporter_kinds(raw: str | None, expected: list[str]) -> None:
    assert parse_exporter_kinds(raw) == expected


def test_otlp_without_endpoint_fails_before_building_exporters(monkeypatch) -> None:
    """Selecting otlp without OTEL_EXPORTER_OTLP_ENDPOINT is a configuration error."""
    monkeypatch.setenv("OTEL_TRACES_EXPORTER", "otlp")
    factory, recording = _factory("otlp")
    with pytest.raises(ConfigurationError, match="OTEL_EXPORTER_OTLP_ENDPOINT"):
        new_tracer_provider_handle(register_global=False, factory=factory)
    assert recording.calls == 0


def test_factory_rechecks_otlp_endpoint() -> None:
    factory, recording = _factory("otlp")
    config = TracerConfig(service_name="svc", service_version="1", exporter_kinds=["otlp"])
    with pytest.raises(ConfigurationError):
        factory.build(config)
    assert recording.calls == 0


def test_unrecognized_exporters_yield_noop_provider(monkeypatch) -> None:
    """Only unknown exporter names: spans still work, shutdown works twice."""
    monkeypatch.setenv("OTEL_TRACES_EXPORTER", "zipkin")
    handle = new_tracer_provider_handle(register_global=False)
    assert handle.config.exporter_kinds == []
    assert list(handle.provider._active_span_processor._span_processors) == []

    span = handle.get_tracer("test").start_span("noop")
    span.end()

    handle.shutdown(1.0)
    handle.shutdown(1.0)
    assert handle.is_shut_down


def test_default_exporter_is_console() -> None:
    config = TracerConfig.from_env()
    assert config.exporter_kinds == ["console"]
    assert config.sampler_kind == "always_on"
    assert config.otlp_protocol == "grpc"


def test_service_identity_precedence(monkeypatch) -> None:
    """Explicit values win over the environment, which wins over defaults."""
    assert TracerConfig.from_env().service_name == "crypto-broker-cli"
    assert TracerConfig.from_env().service_version == "unknown service version"

    monkeypatch.setenv("OTEL_SERVICE_NAME", "env-name")
    monkeypatch.setenv("OTEL_SERVICE_VERSION", "env-version")
    config = TracerConfig.from_env()
    assert (config.service_name, config.service_version) == ("env-name", "env-version")

    config = TracerConfig.from_env("flag-name", "flag-version")
    assert (config.service_name, config.service_version) == ("flag-name", "flag-version")


def test_ratio_only_read_for_ratio_samplers(monkeypatch) -> None:
    monkeypatch.setenv("OTEL_TRACES_SAMPLER_ARG", "0.25")
    assert TracerConfig.from_env().sampler_ratio == 1.0
    monkeypatch.setenv("OTEL_TRACES_SAMPLER", "parentbased_traceidratio")
    assert TracerConfig.from_env().sampler_ratio == 0.25


def test_build_exports_spans_with_service_resource(monkeypatch) -> None:
    monkeypatch.setenv("OTEL_TRACES_EXPORTER", "console")
    factory, recording = _factory("console")
    handle = new_tracer_provider_handle(
        "svc",
        "1.2.3",
        resource_attributes={"deployment.environment": "test", SERVICE_NAME: "ignored"},
        register_global=False,
        factory=factory,
    )
    assert recording.calls == 1

    handle.get_tracer("test").start_span("work").end()
    handle.shutdown(5.0)

    spans = recording.exporter.get_finished_spans()
    assert [s.name for s in spans] == ["work"]
    resource = spans[0].resource.attributes
    assert resource[SERVICE_NAME] == "svc"
    assert resource[SERVICE_VERSION] == "1.2.3"
    assert resource["service.namespace"] == "crypto-broker"
    assert resource["deployment.environment"] == "test"


def test_always_off_sampler_exports_nothing(monkeypatch) -> None:
    monkeypatch.setenv("OTEL_TRACES_SAMPLER", "always_off")
    factory, recording = _factory("console")
    handle = factory.build(TracerConfig.from_env())
    assert handle.provider.sampler is ALWAYS_OFF

    span = handle.get_tracer("test").start_span("dropped")
    assert not span.get_span_context().trace_flags.sampled
    span.end()
    handle.shutdown(5.0)
    assert recording.exporter.get_finished_spans() == ()


class BlockingExporter(InMemorySpanExporter):
    """Exporter whose shutdown blocks until released."""

    def __init__(self):
        super().__init__()
        self.release = threading.Event()

    def export(self, spans) -> SpanExportResult:
        return SpanExportResult.SUCCESS

    def shutdown(self) -> None:
        self.release.wait(5.0)


def test_shutdown_deadline_exceeded_raises() -> None:
    exporter = BlockingExporter()
    provider = TracerProvider(shutdown_on_exit=False)
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    handle = TracerProviderHandle(provider)
    try:
        with pytest.raises(TracerShutdownError):
            handle.shutdown(0.05)
        # Later calls are no-ops even after a failed first attempt.
        handle.shutdown(0.05)
    finally:
        exporter.release.set()


def test_shutdown_is_safe_from_concurrent_callers(tracer_handle, span_exporter) -> None:
    tracer_handle.get_tracer("test").start_span("one").end()
    threads = [threading.Thread(target=tracer_handle.shutdown, args=(1.0,)) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert tracer_handle.is_shut_down
    assert len(span_exporter.get_finished_spans()) == 1
