"""Tests for the exporter factories."""

import io
import json

import pytest
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter as GrpcExporter
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter as HttpExporter
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor

from crypto_broker_cli.errors import ConfigurationError
from crypto_broker_cli.exporters import create_console_exporter, create_otlp_trace_exporter


def test_grpc_is_default_protocol() -> None:
    exporter = create_otlp_trace_exporter("http://localhost:4317")
    try:
        assert isinstance(exporter, GrpcExporter)
    finally:
        exporter.shutdown()


@pytest.mark.parametrize(
    ("endpoint", "expected"),
    [
        ("localhost:4318", "http://localhost:4318/v1/traces"),
        ("https://collector:4318/", "https://collector:4318/v1/traces"),
        ("http://collector:4318/v1/traces", "http://collector:4318/v1/traces"),
    ],
)
def test_http_endpoint_normalized(endpoint: str, expected: str) -> None:
    exporter = create_otlp_trace_exporter(endpoint, protocol="http/protobuf")
    assert isinstance(exporter, HttpExporter)
    assert exporter._endpoint == expected


def test_unsupported_protocol_rejected() -> None:
    with pytest.raises(ConfigurationError, match="Unsupported OTLP protocol"):
        create_otlp_trace_exporter("localhost:4317", protocol="thrift")


def test_console_exporter_writes_json_spans() -> None:
    out = io.StringIO()
    provider = TracerProvider(shutdown_on_exit=False)
    provider.add_span_processor(SimpleSpanProcessor(create_console_exporter(out)))
    provider.get_tracer("test").start_span("CLI.Hash").end()
    provider.shutdown()

    span = json.loads(out.getvalue())
    assert span["name"] == "CLI.Hash"
