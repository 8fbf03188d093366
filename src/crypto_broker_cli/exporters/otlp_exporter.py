"""
OTLP span exporter factory.

Supports both gRPC (default, insecure channel) and HTTP/protobuf transports,
selected by OTEL_EXPORTER_OTLP_PROTOCOL.
"""

from typing import Any

from opentelemetry.sdk.trace.export import SpanExporter

from ..errors import ConfigurationError

GRPC_PROTOCOL = "grpc"
HTTP_PROTOCOLS = ("http", "http/protobuf")


def create_otlp_trace_exporter(
    endpoint: str,
    protocol: str = GRPC_PROTOCOL,
    headers: dict[str, str] | None = None,
    **kwargs: Any,
) -> SpanExporter:
    """
    Create an OTLP trace exporter.

    Args:
        endpoint: OTLP endpoint ("host:port" for gRPC, URL for HTTP)
        protocol: "grpc", "http" or "http/protobuf"
        headers: Optional headers to include
        **kwargs: Additional exporter configuration

    Returns:
        Configured SpanExporter
    """
    protocol = (protocol or GRPC_PROTOCOL).strip().lower()
    if protocol == GRPC_PROTOCOL:
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter

        return OTLPSpanExporter(
            endpoint=endpoint.replace("http://", "").replace("https://", ""),
            insecure=True,
            headers=headers,
            **kwargs,
        )
    if protocol in HTTP_PROTOCOLS:
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import (  # type: ignore[assignment]
            OTLPSpanExporter,
        )

        traces_endpoint = endpoint.rstrip("/")
        if not traces_endpoint.startswith(("http://", "https://")):
            traces_endpoint = f"http://{traces_endpoint}"
        if not traces_endpoint.endswith("/v1/traces"):
            traces_endpoint = f"{traces_endpoint}/v1/traces"
        return OTLPSpanExporter(
            endpoint=traces_endpoint,
            headers=headers,
            **kwargs,
        )
    raise ConfigurationError(f"Unsupported OTLP protocol: {protocol}")
