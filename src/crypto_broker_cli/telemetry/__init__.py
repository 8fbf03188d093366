"""OpenTelemetry tracing: provider configuration, spans and trace-context injection."""

from .provider import (
    TracerConfig,
    TracerProviderFactory,
    TracerProviderHandle,
    new_tracer_provider_handle,
    parse_exporter_kinds,
)
from .sampling import parse_sampler_ratio, resolve_sampler
from .spans import SpanHandle, inject_trace_context, open_span, with_trace_context

__all__ = [
    "TracerConfig",
    "TracerProviderFactory",
    "TracerProviderHandle",
    "new_tracer_provider_handle",
    "parse_exporter_kinds",
    "parse_sampler_ratio",
    "resolve_sampler",
    "SpanHandle",
    "open_span",
    "inject_trace_context",
    "with_trace_context",
]
