"""Span exporters for the supported trace sinks."""

from .console_exporter import create_console_exporter
from .otlp_exporter import create_otlp_trace_exporter

__all__ = [
    "create_console_exporter",
    "create_otlp_trace_exporter",
]
