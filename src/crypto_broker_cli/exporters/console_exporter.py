"""
Console span exporter for debugging and development.

Prints finished spans to stdout as indented JSON.
"""

import sys
from typing import TextIO

from opentelemetry.sdk.trace import ReadableSpan
from opentelemetry.sdk.trace.export import ConsoleSpanExporter


def _pretty(span: ReadableSpan) -> str:
    return span.to_json(indent=2) + "\n"


def create_console_exporter(out: TextIO = sys.stdout) -> ConsoleSpanExporter:
    """Create a console exporter that pretty-prints each span."""
    return ConsoleSpanExporter(out=out, formatter=_pretty)
