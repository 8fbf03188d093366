"""
Per-invocation spans and trace-context injection into request metadata.

Every unit of work runs inside ``open_span``; the span is ended exactly once
whichever way the block exits. ``inject_trace_context`` copies the span's
identifiers into the request's metadata envelope, creating the envelope
when the request has none.
"""

import dataclasses
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any, TypeVar

from opentelemetry import trace
from opentelemetry.trace import Span, Status, StatusCode, Tracer
from opentelemetry.util.types import AttributeValue

from ..client import Metadata, TraceContext

PayloadT = TypeVar("PayloadT")


class SpanHandle:
    """Thin wrapper over an OpenTelemetry span for one unit of work."""

    def __init__(self, span: Span):
        self._span = span
        self._ended = False
        self._status_set = False

    @property
    def span(self) -> Span:
        return self._span

    @property
    def ended(self) -> bool:
        return self._ended

    @property
    def status_set(self) -> bool:
        return self._status_set

    def set_attributes(self, attributes: Mapping[str, AttributeValue]) -> None:
        self._span.set_attributes(dict(attributes))

    def record_error(self, error: BaseException) -> None:
        self._span.record_exception(error)

    def set_ok(self, message: str = "") -> None:
        # The OTel API drops descriptions on OK; keep the message as an attribute.
        self._span.set_status(Status(StatusCode.OK))
        if message:
            self._span.set_attribute("status.message", message)
        self._status_set = True

    def set_error(self, message: str) -> None:
        self._span.set_status(Status(StatusCode.ERROR, message))
        self._status_set = True

    def fail(self, error: BaseException) -> None:
        """Record ``error`` and mark the span as failed with its message."""
        self.record_error(error)
        self.set_error(str(error))

    def trace_context(self) -> TraceContext:
        return trace_context_of(self._span)

    def end(self) -> None:
        if self._ended:
            return
        self._ended = True
        self._span.end()


def trace_context_of(span: Span) -> TraceContext:
    """Canonical string forms of a span's trace-correlation identifiers."""
    ctx = span.get_span_context()
    return TraceContext(
        trace_id=trace.format_trace_id(ctx.trace_id),
        span_id=trace.format_span_id(ctx.span_id),
        trace_flags=format(int(ctx.trace_flags), "02x"),
        trace_state=ctx.trace_state.to_header() if ctx.trace_state else "",
    )


@contextmanager
def open_span(
    tracer: Tracer,
    operation_name: str,
    attributes: Mapping[str, AttributeValue] | None = None,
) -> Iterator[SpanHandle]:
    """
    Open a span, make it current for the block and end it on every exit path.

    An exception escaping the block is recorded on the span (unless the
    block already set a status) and re-raised unchanged.
    """
    span = tracer.start_span(operation_name, attributes=dict(attributes or {}))
    handle = SpanHandle(span)
    try:
        with trace.use_span(span, end_on_exit=False, record_exception=False, set_status_on_exception=False):
            yield handle
    except BaseException as e:
        if not handle.status_set:
            handle.fail(e)
        raise
    finally:
        handle.end()


def inject_trace_context(metadata: Metadata | None, handle: SpanHandle) -> Metadata:
    """Return ``metadata`` (or a fresh envelope) carrying the span's trace context."""
    envelope = metadata if metadata is not None else Metadata.new()
    return dataclasses.replace(envelope, trace_context=handle.trace_context())


def with_trace_context(payload: PayloadT, handle: SpanHandle) -> PayloadT:
    """Copy of a request payload whose metadata carries the span's trace context."""
    metadata: Any = getattr(payload, "metadata", None)
    return dataclasses.replace(payload, metadata=inject_trace_context(metadata, handle))  # type: ignore[type-var]
