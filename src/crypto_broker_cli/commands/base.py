"""
Generic instrumented command.

Every CLI command is the same shape: build a request, open a span, inject
the trace context into the request metadata, call the remote library,
render the response, record attributes and status. Concrete commands only
supply an ``Operation`` describing what differs.
"""

import base64
import dataclasses
import json
import logging
import threading
import time
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from opentelemetry.util.types import AttributeValue

from ..client import CryptoBrokerLibrary
from ..defaults import TRACER_NAME
from ..errors import SerializationError
from ..runtime.connector import RetryingConnector
from ..runtime.runner import CommandRunner, LoopSpec
from ..telemetry import attributes as attrs
from ..telemetry.provider import TracerProviderHandle
from ..telemetry.spans import open_span, with_trace_context

logger = logging.getLogger(__name__)
client_logger = logging.getLogger("crypto_broker_cli.client")

PayloadT = TypeVar("PayloadT")
Attributes = Mapping[str, AttributeValue]


def _no_attributes(*_: Any) -> Attributes:
    return {}


@dataclass(frozen=True)
class Operation(Generic[PayloadT]):
    """What distinguishes one command from another."""

    name: str
    call: Callable[[CryptoBrokerLibrary, PayloadT], Any]
    success_message: str
    response_label: str
    timing_label: str
    request_attributes: Callable[[PayloadT], Attributes] = _no_attributes
    response_attributes: Callable[[Any, str], Attributes] = _no_attributes
    banner: str | None = None

    @property
    def span_name(self) -> str:
        return f"CLI.{self.name}"


def response_field(response: Any, key: str) -> Any:
    """Read a response field from either a record or a mapping."""
    if isinstance(response, Mapping):
        return response[key]
    return getattr(response, key)


def _json_default(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def render_response(response: Any) -> str:
    """Render a response record as indented JSON for the operator."""
    try:
        return json.dumps(response, indent=2, default=_json_default)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"could not render response: {e}") from e


@contextmanager
def library_session(library: CryptoBrokerLibrary) -> Iterator[CryptoBrokerLibrary]:
    """Hold the connected library for the block and always close it afterwards."""
    try:
        yield library
    finally:
        client_logger.info("Closing crypto broker library connection")
        try:
            library.close()
        except Exception as e:
            logger.warning("Failed to close crypto broker library connection: %s", e)


class InstrumentedCommand(Generic[PayloadT]):
    """One CLI command: a traced remote call, run through CommandRunner."""

    def __init__(
        self,
        operation: Operation[PayloadT],
        build_request: Callable[[], PayloadT],
        tracer_provider: TracerProviderHandle,
        clock: Callable[[], float] = time.perf_counter,
    ):
        self.operation = operation
        self.build_request = build_request
        self.tracer_provider = tracer_provider
        self._clock = clock

    def execute(self, library: CryptoBrokerLibrary) -> None:
        """
        Perform one traced request.

        A failed call or an unrenderable response is recorded on the span
        and re-raised unchanged.
        """
        op = self.operation
        payload = self.build_request()
        tracer = self.tracer_provider.get_tracer(TRACER_NAME)
        initial = {attrs.RPC_METHOD: op.name, **op.request_attributes(payload)}

        with open_span(tracer, op.span_name, initial) as span:
            payload = with_trace_context(payload, span)
            started = self._clock()
            try:
                response = op.call(library, payload)
                elapsed = self._clock() - started
                rendered = render_response(response)
            except Exception as e:
                span.fail(e)
                raise
            span.set_attributes(op.response_attributes(response, rendered))
            span.set_ok(op.success_message)

        client_logger.info("%s:\n%s", op.response_label, rendered)
        client_logger.info("%s took: %fµs", op.timing_label, elapsed * 1_000_000)

    def run(
        self,
        connector: RetryingConnector[CryptoBrokerLibrary],
        loop: LoopSpec,
        cancel: threading.Event | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Connect, then drive ``execute`` through CommandRunner; the library is always closed."""
        library = connector.connect()
        with library_session(library):
            if self.operation.banner:
                client_logger.info(self.operation.banner)
            CommandRunner(sleep=sleep).run(lambda: self.execute(library), loop, cancel)
