"""
Boundary to the external Crypto Broker client library.

The CLI never speaks the wire protocol itself. A client library is supplied
through a factory named by CRYPTO_BROKER_CLIENT_FACTORY ("module:callable");
the factory receives ``timeout=`` in seconds and returns an object
implementing ``CryptoBrokerLibrary``. Payloads and responses below are the
typed records exchanged across that boundary.
"""

import importlib
import os
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Protocol

from .defaults import ENV_CLIENT_FACTORY
from .errors import ConfigurationError

# RFC 3339, UTC, second precision.
CREATED_AT_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


@dataclass(frozen=True)
class TraceContext:
    """Trace-correlation identifiers of the span that issued a request."""

    trace_id: str
    span_id: str
    trace_flags: str
    trace_state: str


@dataclass(frozen=True)
class Metadata:
    """Envelope attached to every outgoing request."""

    id: str
    created_at: str
    trace_context: TraceContext | None = None

    @classmethod
    def new(cls) -> "Metadata":
        """Fresh envelope with a unique id and the current UTC time."""
        return cls(
            id=str(uuid.uuid4()),
            created_at=datetime.now(timezone.utc).strftime(CREATED_AT_FORMAT),
        )


@dataclass(frozen=True)
class HashDataPayload:
    input: bytes
    profile: str
    metadata: Metadata | None = None


@dataclass(frozen=True)
class SignCertificatePayload:
    profile: str
    csr: bytes
    ca_private_key: bytes
    ca_cert: bytes
    subject: str | None = None
    metadata: Metadata | None = None


@dataclass(frozen=True)
class HealthDataPayload:
    metadata: Metadata | None = None


@dataclass(frozen=True)
class BenchmarkDataPayload:
    metadata: Metadata | None = None


@dataclass(frozen=True)
class FakeEndpointPayload:
    metadata: Metadata | None = None


@dataclass
class HashDataResponse:
    hash_value: str
    hash_algorithm: str
    id: str = ""
    created_at: str = ""


@dataclass
class SignCertificateResponse:
    signed_certificate: str
    id: str = ""
    created_at: str = ""


@dataclass
class HealthDataResponse:
    status: str
    details: dict[str, Any] = field(default_factory=dict)


@dataclass
class BenchmarkDataResponse:
    results: list[dict[str, Any]] = field(default_factory=list)


@dataclass
class FakeEndpointResponse:
    message: str = ""


class CryptoBrokerLibrary(Protocol):
    """Connected client library. Remote calls raise on failure."""

    def hash_data(self, payload: HashDataPayload) -> Any: ...

    def sign_certificate(self, payload: SignCertificatePayload, encoding: str) -> Any: ...

    def health_data(self, payload: HealthDataPayload) -> Any: ...

    def benchmark_data(self, payload: BenchmarkDataPayload) -> Any: ...

    def fake_endpoint(self, payload: FakeEndpointPayload) -> Any: ...

    def close(self) -> None: ...


ConnectFunc = Callable[[float], CryptoBrokerLibrary]


def load_library_factory(spec: str | None = None) -> Callable[..., CryptoBrokerLibrary]:
    """
    Resolve the client library factory.

    Args:
        spec: "module:callable"; defaults to CRYPTO_BROKER_CLIENT_FACTORY.

    Raises:
        ConfigurationError: if the spec is missing, malformed or cannot be imported.
    """
    raw = (spec or os.environ.get(ENV_CLIENT_FACTORY, "")).strip()
    if not raw:
        raise ConfigurationError(
            f"{ENV_CLIENT_FACTORY} must be set to 'module:callable' returning a client library"
        )
    module_name, sep, attr_name = raw.partition(":")
    if not sep or not module_name or not attr_name:
        raise ConfigurationError(f"{ENV_CLIENT_FACTORY} must look like 'module:callable', got {raw!r}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigurationError(f"Could not import client module {module_name!r}: {e}") from e
    factory = getattr(module, attr_name, None)
    if not callable(factory):
        raise ConfigurationError(f"{raw!r} does not name a callable client factory")
    return factory


def make_connect(spec: str | None = None) -> ConnectFunc:
    """Resolve the factory once and return a connect function bound to it."""
    factory = load_library_factory(spec)

    def connect(timeout: float) -> CryptoBrokerLibrary:
        return factory(timeout=timeout)

    return connect
