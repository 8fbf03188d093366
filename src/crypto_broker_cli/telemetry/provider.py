"""
Tracer provider construction and lifecycle.

The provider is configured from the standard OTEL_* environment variables:

  OTEL_TRACES_EXPORTER          comma-separated sinks: otlp, console (default: console)
  OTEL_EXPORTER_OTLP_ENDPOINT   required when otlp is selected
  OTEL_EXPORTER_OTLP_PROTOCOL   grpc (default) or http/protobuf
  OTEL_TRACES_SAMPLER           always_on, always_off, traceidratio, parentbased_*
  OTEL_TRACES_SAMPLER_ARG       ratio for the ratio-based samplers
  OTEL_SERVICE_NAME / OTEL_SERVICE_VERSION

When no recognized exporter is selected the handle wraps a provider with no
span processors: tracers still hand out working spans, nothing is exported.

The handle built at the composition root is passed explicitly to every
command. Registering it as the global OpenTelemetry provider is only for
libraries that look up the ambient tracer provider themselves.
"""

import logging
import os
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from opentelemetry import trace
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, SpanExporter
from opentelemetry.trace import Tracer

from ..defaults import (
    DEFAULT_OTLP_PROTOCOL,
    DEFAULT_SERVICE_NAME,
    DEFAULT_SERVICE_VERSION,
    DEFAULT_TRACES_EXPORTER,
    DEFAULT_TRACES_SAMPLER,
    ENV_EXPORTER_OTLP_ENDPOINT,
    ENV_EXPORTER_OTLP_PROTOCOL,
    ENV_SERVICE_NAME,
    ENV_SERVICE_VERSION,
    ENV_TRACES_EXPORTER,
    ENV_TRACES_SAMPLER,
    ENV_TRACES_SAMPLER_ARG,
    SERVICE_NAMESPACE,
    TRACER_SHUTDOWN_TIMEOUT_S,
)
from ..errors import ConfigurationError, TracerShutdownError
from ..exporters import create_console_exporter, create_otlp_trace_exporter
from .sampling import RATIO_KINDS, normalize_sampler_kind, parse_sampler_ratio, resolve_sampler

logger = logging.getLogger(__name__)

EXPORTER_OTLP = "otlp"
EXPORTER_CONSOLE = "console"
RECOGNIZED_EXPORTERS = (EXPORTER_OTLP, EXPORTER_CONSOLE)


def parse_exporter_kinds(raw: str | None) -> list[str]:
    """Split a comma-separated exporter list, keeping recognized kinds in order without duplicates."""
    kinds: list[str] = []
    for part in (raw or "").split(","):
        kind = part.strip().lower()
        if kind in RECOGNIZED_EXPORTERS and kind not in kinds:
            kinds.append(kind)
    return kinds


def _resolve(explicit: str, env_name: str, default: str) -> str:
    if explicit:
        return explicit
    return os.environ.get(env_name, "").strip() or default


@dataclass(frozen=True)
class TracerConfig:
    """Resolved tracing configuration."""

    service_name: str
    service_version: str
    exporter_kinds: list[str] = field(default_factory=list)
    sampler_kind: str = DEFAULT_TRACES_SAMPLER
    sampler_ratio: float = 1.0
    otlp_endpoint: str = ""
    otlp_protocol: str = DEFAULT_OTLP_PROTOCOL
    requested_exporters: str = ""

    @classmethod
    def from_env(cls, service_name: str = "", service_version: str = "") -> "TracerConfig":
        """
        Build configuration from explicit values and the environment.

        Empty service_name / service_version mean "consult the environment,
        then the built-in default".

        Raises:
            ConfigurationError: otlp is selected but OTEL_EXPORTER_OTLP_ENDPOINT is unset.
        """
        requested = os.environ.get(ENV_TRACES_EXPORTER, "").strip() or DEFAULT_TRACES_EXPORTER
        kinds = parse_exporter_kinds(requested)
        endpoint = os.environ.get(ENV_EXPORTER_OTLP_ENDPOINT, "").strip()
        if EXPORTER_OTLP in kinds and not endpoint:
            raise ConfigurationError(f"{ENV_EXPORTER_OTLP_ENDPOINT} is not set")

        sampler_kind = normalize_sampler_kind(os.environ.get(ENV_TRACES_SAMPLER))
        ratio = 1.0
        if sampler_kind in RATIO_KINDS:
            ratio = parse_sampler_ratio(os.environ.get(ENV_TRACES_SAMPLER_ARG))

        return cls(
            service_name=_resolve(service_name, ENV_SERVICE_NAME, DEFAULT_SERVICE_NAME),
            service_version=_resolve(service_version, ENV_SERVICE_VERSION, DEFAULT_SERVICE_VERSION),
            exporter_kinds=kinds,
            sampler_kind=sampler_kind,
            sampler_ratio=ratio,
            otlp_endpoint=endpoint,
            otlp_protocol=os.environ.get(ENV_EXPORTER_OTLP_PROTOCOL, "").strip()
            or DEFAULT_OTLP_PROTOCOL,
            requested_exporters=requested,
        )


class TracerProviderHandle:
    """Owns the SDK tracer provider and its exporters; shuts down at most once."""

    def __init__(self, provider: TracerProvider, config: TracerConfig | None = None):
        self._provider = provider
        self.config = config
        self._lock = threading.Lock()
        self._shut_down = False

    @property
    def provider(self) -> TracerProvider:
        return self._provider

    @property
    def is_shut_down(self) -> bool:
        return self._shut_down

    def get_tracer(self, name: str) -> Tracer:
        return self._provider.get_tracer(name)

    def shutdown(self, timeout: float = TRACER_SHUTDOWN_TIMEOUT_S) -> None:
        """
        Flush and close exporters within ``timeout`` seconds.

        Only the first call does any work; later calls return immediately.

        Raises:
            TracerShutdownError: spans were not flushed, or exporters did not
                close, before the deadline.
        """
        with self._lock:
            if self._shut_down:
                return
            self._shut_down = True

        deadline = time.monotonic() + timeout
        flushed = self._provider.force_flush(timeout_millis=int(timeout * 1000))
        worker = threading.Thread(
            target=self._provider.shutdown, name="tracer-provider-shutdown", daemon=True
        )
        worker.start()
        worker.join(max(0.0, deadline - time.monotonic()))
        if not flushed or worker.is_alive():
            raise TracerShutdownError(f"tracer provider did not shut down within {timeout:.1f}s")


ExporterFactory = Callable[[TracerConfig], SpanExporter]


def _otlp_exporter(config: TracerConfig) -> SpanExporter:
    return create_otlp_trace_exporter(config.otlp_endpoint, protocol=config.otlp_protocol)


def _console_exporter(config: TracerConfig) -> SpanExporter:
    return create_console_exporter()


class TracerProviderFactory:
    """Builds tracer provider handles from a TracerConfig."""

    def __init__(self, exporter_factories: dict[str, ExporterFactory] | None = None):
        self.exporter_factories: dict[str, ExporterFactory] = {
            EXPORTER_OTLP: _otlp_exporter,
            EXPORTER_CONSOLE: _console_exporter,
        }
        if exporter_factories:
            self.exporter_factories.update(exporter_factories)

    def build(
        self,
        config: TracerConfig,
        resource_attributes: dict[str, str] | None = None,
    ) -> TracerProviderHandle:
        """Construct exporters, resource and sampler and return an unregistered handle."""
        if EXPORTER_OTLP in config.exporter_kinds and not config.otlp_endpoint:
            raise ConfigurationError(f"{ENV_EXPORTER_OTLP_ENDPOINT} is not set")

        exporters: list[SpanExporter] = []
        for kind in config.exporter_kinds:
            factory = self.exporter_factories.get(kind)
            if factory is None:
                continue
            exporters.append(factory(config))
            if kind == EXPORTER_OTLP:
                logger.info("OTLP exporter configured (endpoint=%s)", config.otlp_endpoint)
            else:
                logger.info("%s exporter configured", kind.capitalize())

        if not exporters:
            logger.info(
                "No valid exporters configured, using no-op tracer provider (requested_exporters=%s)",
                config.requested_exporters,
            )
            return TracerProviderHandle(TracerProvider(shutdown_on_exit=False), config)

        attrs: dict[str, str] = dict(resource_attributes or {})
        attrs.update(
            {
                SERVICE_NAME: config.service_name,
                SERVICE_VERSION: config.service_version,
                "service.namespace": SERVICE_NAMESPACE,
            }
        )
        provider = TracerProvider(
            resource=Resource.create(attrs),
            sampler=resolve_sampler(config.sampler_kind, config.sampler_ratio),
            shutdown_on_exit=False,
        )
        for exporter in exporters:
            provider.add_span_processor(BatchSpanProcessor(exporter))

        logger.info(
            "OpenTelemetry tracer provider initialized (service_name=%s, service_version=%s, "
            "exporters=%s, sampler=%s)",
            config.service_name,
            config.service_version,
            config.requested_exporters,
            config.sampler_kind,
        )
        return TracerProviderHandle(provider, config)


def new_tracer_provider_handle(
    service_name: str = "",
    service_version: str = "",
    resource_attributes: dict[str, str] | None = None,
    register_global: bool = True,
    factory: TracerProviderFactory | None = None,
) -> TracerProviderHandle:
    """
    Build a tracer provider handle from the environment.

    Args:
        service_name: Explicit service name; empty consults OTEL_SERVICE_NAME.
        service_version: Explicit version; empty consults OTEL_SERVICE_VERSION.
        resource_attributes: Extra resource attributes (service identity always wins).
        register_global: Also install the provider as the process-wide default.
        factory: Factory to build with (tests inject exporter factories here).

    Raises:
        ConfigurationError: before any exporter is built, when configuration is invalid.
    """
    config = TracerConfig.from_env(service_name, service_version)
    handle = (factory or TracerProviderFactory()).build(config, resource_attributes)
    if register_global:
        trace.set_tracer_provider(handle.provider)
    return handle
