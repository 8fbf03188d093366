"""
Fixed defaults shared by the CLI, the runtime loop and the tracing layer.

OpenTelemetry variable names follow the OTel SDK environment specification;
the service identity defaults apply only when neither a CLI flag nor the
environment provides one.
"""

# Loop flag: delay in milliseconds between iterations, or the sentinel for single shot.
MIN_LOOP_DELAY_MS = 1
MAX_LOOP_DELAY_MS = 1000
NO_LOOP_DELAY_MS = -1000001

# Health check connection retry (reference policy).
MAX_HEALTH_RETRY_ATTEMPTS = 60
HEALTH_ATTEMPT_TIMEOUT_MS = 2000
HEALTH_RETRY_DELAY_MS = 1000

# Seconds allowed for flushing spans when the tracer provider shuts down.
TRACER_SHUTDOWN_TIMEOUT_S = 5.0

ENCODING_PEM = "pem"
ENCODING_B64 = "b64"
SUPPORTED_ENCODINGS = (ENCODING_PEM, ENCODING_B64)

DEFAULT_PROFILE = "Default"

# Service identity
DEFAULT_SERVICE_NAME = "crypto-broker-cli"
DEFAULT_SERVICE_VERSION = "unknown service version"
SERVICE_NAMESPACE = "crypto-broker"
TRACER_NAME = "crypto-broker-cli"

# Environment variables
ENV_TRACES_EXPORTER = "OTEL_TRACES_EXPORTER"
ENV_EXPORTER_OTLP_ENDPOINT = "OTEL_EXPORTER_OTLP_ENDPOINT"
ENV_EXPORTER_OTLP_PROTOCOL = "OTEL_EXPORTER_OTLP_PROTOCOL"
ENV_TRACES_SAMPLER = "OTEL_TRACES_SAMPLER"
ENV_TRACES_SAMPLER_ARG = "OTEL_TRACES_SAMPLER_ARG"
ENV_SERVICE_NAME = "OTEL_SERVICE_NAME"
ENV_SERVICE_VERSION = "OTEL_SERVICE_VERSION"
ENV_CLIENT_FACTORY = "CRYPTO_BROKER_CLIENT_FACTORY"
ENV_CLI_CONFIG = "CRYPTO_BROKER_CLI_CONFIG"

DEFAULT_TRACES_EXPORTER = "console"
DEFAULT_TRACES_SAMPLER = "always_on"
DEFAULT_OTLP_PROTOCOL = "grpc"
