"""
Command-line interface for the Crypto Broker CLI.

Provides commands for:
- Hashing a byte string
- Signing a certificate from CSR / CA files
- Health checks (with startup retry) and server-side benchmarks
- Calling the fake endpoint for trace round-trip checks

Every command runs once by default, or repeatedly with --loop DELAY_MS until
SIGINT/SIGTERM, and is traced through the OpenTelemetry provider configured
from OTEL_* environment variables.
"""

import argparse
import logging
import sys
from datetime import datetime

from . import __version__
from .client import ConnectFunc, make_connect
from .commands import (
    InstrumentedCommand,
    new_benchmark_command,
    new_fake_endpoint_command,
    new_hash_command,
    new_health_command,
    new_sign_command,
)
from .config import CliSettings, load_settings
from .defaults import (
    DEFAULT_PROFILE,
    ENCODING_PEM,
    MAX_LOOP_DELAY_MS,
    MIN_LOOP_DELAY_MS,
    NO_LOOP_DELAY_MS,
    SUPPORTED_ENCODINGS,
    TRACER_SHUTDOWN_TIMEOUT_S,
)
from .errors import CancellationSignal, ConfigurationError
from .runtime import LoopSpec, RetryingConnector, RetryPolicy, SignalListener, is_valid_loop_flag
from .telemetry import TracerProviderHandle, new_tracer_provider_handle

logger = logging.getLogger(__name__)

CLIENT_LOGGER_NAME = "crypto_broker_cli.client"


class _ClientFormatter(logging.Formatter):
    """Operator output: "CLIENT: 2024/01/02 15:04:05.000000 message"."""

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        return datetime.fromtimestamp(record.created).strftime("%Y/%m/%d %H:%M:%S.%f")


def configure_logging(level: str = "INFO") -> None:
    """Diagnostics to stderr; operator output through the client logger to stdout."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_ClientFormatter("CLIENT: %(asctime)s %(message)s"))
    client_logger = logging.getLogger(CLIENT_LOGGER_NAME)
    client_logger.handlers = [handler]
    client_logger.setLevel(logging.INFO)
    client_logger.propagate = False


def _loop_flag(value: str) -> int:
    try:
        delay = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid loop value: {value!r}") from None
    if not is_valid_loop_flag(delay):
        raise argparse.ArgumentTypeError(
            f"loop delay must be between {MIN_LOOP_DELAY_MS} and {MAX_LOOP_DELAY_MS} ms"
        )
    return delay


def _add_global_options(parser: argparse.ArgumentParser, suppress: bool = False) -> None:
    """Global options; subcommand copies use SUPPRESS so they never override earlier values."""

    def option(flag: str, default: str | None, help_text: str, **kwargs) -> None:
        parser.add_argument(
            flag,
            default=argparse.SUPPRESS if suppress else default,
            help=argparse.SUPPRESS if suppress else help_text,
            **kwargs,
        )

    option("--service-name", "", "Service name for traces (default: OTEL_SERVICE_NAME)", type=str)
    option(
        "--service-version",
        "",
        "Service version for traces (default: OTEL_SERVICE_VERSION)",
        type=str,
    )
    option("--config", None, "Path to YAML settings file (default: CRYPTO_BROKER_CLI_CONFIG)", type=str)
    option(
        "--log-level",
        "INFO",
        "Diagnostic log level (default: INFO)",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )


def _add_loop_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--loop",
        type=_loop_flag,
        default=NO_LOOP_DELAY_MS,
        help=f"Specify delay for loop in milliseconds ({MIN_LOOP_DELAY_MS}-{MAX_LOOP_DELAY_MS})",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="crypto-broker-cli",
        description="Instrumented command-line client for the Crypto Broker",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Hash a string once
  crypto-broker-cli hash "hello world" --profile Default

  # Sign a CSR every 500ms until Ctrl-C
  crypto-broker-cli sign --csr req.csr --caCert ca.pem --caKey ca.key --loop 500

  # Health check, waiting for the server to come up
  crypto-broker-cli health

  # Export traces to a collector
  OTEL_TRACES_EXPORTER=otlp OTEL_EXPORTER_OTLP_ENDPOINT=localhost:4317 crypto-broker-cli benchmark
        """,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    _add_global_options(parser)

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    hash_parser = subparsers.add_parser("hash", help="Send hashing request to crypto broker")
    _add_global_options(hash_parser, suppress=True)
    hash_parser.add_argument("input", type=str, help="Bytes to be hashed")
    hash_parser.add_argument(
        "--profile", type=str, default=DEFAULT_PROFILE, help="Specify profile to be used"
    )
    _add_loop_option(hash_parser)

    sign_parser = subparsers.add_parser(
        "sign", help="Send certificate signing request to crypto broker"
    )
    _add_global_options(sign_parser, suppress=True)
    sign_parser.add_argument(
        "--profile", type=str, default=DEFAULT_PROFILE, help="Specify profile to be used"
    )
    sign_parser.add_argument(
        "--encoding",
        type=str.lower,
        choices=SUPPORTED_ENCODINGS,
        default=ENCODING_PEM,
        help=f"Specify encoding to be used ({', '.join(SUPPORTED_ENCODINGS)})",
    )
    sign_parser.add_argument(
        "--subject",
        type=str,
        default="",
        help="Specify custom subject to be used for certificate generation",
    )
    sign_parser.add_argument(
        "--csr", dest="csr", type=str, required=True, help="Specify relative path to CSR file"
    )
    sign_parser.add_argument(
        "--caCert",
        dest="ca_cert",
        type=str,
        required=True,
        help="Specify relative path to CA certificate file",
    )
    sign_parser.add_argument(
        "--caKey",
        dest="ca_key",
        type=str,
        required=True,
        help="Specify relative path to signing key file",
    )
    _add_loop_option(sign_parser)

    health_parser = subparsers.add_parser("health", help="Health check the broker server status")
    _add_global_options(health_parser, suppress=True)
    _add_loop_option(health_parser)

    benchmark_parser = subparsers.add_parser(
        "benchmark", help="Run server-side cryptographic benchmarks"
    )
    _add_global_options(benchmark_parser, suppress=True)
    _add_loop_option(benchmark_parser)

    fake_parser = subparsers.add_parser(
        "fake-endpoint", help="Send fake endpoint request to crypto broker"
    )
    _add_global_options(fake_parser, suppress=True)
    _add_loop_option(fake_parser)

    return parser


def build_command(
    args: argparse.Namespace,
    tracer_provider: TracerProviderHandle,
    settings: CliSettings,
) -> tuple[InstrumentedCommand, RetryPolicy]:
    """Instantiate the selected command and the connection policy it uses."""
    single = RetryPolicy.single(settings.health_retry.attempt_timeout)
    if args.command == "hash":
        return new_hash_command(tracer_provider, args.input.encode("utf-8"), args.profile), single
    if args.command == "sign":
        command = new_sign_command(
            tracer_provider,
            args.csr,
            args.ca_cert,
            args.ca_key,
            profile=args.profile,
            encoding=args.encoding,
            subject=args.subject,
        )
        return command, single
    if args.command == "health":
        return new_health_command(tracer_provider), settings.health_retry
    if args.command == "benchmark":
        return new_benchmark_command(tracer_provider), single
    if args.command == "fake-endpoint":
        return new_fake_endpoint_command(tracer_provider), single
    raise ValueError(f"Unknown command: {args.command}")


def _shutdown_tracer(tracer_provider: TracerProviderHandle) -> None:
    try:
        tracer_provider.shutdown(TRACER_SHUTDOWN_TIMEOUT_S)
    except Exception as e:
        logger.error("Failed to shutdown tracer provider: %s", e)


def run_command(args: argparse.Namespace, connect: ConnectFunc | None = None) -> int:
    """
    Run the selected command and return the process exit code.

    Args:
        args: Parsed arguments.
        connect: Connect function ``(timeout) -> library``; defaults to the
            factory named by CRYPTO_BROKER_CLIENT_FACTORY.
    """
    try:
        settings = load_settings(args.config)
    except ConfigurationError as e:
        logger.error("Failed to load settings: %s", e)
        return 1

    try:
        tracer_provider = new_tracer_provider_handle(
            args.service_name,
            args.service_version,
            resource_attributes=settings.resource_attributes,
        )
    except ConfigurationError as e:
        logger.error("Failed to initialize tracer provider: %s", e)
        return 1

    with SignalListener(on_signal=tracer_provider.shutdown) as listener:
        try:
            command, policy = build_command(args, tracer_provider, settings)
            connector = RetryingConnector(
                connect or make_connect(), policy, cancel=listener.cancel
            )
            command.run(connector, LoopSpec.from_delay(args.loop), cancel=listener.cancel)
        except CancellationSignal as e:
            logger.info("%s", e)
            return 0
        except Exception as e:
            logger.error("Failed to run %s command: %s", args.command, e)
            return 1
        finally:
            _shutdown_tracer(tracer_provider)
            listener.join(TRACER_SHUTDOWN_TIMEOUT_S)
    return 0


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    configure_logging(args.log_level)
    sys.exit(run_command(args))


if __name__ == "__main__":
    main()
