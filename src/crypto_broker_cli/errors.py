"""Exception taxonomy for the CLI core."""


class CryptoBrokerCliError(Exception):
    """Base class for errors raised by the CLI core."""


class ConfigurationError(CryptoBrokerCliError):
    """Invalid or missing exporter, sampler, settings or client factory configuration."""


class BrokerConnectionError(CryptoBrokerCliError):
    """The remote service could not be reached."""

    def __init__(self, message: str, attempts: int = 1):
        super().__init__(message)
        self.attempts = attempts


class RequestError(CryptoBrokerCliError):
    """A remote call failed. Raised by client library implementations."""


class SerializationError(CryptoBrokerCliError):
    """A response could not be rendered for display."""


class TracerShutdownError(CryptoBrokerCliError):
    """Spans could not be flushed before the shutdown deadline."""


class CancellationSignal(CryptoBrokerCliError):
    """
    Cancellation observed while establishing the connection.

    Not a failure: callers treat it as a clean, successful early stop.
    """
