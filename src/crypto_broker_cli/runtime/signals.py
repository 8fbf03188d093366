"""
SIGINT/SIGTERM handling.

The handler itself only sets the cancellation event, which never blocks and
is idempotent. The first signal also starts a background thread that shuts
the tracer provider down within a bounded deadline. The command loop notices
the event at its next iteration boundary and stops cleanly.
"""

import logging
import signal
import threading
from collections.abc import Callable
from types import FrameType

from ..defaults import TRACER_SHUTDOWN_TIMEOUT_S

logger = logging.getLogger(__name__)

DEFAULT_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class SignalListener:
    """Context manager that turns termination signals into a cancellation event."""

    def __init__(
        self,
        on_signal: Callable[[float], None] | None = None,
        shutdown_timeout: float = TRACER_SHUTDOWN_TIMEOUT_S,
        signals: tuple[signal.Signals, ...] = DEFAULT_SIGNALS,
    ):
        """
        Args:
            on_signal: Called once, off the main thread, with ``shutdown_timeout``
                (typically ``TracerProviderHandle.shutdown``).
            shutdown_timeout: Deadline in seconds handed to ``on_signal``.
            signals: Signals to listen for.
        """
        self.cancel = threading.Event()
        self._on_signal = on_signal
        self._shutdown_timeout = shutdown_timeout
        self._signals = signals
        self._previous: dict[signal.Signals, object] = {}
        self._lock = threading.Lock()
        self._worker: threading.Thread | None = None

    def __enter__(self) -> "SignalListener":
        for sig in self._signals:
            self._previous[sig] = signal.getsignal(sig)
            signal.signal(sig, self._handle)
        return self

    def __exit__(self, *exc_info: object) -> None:
        for sig, previous in self._previous.items():
            signal.signal(sig, previous)  # type: ignore[arg-type]
        self._previous.clear()

    def _handle(self, signum: int, frame: FrameType | None) -> None:
        self.trigger()

    def trigger(self) -> None:
        """Request cancellation; only the first request starts the shutdown thread."""
        self.cancel.set()
        on_signal = self._on_signal
        if on_signal is None or not self._lock.acquire(blocking=False):
            return
        self._worker = threading.Thread(
            target=self._shutdown, args=(on_signal,), name="signal-shutdown", daemon=True
        )
        self._worker.start()

    def _shutdown(self, on_signal: Callable[[float], None]) -> None:
        logger.info("Received signal, shutting down tracer provider")
        try:
            on_signal(self._shutdown_timeout)
        except Exception as e:
            logger.error("Failed to shutdown tracer provider: %s", e)

    def join(self, timeout: float | None = None) -> None:
        """Wait for the shutdown thread, if one was started."""
        if self._worker is not None:
            self._worker.join(timeout)
