"""
Bounded-retry connection establishment.

Used at startup for commands (the health probe) that should wait for a
server that is still coming up instead of failing on the first refusal.
"""

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from ..errors import BrokerConnectionError, CancellationSignal

logger = logging.getLogger(__name__)

ConnT = TypeVar("ConnT")


@dataclass(frozen=True)
class RetryPolicy:
    """Fixed retry configuration; times are in seconds."""

    max_attempts: int
    attempt_timeout: float
    retry_delay: float

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.attempt_timeout <= 0:
            raise ValueError("attempt_timeout must be positive")
        if self.retry_delay < 0:
            raise ValueError("retry_delay must not be negative")

    @classmethod
    def single(cls, attempt_timeout: float) -> "RetryPolicy":
        """One attempt, no retry."""
        return cls(max_attempts=1, attempt_timeout=attempt_timeout, retry_delay=0.0)


class RetryingConnector(Generic[ConnT]):
    """Calls ``connect(timeout)`` until it succeeds or the policy is exhausted."""

    def __init__(
        self,
        connect: Callable[[float], ConnT],
        policy: RetryPolicy,
        sleep: Callable[[float], None] = time.sleep,
        cancel: threading.Event | None = None,
    ):
        self._connect = connect
        self.policy = policy
        self._sleep = sleep
        self._cancel = cancel
        self.attempts = 0

    def connect(self) -> ConnT:
        """
        Establish the connection.

        Raises:
            BrokerConnectionError: every attempt failed; chained to the last failure.
            CancellationSignal: cancellation was requested between attempts; the
                first attempt always runs.
        """
        total = self.policy.max_attempts
        last_error: Exception | None = None
        for attempt in range(1, total + 1):
            self.attempts = attempt
            try:
                return self._connect(self.policy.attempt_timeout)
            except Exception as e:
                last_error = e
                if attempt < total:
                    logger.warning(
                        "Connection attempt %d/%d failed: %s; retrying in %.1fs",
                        attempt,
                        total,
                        e,
                        self.policy.retry_delay,
                    )
                    self._sleep(self.policy.retry_delay)
                    if self._cancel is not None and self._cancel.is_set():
                        raise CancellationSignal(
                            f"connection cancelled after attempt {attempt}/{total}"
                        ) from e

        raise BrokerConnectionError(
            f"failed to connect after {total} attempt(s): {last_error}", attempts=total
        ) from last_error
