"""
Command loop: run a unit of work once, or repeatedly at a fixed delay until cancelled.

The loop is non-preemptive. Cancellation is checked only at iteration
boundaries, so a unit of work that has started always runs to completion.
The delay is measured from the end of one call to the start of the next.
"""

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from ..defaults import MAX_LOOP_DELAY_MS, MIN_LOOP_DELAY_MS, NO_LOOP_DELAY_MS

logger = logging.getLogger(__name__)
client_logger = logging.getLogger("crypto_broker_cli.client")

Work = Callable[[], None]


@dataclass(frozen=True)
class LoopSpec:
    """Single shot (``delay_ms is None``) or a fixed delay between iterations."""

    delay_ms: int | None = None

    @property
    def is_single_shot(self) -> bool:
        return self.delay_ms is None

    @property
    def delay_seconds(self) -> float:
        return (self.delay_ms or 0) / 1000.0

    @classmethod
    def single_shot(cls) -> "LoopSpec":
        return cls(None)

    @classmethod
    def interval(cls, delay_ms: int) -> "LoopSpec":
        if not is_loop_delay_in_range(delay_ms):
            raise ValueError(
                f"loop delay must be between {MIN_LOOP_DELAY_MS} and {MAX_LOOP_DELAY_MS} ms, got {delay_ms}"
            )
        return cls(delay_ms)

    @classmethod
    def from_delay(cls, delay_ms: int) -> "LoopSpec":
        """Map a --loop value: in-range delays loop, the sentinel and anything else run once."""
        if is_loop_delay_in_range(delay_ms):
            return cls(delay_ms)
        return cls.single_shot()


def is_loop_delay_in_range(delay_ms: int) -> bool:
    return MIN_LOOP_DELAY_MS <= delay_ms <= MAX_LOOP_DELAY_MS


def is_valid_loop_flag(value: int) -> bool:
    """Values accepted on the command line: the single-shot sentinel or an in-range delay."""
    return value == NO_LOOP_DELAY_MS or is_loop_delay_in_range(value)


class RunnerState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED_CLEAN = "stopped_clean"
    STOPPED_ERROR = "stopped_error"


class CommandRunner:
    """Drives one command's unit of work according to a LoopSpec."""

    def __init__(self, sleep: Callable[[float], None] = time.sleep):
        self._sleep = sleep
        self.state = RunnerState.IDLE
        self.iterations = 0

    def run(self, work: Work, loop: LoopSpec, cancel: threading.Event | None = None) -> None:
        """
        Execute ``work`` once or until ``cancel`` is set.

        Exceptions from ``work`` stop the loop immediately and propagate
        unchanged; they are never retried here. A pending cancellation
        ends the loop cleanly before the next call. Single-shot runs ignore
        ``cancel`` entirely.
        """
        if self.state is not RunnerState.IDLE:
            raise RuntimeError(f"CommandRunner already used (state={self.state.value})")
        self.state = RunnerState.RUNNING
        try:
            if loop.is_single_shot:
                self._call(work)
            else:
                self._loop(work, loop.delay_seconds, cancel)
        except BaseException:
            self.state = RunnerState.STOPPED_ERROR
            raise
        self.state = RunnerState.STOPPED_CLEAN

    def _call(self, work: Work) -> None:
        self.iterations += 1
        work()

    def _loop(self, work: Work, delay: float, cancel: threading.Event | None) -> None:
        while True:
            if cancel is not None and cancel.is_set():
                client_logger.info("Received termination signal")
                logger.debug("Loop cancelled after %d iteration(s)", self.iterations)
                return
            self._call(work)
            self._sleep(delay)
