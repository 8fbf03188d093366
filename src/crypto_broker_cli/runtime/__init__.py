"""Command execution runtime: loop control, startup retry and signal handling."""

from .connector import RetryingConnector, RetryPolicy
from .runner import CommandRunner, LoopSpec, RunnerState, is_valid_loop_flag
from .signals import SignalListener

__all__ = [
    "CommandRunner",
    "LoopSpec",
    "RunnerState",
    "RetryPolicy",
    "RetryingConnector",
    "SignalListener",
    "is_valid_loop_flag",
]
