"""CLI commands, each a thin instantiation of InstrumentedCommand."""

from .base import (
    InstrumentedCommand,
    Operation,
    library_session,
    render_response,
    response_field,
)
from .benchmark import new_benchmark_command
from .fake_endpoint import new_fake_endpoint_command
from .hash import new_hash_command
from .health import new_health_command
from .sign import new_sign_command

__all__ = [
    "InstrumentedCommand",
    "Operation",
    "library_session",
    "render_response",
    "response_field",
    "new_benchmark_command",
    "new_fake_endpoint_command",
    "new_hash_command",
    "new_health_command",
    "new_sign_command",
]
