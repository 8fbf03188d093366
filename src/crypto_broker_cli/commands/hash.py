"""hash: send a hashing request for a byte string."""

from typing import Any

from ..client import CryptoBrokerLibrary, HashDataPayload, Metadata
from ..defaults import DEFAULT_PROFILE
from ..telemetry import attributes as attrs
from ..telemetry.provider import TracerProviderHandle
from .base import Attributes, InstrumentedCommand, Operation, response_field


def _call(library: CryptoBrokerLibrary, payload: HashDataPayload) -> Any:
    return library.hash_data(payload)


def _request_attributes(payload: HashDataPayload) -> Attributes:
    return {
        attrs.CRYPTO_PROFILE: payload.profile,
        attrs.CRYPTO_INPUT_SIZE: len(payload.input),
    }


def _response_attributes(response: Any, rendered: str) -> Attributes:
    return {
        attrs.CRYPTO_HASH_ALGORITHM: str(response_field(response, "hash_algorithm")),
        attrs.CRYPTO_HASH_OUTPUT_SIZE: len(response_field(response, "hash_value")),
    }


def new_hash_command(
    tracer_provider: TracerProviderHandle,
    data: bytes,
    profile: str = DEFAULT_PROFILE,
) -> InstrumentedCommand[HashDataPayload]:
    """
    Build the hash command.

    The request and its metadata envelope are created once; every iteration
    reuses the envelope id and only refreshes its trace context.
    """
    payload = HashDataPayload(input=data, profile=profile, metadata=Metadata.new())
    operation = Operation(
        name="Hash",
        call=_call,
        success_message="Hash operation completed successfully",
        response_label="Hashed response",
        timing_label="Data Hashing",
        request_attributes=_request_attributes,
        response_attributes=_response_attributes,
        banner=f'Hashing "{data.decode("utf-8", errors="replace")}" using {profile} profile',
    )
    return InstrumentedCommand(operation, lambda: payload, tracer_provider)
