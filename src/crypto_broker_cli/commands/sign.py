"""sign: send a certificate signing request built from CSR, CA certificate and CA key files."""

from pathlib import Path
from typing import Any

from ..client import CryptoBrokerLibrary, SignCertificatePayload
from ..defaults import DEFAULT_PROFILE, ENCODING_B64, ENCODING_PEM
from ..telemetry import attributes as attrs
from ..telemetry.provider import TracerProviderHandle
from .base import Attributes, InstrumentedCommand, Operation, response_field


def read_file_bytes(path: str | Path, role: str) -> bytes:
    """Read a whole file; failures name the file's role."""
    try:
        return Path(path).read_bytes()
    except OSError as e:
        raise OSError(f"could not read {role} file {path}: {e}") from e


def _request_attributes(payload: SignCertificatePayload) -> Attributes:
    return {
        attrs.CRYPTO_PROFILE: payload.profile,
        attrs.CRYPTO_CSR_SIZE: len(payload.csr),
        attrs.CRYPTO_CA_CERT_SIZE: len(payload.ca_cert),
        attrs.CRYPTO_CA_KEY_SIZE: len(payload.ca_private_key),
    }


def _response_attributes(response: Any, rendered: str) -> Attributes:
    return {attrs.CRYPTO_SIGNED_CERT_SIZE: len(response_field(response, "signed_certificate"))}


def new_sign_command(
    tracer_provider: TracerProviderHandle,
    csr_path: str | Path,
    ca_cert_path: str | Path,
    ca_key_path: str | Path,
    profile: str = DEFAULT_PROFILE,
    encoding: str = ENCODING_PEM,
    subject: str | None = None,
) -> InstrumentedCommand[SignCertificatePayload]:
    """
    Build the sign command. Files are read here, before any connection is made.

    Raises:
        OSError: one of the three files could not be read.
    """
    payload = SignCertificatePayload(
        profile=profile,
        csr=read_file_bytes(csr_path, "certificate signing request"),
        ca_cert=read_file_bytes(ca_cert_path, "CA certificate"),
        ca_private_key=read_file_bytes(ca_key_path, "signing key"),
        subject=subject or None,
    )
    wire_encoding = ENCODING_B64 if encoding.lower() == ENCODING_B64 else ENCODING_PEM

    def call(library: CryptoBrokerLibrary, request: SignCertificatePayload) -> Any:
        return library.sign_certificate(request, wire_encoding)

    operation = Operation(
        name="Sign",
        call=call,
        success_message="Certificate signing completed successfully",
        response_label="Sign Response",
        timing_label="Certificate Signing",
        request_attributes=_request_attributes,
        response_attributes=_response_attributes,
    )
    return InstrumentedCommand(operation, lambda: payload, tracer_provider)
