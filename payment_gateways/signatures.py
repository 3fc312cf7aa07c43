"""HMAC helpers for validating gateway webhook signatures."""

import base64
import binascii
import hashlib
import hmac

from payment_gateways.exceptions import ConfigurationError
from payment_gateways.exceptions import InvalidSignatureError

DEFAULT_ALGORITHMS = ("sha256", "sha512", "md5")


def _as_bytes(value: str | bytes) -> bytes:
    return value.encode() if isinstance(value, str) else value


def _digest(payload: str | bytes, secret: str | bytes, algorithm: str) -> bytes:
    if algorithm not in hashlib.algorithms_available:
        msg = f"Unsupported signature algorithm '{algorithm}'"
        raise ConfigurationError(msg)
    return hmac.new(_as_bytes(secret), _as_bytes(payload), algorithm).digest()


def generate_signature(
    payload: str | bytes,
    secret: str | bytes,
    algorithm: str = "sha256",
) -> str:
    """Return the hex HMAC of ``payload``."""
    return _digest(payload, secret, algorithm).hex()


def verify_hmac(
    payload: str | bytes,
    signature: str,
    secret: str | bytes,
    algorithm: str = "sha256",
) -> bool:
    """
    Check ``signature`` against the HMAC of ``payload``.

    Gateways send either the hex digest or the base64-encoded raw digest, so
    both encodings are accepted. Comparison is constant-time.
    """
    if not signature:
        return False

    digest = _digest(payload, secret, algorithm)
    signature = signature.strip()
    if hmac.compare_digest(digest.hex().encode(), signature.lower().encode()):
        return True

    try:
        decoded = base64.b64decode(signature, validate=True)
    except (binascii.Error, ValueError):
        return False
    return hmac.compare_digest(digest, decoded)


def verify_webhook(
    payload: str | bytes,
    signature: str,
    secret: str | bytes,
    algorithms: tuple[str, ...] = DEFAULT_ALGORITHMS,
) -> bool:
    """Try each algorithm in turn; True if any of them matches."""
    return any(verify_hmac(payload, signature, secret, algorithm) for algorithm in algorithms)


def verify_or_fail(
    payload: str | bytes,
    signature: str,
    secret: str | bytes,
    algorithm: str = "sha256",
    gateway: str | None = None,
) -> None:
    if not verify_hmac(payload, signature, secret, algorithm):
        if gateway:
            raise InvalidSignatureError.for_gateway(gateway)
        msg = "Invalid signature"
        raise InvalidSignatureError(msg)


def extract_signature_from_header(header: str, prefix: str = "sha256=") -> str:
    """Strip a scheme prefix such as ``sha256=`` from a signature header."""
    header = header.strip()
    if prefix and header.startswith(prefix):
        return header[len(prefix) :]
    return header
