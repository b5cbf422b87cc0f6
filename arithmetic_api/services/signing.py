"""HMAC request signing.

A request is signed with ``HMAC-SHA256(secret_key, f"{api_key}:{timestamp}")``
hex-encoded, where ``timestamp`` is Unix seconds. The server accepts a
timestamp within ``max_age`` seconds of its own clock in either direction.
"""

import hashlib
import hmac
import time

from arithmetic_api.errors import (
    BadSignatureError,
    ExpiredRequestError,
    MissingCredentialsError,
)

DEFAULT_MAX_AGE_SECONDS = 3600


def compute_signature(secret_key: str, api_key: str, timestamp: int | str) -> str:
    """Compute the hex HMAC-SHA256 signature for an API key and timestamp.

    Args:
        secret_key: The user's private signing key.
        api_key: The user's public API key.
        timestamp: Unix timestamp in seconds, as sent in ``x-timestamp``.

    Returns:
        Lowercase hex digest.
    """
    message = f"{api_key}:{timestamp}".encode("utf-8")
    return hmac.new(secret_key.encode("utf-8"), message, hashlib.sha256).hexdigest()


def verify_signature(
    api_key: str | None,
    timestamp: str | None,
    signature: str | None,
    secret_key: str,
    server_time: int | None = None,
    max_age: int = DEFAULT_MAX_AGE_SECONDS,
) -> None:
    """Validate a signed request envelope.

    Args:
        api_key: Value of ``x-api-key``.
        timestamp: Value of ``x-timestamp``.
        signature: Value of ``x-signature``.
        secret_key: Secret key of the credential matching ``api_key``.
        server_time: Current Unix time; defaults to the system clock.
        max_age: Allowed distance in seconds between timestamp and server time.

    Raises:
        MissingCredentialsError: If any of the envelope fields is empty.
        ExpiredRequestError: If the timestamp is not an integer or is outside
            the freshness window.
        BadSignatureError: If the signature does not match.
    """
    if not api_key or not signature or not timestamp:
        raise MissingCredentialsError()

    if server_time is None:
        server_time = int(time.time())

    try:
        request_time = int(timestamp)
    except (TypeError, ValueError) as exc:
        raise ExpiredRequestError("Invalid request timestamp") from exc

    if abs(server_time - request_time) > max_age:
        raise ExpiredRequestError()

    expected = compute_signature(secret_key, api_key, timestamp)
    if not hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8")):
        raise BadSignatureError()
