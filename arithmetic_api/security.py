"""Security dependencies for the FastAPI application."""

import logging

from fastapi import Request, Security
from fastapi.security import APIKeyHeader

from arithmetic_api.config import get_settings
from arithmetic_api.errors import (
    ArithmeticApiError,
    InvalidApiKeyError,
    MissingCredentialsError,
)
from arithmetic_api.models.user import ApiUser
from arithmetic_api.services import credentials, signing

logger = logging.getLogger(__name__)

API_KEY_HEADER = "x-api-key"
SIGNATURE_HEADER = "x-signature"
TIMESTAMP_HEADER = "x-timestamp"

api_key_header = APIKeyHeader(
    name=API_KEY_HEADER,
    description="Public API key issued at registration",
    auto_error=False,
)
signature_header = APIKeyHeader(
    name=SIGNATURE_HEADER,
    description="Hex HMAC-SHA256 of '<api key>:<timestamp>' keyed by the secret key",
    auto_error=False,
)
timestamp_header = APIKeyHeader(
    name=TIMESTAMP_HEADER,
    description="Unix timestamp in seconds used in the signature",
    auto_error=False,
)


def authenticate(
    request: Request,
    api_key: str | None = Security(api_key_header),
    signature: str | None = Security(signature_header),
    timestamp: str | None = Security(timestamp_header),
) -> ApiUser:
    """Validate a signed request and bind the user to ``request.state.user``.

    Raises:
        MissingCredentialsError: If any auth header is absent (401).
        InvalidApiKeyError: If the API key is unknown (403).
        ExpiredRequestError: If the timestamp is stale (403).
        BadSignatureError: If the signature does not match (403).
    """
    if not api_key or not signature or not timestamp:
        raise MissingCredentialsError()

    user = credentials.find_by_api_key(api_key)
    if user is None:
        logger.warning("Rejected unknown API key %s...", api_key[:6])
        raise InvalidApiKeyError()

    settings = get_settings()
    try:
        signing.verify_signature(
            api_key,
            timestamp,
            signature,
            user.secret_key,
            max_age=settings.app.signature_max_age_seconds,
        )
    except ArithmeticApiError as exc:
        logger.warning("Rejected request for %s: %s", user.email, exc.code)
        raise

    request.state.user = user
    return user
