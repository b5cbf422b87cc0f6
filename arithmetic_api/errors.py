"""Error taxonomy for the arithmetic API.

Every error raised by the services carries a machine-readable ``code`` and a
human-readable ``message``. The exception handlers in ``arithmetic_api.main``
turn them into ``{"error": code, "message": message}`` responses.
"""


class ArithmeticApiError(Exception):
    """Base exception for errors that map onto an HTTP response."""

    status_code = 400
    code = "bad_request"
    message = "Bad request"

    def __init__(self, message: str | None = None):
        self.message = message or self.message
        super().__init__(self.message)

    def to_response(self) -> dict:
        """Render the error as a response body."""
        return {"error": self.code, "message": self.message}


# Authentication


class MissingCredentialsError(ArithmeticApiError):
    """Raised when an API key, signature or timestamp header is absent."""

    status_code = 401
    code = "missing_credentials"
    message = "API Key, Signature, and Timestamp required"


class InvalidApiKeyError(ArithmeticApiError):
    """Raised when no credential matches the presented API key."""

    status_code = 403
    code = "invalid_api_key"
    message = "Invalid API Key"


class ExpiredRequestError(ArithmeticApiError):
    """Raised when the request timestamp is outside the freshness window."""

    status_code = 403
    code = "request_expired"
    message = "Request expired"


class BadSignatureError(ArithmeticApiError):
    """Raised when the HMAC signature does not match."""

    status_code = 403
    code = "invalid_signature"
    message = "Invalid Signature"


# Usage accounting


class QuotaExceededError(ArithmeticApiError):
    """Raised when a user has consumed their plan's request quota."""

    status_code = 429
    code = "quota_exceeded"
    message = "API limit reached. Upgrade your plan."


# Arithmetic


class UnknownOperationError(ArithmeticApiError):
    code = "unknown_operation"
    message = "Invalid operation. Use add, subtract, multiply, or divide."


class DivisionByZeroError(ArithmeticApiError):
    code = "division_by_zero"
    message = "Cannot divide by zero."


class InvalidOperandError(ArithmeticApiError):
    code = "invalid_operand"
    message = "Invalid numbers provided."


# Request shape and records


class MissingFieldsError(ArithmeticApiError):
    code = "missing_fields"
    message = "Required fields are missing."


class InvalidPlanTypeError(ArithmeticApiError):
    code = "invalid_plan_type"
    message = "Invalid plan type."


class MalformedIdentifierError(ArithmeticApiError):
    code = "malformed_identifier"
    message = "Invalid ID format"


class RecordNotFoundError(ArithmeticApiError):
    status_code = 404
    code = "not_found"
    message = "Not found"


# Transport


class RequestTimeoutError(ArithmeticApiError):
    """Raised when a request runs past its deadline before consuming quota."""

    status_code = 504
    code = "request_timeout"
    message = "Request timed out"
