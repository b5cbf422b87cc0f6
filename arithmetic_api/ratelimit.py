"""Per-client rate limiting for the metered endpoints.

This is a transport-level guard keyed on the client address. It is separate
from the per-plan usage quota, which is enforced after authentication.
"""

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from arithmetic_api.config import get_settings

# Uses client IP address as key for rate limiting
limiter = Limiter(key_func=get_remote_address)


def _math_rate() -> str:
    return get_settings().app.rate_limit


# One counter per client shared by every /math endpoint
math_limit = limiter.shared_limit(_math_rate, scope="math")


async def rate_limit_exceeded_handler(
    request: Request, exc: RateLimitExceeded
) -> JSONResponse:
    """Render a rate limit rejection in the API's error format."""
    _ = request
    return JSONResponse(
        status_code=429,
        content={
            "error": "rate_limited",
            "message": f"Rate limit exceeded ({exc.detail}), upgrade your plan.",
        },
    )
