"""Per-plan usage accounting."""

import logging
import time

from arithmetic_api.errors import QuotaExceededError, RequestTimeoutError
from arithmetic_api.models.user import ApiUser
from arithmetic_api.services import credentials

logger = logging.getLogger(__name__)


def track_usage(user: ApiUser, deadline: float | None = None) -> ApiUser:
    """Count one request against the user's quota.

    Args:
        user: Authenticated user.
        deadline: ``time.monotonic()`` value after which the request has
            already timed out and must not be counted.

    Returns:
        The user with its incremented usage.

    Raises:
        RequestTimeoutError: If ``deadline`` has passed. Usage is unchanged.
        QuotaExceededError: If the quota is already used up. Usage is left
            unchanged in that case.
    """
    if deadline is not None and time.monotonic() >= deadline:
        logger.warning("Request for %s timed out before usage was counted", user.email)
        raise RequestTimeoutError()

    updated = credentials.consume_quota(user)
    if updated is None:
        logger.info(
            "Quota exhausted for %s (plan %s, limit %d)",
            user.email,
            user.plan_type.value,
            user.plan_limit,
        )
        raise QuotaExceededError()
    return updated
