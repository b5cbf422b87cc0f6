"""Credential storage helpers for MongoDB-backed authentication."""

import logging
import secrets

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.collection import Collection

from arithmetic_api.config import get_settings
from arithmetic_api.models.user import ApiUser, PlanType, plan_limit
from arithmetic_api.services import database

logger = logging.getLogger(__name__)


def _users() -> Collection:
    settings = get_settings()
    return database.get_collection(settings.mongo.users_collection)


def generate_api_key() -> str:
    """Generate a new public API key (32 hex characters)."""
    return secrets.token_hex(16)


def generate_secret_key() -> str:
    """Generate a new private signing key (64 hex characters)."""
    return secrets.token_hex(32)


def find_by_api_key(api_key: str) -> ApiUser | None:
    """Look up a user by API key.

    Args:
        api_key (str): Public API key from the ``x-api-key`` header

    Returns:
        ApiUser: Matching user or None if none found"""
    record = _users().find_one({"apiKey": api_key})
    return ApiUser.model_validate(record) if record else None


def find_by_email(email: str) -> ApiUser | None:
    """Look up a user by email address."""
    record = _users().find_one({"email": email})
    return ApiUser.model_validate(record) if record else None


def create(user: ApiUser) -> ApiUser:
    """Insert a new user.

    Raises:
        pymongo.errors.DuplicateKeyError: If the email or API key is taken.
    """
    result = _users().insert_one(user.to_document())
    logger.info("Created API user %s on plan %s", user.email, user.plan_type.value)
    return user.model_copy(update={"id": str(result.inserted_id)})


def save(user: ApiUser) -> ApiUser:
    """Persist every field of an existing user.

    ``planLimit`` is re-derived from ``planType`` before writing.
    """
    user = ApiUser.model_validate(user.model_dump())
    _users().replace_one({"_id": ObjectId(user.id)}, user.to_document())
    return user


def _plan_match(plan_type: PlanType):
    # Stored plans outside the enum load as free, so free matches them too
    if plan_type is PlanType.FREE:
        return {"$nin": [plan.value for plan in PlanType if plan is not PlanType.FREE]}
    return plan_type.value


def consume_quota(user: ApiUser) -> ApiUser | None:
    """Atomically increment usage if the user is still under quota.

    The check and the increment are a single conditional update, so
    concurrent requests from one user cannot push usage past the quota. The
    update is also guarded on the plan the quota was derived from, so a plan
    change that lands after authentication is never checked against the old
    limit.

    Args:
        user: Authenticated user; only its ID and plan are read.

    Returns:
        The user with refreshed usage, or None if the quota is exhausted or
        the plan changed since ``user`` was loaded.
    """
    quota = plan_limit(user.plan_type)
    record = _users().find_one_and_update(
        {
            "_id": ObjectId(user.id),
            "planType": _plan_match(user.plan_type),
            "usage": {"$lt": quota},
        },
        {"$inc": {"usage": 1}},
        return_document=ReturnDocument.AFTER,
    )
    return ApiUser.model_validate(record) if record else None


def change_plan(user: ApiUser, plan_type: PlanType) -> ApiUser:
    """Move a user to a new plan, recomputing the limit and resetting usage."""
    record = _users().find_one_and_update(
        {"_id": ObjectId(user.id)},
        {
            "$set": {
                "planType": plan_type.value,
                "planLimit": plan_limit(plan_type),
                "usage": 0,
            }
        },
        return_document=ReturnDocument.AFTER,
    )
    logger.info("User %s moved to plan %s", user.email, plan_type.value)
    return ApiUser.model_validate(record)
