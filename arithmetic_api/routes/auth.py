"""Registration and plan management endpoints."""

import logging
import time

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from pymongo.errors import DuplicateKeyError

from arithmetic_api.errors import InvalidPlanTypeError, MissingFieldsError
from arithmetic_api.models.user import ApiUser, PlanType
from arithmetic_api.security import authenticate
from arithmetic_api.services import credentials, signing

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


class RegisterRequest(BaseModel):
    """Request body for registration."""

    model_config = ConfigDict(populate_by_name=True)

    name: str | None = Field(default=None, description="Display name")
    email: str | None = Field(default=None, description="Contact email")
    plan_type: str = Field(
        default=PlanType.FREE.value,
        alias="planType",
        description="One of free, normal, pro, premium",
    )


class UpgradePlanRequest(BaseModel):
    """Request body for upgrade-plan."""

    model_config = ConfigDict(populate_by_name=True)

    plan_type: str | None = Field(default=None, alias="planType")


def parse_plan_type(value: str | None) -> PlanType:
    """Resolve a plan name.

    Raises:
        InvalidPlanTypeError: If the name is not a known plan.
    """
    try:
        return PlanType(value)
    except ValueError as exc:
        raise InvalidPlanTypeError() from exc


def _already_registered(user: ApiUser) -> dict:
    return {
        "message": "Already registered",
        "apiKey": user.api_key,
        "planType": user.plan_type.value,
    }


@router.post("/register")
def register(request: RegisterRequest) -> dict:
    """Register a user and issue an API key and secret key.

    Registering an email that already exists returns the existing API key
    without issuing a new secret.

    Args:
        request: Name, email and optional plan type.

    Returns:
        Keys, plan details and an example signature for ``timestamp``.
    """
    if not request.name or not request.email:
        raise MissingFieldsError("Name and email are required")

    existing = credentials.find_by_email(request.email)
    if existing:
        return _already_registered(existing)

    plan_type = parse_plan_type(request.plan_type)

    user = ApiUser(
        name=request.name,
        email=request.email,
        api_key=credentials.generate_api_key(),
        secret_key=credentials.generate_secret_key(),
        plan_type=plan_type,
    )

    try:
        user = credentials.create(user)
    except DuplicateKeyError:
        # Lost a race with a concurrent registration for the same email
        existing = credentials.find_by_email(request.email)
        if existing is None:
            raise
        return _already_registered(existing)

    timestamp = int(time.time())
    signature = signing.compute_signature(user.secret_key, user.api_key, timestamp)

    return {
        "message": "Registration successful",
        "apiKey": user.api_key,
        "secretKey": user.secret_key,
        "planType": user.plan_type.value,
        "planLimit": user.plan_limit,
        "timestamp": timestamp,
        "signature": signature,
    }


@router.patch("/upgrade-plan")
def upgrade_plan(
    request: UpgradePlanRequest,
    user: ApiUser = Depends(authenticate),
) -> dict:
    """Switch the authenticated user to another plan and reset their usage."""
    plan_type = parse_plan_type(request.plan_type)
    updated = credentials.change_plan(user, plan_type)

    return {
        "message": f"Plan upgraded to {plan_type.value}",
        "planLimit": updated.plan_limit,
    }
