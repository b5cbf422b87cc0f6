"""Pydantic model for API users stored in MongoDB."""

import logging
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

logger = logging.getLogger(__name__)


class PlanType(str, Enum):
    """Subscription plans controlling the request quota."""

    FREE = "free"
    NORMAL = "normal"
    PRO = "pro"
    PREMIUM = "premium"


PLAN_LIMITS: dict[PlanType, int] = {
    PlanType.FREE: 5,
    PlanType.NORMAL: 10,
    PlanType.PRO: 15,
    PlanType.PREMIUM: 20,
}

DEFAULT_PLAN_LIMIT = PLAN_LIMITS[PlanType.FREE]

PLAN_VALUES = frozenset(plan.value for plan in PlanType)


def plan_limit(plan_type: PlanType | str) -> int:
    """Return the request quota for a plan, falling back to the free quota."""
    try:
        return PLAN_LIMITS[PlanType(plan_type)]
    except ValueError:
        return DEFAULT_PLAN_LIMIT


class ApiUser(BaseModel):
    """API user record with its signing keys and usage counter."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str | None = Field(default=None, alias="_id", description="Document ID")
    name: str = Field(..., description="Display name of the user")
    email: str = Field(..., description="Unique contact email")
    api_key: str = Field(..., alias="apiKey", description="Public API key")
    secret_key: str = Field(
        ..., alias="secretKey", description="Private HMAC signing key"
    )
    plan_type: PlanType = Field(default=PlanType.FREE, alias="planType")
    usage: int = Field(default=0, ge=0, description="Requests consumed")
    plan_limit: int = Field(
        default=DEFAULT_PLAN_LIMIT,
        alias="planLimit",
        description="Request quota, always derived from planType",
    )
    created_at: datetime = Field(
        default_factory=datetime.now,
        alias="createdAt",
        description="When the keys were issued",
    )

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_object_id(cls, value):
        return None if value is None else str(value)

    @field_validator("plan_type", mode="before")
    @classmethod
    def _coerce_unknown_plan(cls, value):
        if isinstance(value, PlanType):
            return value
        if isinstance(value, str) and value in PLAN_VALUES:
            return value
        logger.warning("Unrecognised plan type %r, treating as free", value)
        return PlanType.FREE

    @model_validator(mode="after")
    def _derive_plan_limit(self) -> "ApiUser":
        self.plan_limit = plan_limit(self.plan_type)
        return self

    def to_document(self) -> dict:
        """Serialise the user for storage, leaving the ID to MongoDB."""
        doc = self.model_dump(by_alias=True, exclude={"id"})
        doc["planType"] = self.plan_type.value
        return doc
