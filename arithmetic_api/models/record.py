"""Pydantic models for arithmetic records and calculation payloads."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Operation(str, Enum):
    """Supported arithmetic operations."""

    ADD = "add"
    SUBTRACT = "subtract"
    MULTIPLY = "multiply"
    DIVIDE = "divide"


class RecordPayload(BaseModel):
    """Request body for creating or replacing an arithmetic record.

    Fields are left loosely typed so that missing or malformed values are
    reported through the API's own error codes rather than a validation dump.
    """

    operation: str | None = None
    a: Any = None
    b: Any = None


class ArithmeticRecord(BaseModel):
    """Stored arithmetic record; ``result`` is always derived on write."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(alias="_id", description="Record ID")
    operation: Operation
    a: float
    b: float
    result: float

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_object_id(cls, value):
        return str(value)


class CalculationResult(BaseModel):
    """Response for a one-off calculation that is not persisted."""

    operation: Operation
    a: float
    b: float
    result: float
