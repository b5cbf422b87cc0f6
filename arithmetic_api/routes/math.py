"""Arithmetic endpoints.

Every endpoint is authenticated and metered. Input is validated before usage
is counted, so a request rejected for bad input does not cost quota.
"""

import logging

from fastapi import APIRouter, Depends, Request, status

from arithmetic_api.models.record import (
    ArithmeticRecord,
    CalculationResult,
    RecordPayload,
)
from arithmetic_api.models.user import ApiUser
from arithmetic_api.ratelimit import math_limit
from arithmetic_api.security import authenticate
from arithmetic_api.services import records
from arithmetic_api.services.usage import track_usage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/math", tags=["math"])


@router.get("/calculate", response_model=CalculationResult)
@math_limit
def calculate(
    request: Request,
    operation: str | None = None,
    a: str | None = None,
    b: str | None = None,
    user: ApiUser = Depends(authenticate),
) -> CalculationResult:
    """Perform an arithmetic operation without storing it.

    Args:
        operation: One of add, subtract, multiply, divide.
        a: First operand.
        b: Second operand.

    Returns:
        The operation, parsed operands and result.
    """
    payload = RecordPayload(operation=operation, a=a, b=b)
    document = records.build_document(payload)
    track_usage(user, deadline=request.state.deadline)

    logger.debug("%s computed %s", user.email, document)
    return CalculationResult(**document)


@router.get("/", response_model=list[ArithmeticRecord])
@math_limit
def list_records(
    request: Request, user: ApiUser = Depends(authenticate)
) -> list[ArithmeticRecord]:
    """List all stored records."""
    track_usage(user, deadline=request.state.deadline)
    return records.list_records()


@router.get("/{record_id}", response_model=ArithmeticRecord)
@math_limit
def get_record(
    request: Request, record_id: str, user: ApiUser = Depends(authenticate)
) -> ArithmeticRecord:
    """Fetch one stored record."""
    object_id = records.parse_record_id(record_id)
    track_usage(user, deadline=request.state.deadline)
    return records.get_record(object_id)


@router.post(
    "/", response_model=ArithmeticRecord, status_code=status.HTTP_201_CREATED
)
@math_limit
def create_record(
    request: Request,
    payload: RecordPayload,
    user: ApiUser = Depends(authenticate),
) -> ArithmeticRecord:
    """Compute and store a new record."""
    document = records.build_document(payload)
    track_usage(user, deadline=request.state.deadline)
    return records.create_record(document)


@router.put("/{record_id}", response_model=ArithmeticRecord)
@math_limit
def update_record(
    request: Request,
    record_id: str,
    payload: RecordPayload,
    user: ApiUser = Depends(authenticate),
) -> ArithmeticRecord:
    """Replace a record's inputs and recompute its result."""
    object_id = records.parse_record_id(record_id)
    document = records.build_document(payload)
    track_usage(user, deadline=request.state.deadline)
    return records.update_record(object_id, document)


@router.delete("/{record_id}")
@math_limit
def delete_record(
    request: Request, record_id: str, user: ApiUser = Depends(authenticate)
) -> dict:
    """Delete a stored record."""
    object_id = records.parse_record_id(record_id)
    track_usage(user, deadline=request.state.deadline)
    records.delete_record(object_id)
    return {"message": "Deleted successfully"}
