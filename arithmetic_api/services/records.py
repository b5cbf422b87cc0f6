"""MongoDB storage for arithmetic records.

Every write recomputes ``result`` from the operation and operands, so a
stored result can never drift from its inputs.
"""

import logging

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.collection import Collection

from arithmetic_api.config import get_settings
from arithmetic_api.errors import (
    MalformedIdentifierError,
    MissingFieldsError,
    RecordNotFoundError,
)
from arithmetic_api.models.record import ArithmeticRecord, RecordPayload
from arithmetic_api.services import calculator, database

logger = logging.getLogger(__name__)


def _records() -> Collection:
    settings = get_settings()
    return database.get_collection(settings.mongo.records_collection)


def parse_record_id(record_id: str) -> ObjectId:
    """Validate a record identifier before it reaches the store.

    Raises:
        MalformedIdentifierError: If ``record_id`` is not a valid ObjectId.
    """
    if not ObjectId.is_valid(record_id):
        raise MalformedIdentifierError()
    return ObjectId(record_id)


def build_document(payload: RecordPayload) -> dict:
    """Validate a payload and compute its result.

    Returns:
        Document fields ready to be written.

    Raises:
        MissingFieldsError: If operation, a or b is absent.
        UnknownOperationError: If the operation is not supported.
        InvalidOperandError: If a or b is not a number.
        DivisionByZeroError: If dividing by zero.
    """
    if not payload.operation or payload.a is None or payload.b is None:
        raise MissingFieldsError("Operation, a, and b are required.")

    operation = calculator.parse_operation(payload.operation)
    a = calculator.parse_operand(payload.a)
    b = calculator.parse_operand(payload.b)
    result = calculator.evaluate(operation, a, b)
    return {"operation": operation.value, "a": a, "b": b, "result": result}


def list_records() -> list[ArithmeticRecord]:
    """Return every stored record."""
    return [ArithmeticRecord.model_validate(doc) for doc in _records().find()]


def get_record(record_id: ObjectId) -> ArithmeticRecord:
    """Fetch a record by ID.

    Raises:
        RecordNotFoundError: If no record has this ID.
    """
    doc = _records().find_one({"_id": record_id})
    if doc is None:
        raise RecordNotFoundError()
    return ArithmeticRecord.model_validate(doc)


def create_record(document: dict) -> ArithmeticRecord:
    """Insert a record built by :func:`build_document`."""
    result = _records().insert_one(dict(document))
    logger.debug("Created record %s", result.inserted_id)
    return ArithmeticRecord.model_validate({**document, "_id": result.inserted_id})


def update_record(record_id: ObjectId, document: dict) -> ArithmeticRecord:
    """Replace a record's operation, operands and result.

    Raises:
        RecordNotFoundError: If no record has this ID.
    """
    doc = _records().find_one_and_update(
        {"_id": record_id},
        {"$set": document},
        return_document=ReturnDocument.AFTER,
    )
    if doc is None:
        raise RecordNotFoundError()
    return ArithmeticRecord.model_validate(doc)


def delete_record(record_id: ObjectId) -> None:
    """Delete a record.

    Raises:
        RecordNotFoundError: If no record has this ID.
    """
    result = _records().delete_one({"_id": record_id})
    if result.deleted_count == 0:
        raise RecordNotFoundError()
    logger.debug("Deleted record %s", record_id)
