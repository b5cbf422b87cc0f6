"""Arithmetic evaluation and operand parsing."""

import math
import re
from numbers import Real

from arithmetic_api.errors import (
    DivisionByZeroError,
    InvalidOperandError,
    UnknownOperationError,
)
from arithmetic_api.models.record import Operation

NUMERIC_RE = re.compile(r"^[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?$")


def parse_operation(value: str | None) -> Operation:
    """Resolve an operation name.

    Raises:
        UnknownOperationError: If the name is not a supported operation.
    """
    try:
        return Operation(value)
    except ValueError as exc:
        raise UnknownOperationError() from exc


def parse_operand(value) -> float:
    """Parse an operand from a query string or a JSON body.

    Numbers and plain decimal strings (optionally signed, with an exponent)
    are accepted; booleans, ``None``, other types, non-finite values and
    numbers beyond float range are rejected.

    Raises:
        InvalidOperandError: If the value is not a finite number.
    """
    if isinstance(value, bool) or value is None:
        raise InvalidOperandError()
    if isinstance(value, str):
        value = value.strip()
        if not NUMERIC_RE.match(value):
            raise InvalidOperandError()
    elif not isinstance(value, Real):
        raise InvalidOperandError()

    try:
        number = float(value)
    except OverflowError as exc:
        raise InvalidOperandError() from exc

    if not math.isfinite(number):
        raise InvalidOperandError()
    return number


def evaluate(operation: Operation, a: float, b: float) -> float:
    """Apply an arithmetic operation.

    Raises:
        DivisionByZeroError: If dividing by zero.
        UnknownOperationError: If the operation is not supported.
    """
    if operation is Operation.ADD:
        result = a + b
    elif operation is Operation.SUBTRACT:
        result = a - b
    elif operation is Operation.MULTIPLY:
        result = a * b
    elif operation is Operation.DIVIDE:
        if b == 0:
            raise DivisionByZeroError()
        result = a / b
    else:
        raise UnknownOperationError()

    # Overflow to inf cannot be represented in a JSON response
    if not math.isfinite(result):
        raise InvalidOperandError("Result is out of range.")
    return result
