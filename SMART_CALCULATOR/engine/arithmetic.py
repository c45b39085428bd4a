"""Single-step arithmetic and the core display contract."""
from __future__ import annotations

import math
from typing import Optional

from SMART_CALCULATOR.engine.step import Operation


ERROR_MARKER = "Error"


def resolve(operand1: Optional[float], operand2: Optional[float], operation: Operation) -> Optional[float]:
    """Compute one step's result.

    Division by zero returns NaN instead of raising. Finalize is the identity on
    ``operand1`` whether or not ``operand2`` is present. A binary operation with
    a missing operand cannot be resolved and returns ``None``.
    """
    if operation is Operation.FINALIZE:
        return operand1
    if operand1 is None or operand2 is None:
        return None

    if operation is Operation.ADD:
        return operand1 + operand2
    if operation is Operation.SUBTRACT:
        return operand1 - operand2
    if operation is Operation.MULTIPLY:
        return operand1 * operand2
    if operation is Operation.DIVIDE:
        if operand2 == 0:
            return math.nan
        return operand1 / operand2
    raise ValueError(f"Unsupported operation: {operation!r}")


def is_error(value: Optional[float]) -> bool:
    return value is None or not math.isfinite(value)


def format_display(value: Optional[float]) -> str:
    if is_error(value):
        return ERROR_MARKER
    if value == math.floor(value):
        # "%.0f" would render -0.0 as "-0"
        return "0" if value == 0 else f"{value:.0f}"
    return repr(value)


def parse_display(text: str) -> Optional[float]:
    """Return the numeric value of display text, or None when it is not a number."""
    if text.strip().lower() == ERROR_MARKER.lower():
        return None
    try:
        value = float(text)
    except ValueError:
        return None
    return value if math.isfinite(value) else None
