"""Step data structures for the SmartCalculator ledger."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional
import uuid


class Operation(str, Enum):
    """Arithmetic operations a step can record. Values are the persisted symbols."""

    ADD = "+"
    SUBTRACT = "−"
    MULTIPLY = "×"
    DIVIDE = "÷"
    FINALIZE = "="

    @property
    def is_binary(self) -> bool:
        return self is not Operation.FINALIZE

    @classmethod
    def from_symbol(cls, symbol: str) -> "Operation":
        """Parse a keypad symbol, accepting ASCII aliases for the typographic ones."""
        key = symbol.strip().lower()
        if key in _ALIASES:
            return _ALIASES[key]
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"Unknown operation symbol: {symbol!r}") from None


_ALIASES: Dict[str, Operation] = {
    "-": Operation.SUBTRACT,
    "*": Operation.MULTIPLY,
    "x": Operation.MULTIPLY,
    "/": Operation.DIVIDE,
    "add": Operation.ADD,
    "sub": Operation.SUBTRACT,
    "mul": Operation.MULTIPLY,
    "div": Operation.DIVIDE,
    "eq": Operation.FINALIZE,
}


@dataclass
class Step:
    """One recorded operation of the chain and its computed result."""

    operand1: float
    operation: Operation
    operand2: Optional[float] = None
    result: Optional[float] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "operand1": self.operand1,
            "operand2": self.operand2,
            "operation": self.operation.value,
            "result": self.result,
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "Step":
        operand2 = payload.get("operand2")
        result = payload.get("result")
        return cls(
            id=str(payload["id"]),
            operand1=float(payload["operand1"]),
            operand2=None if operand2 is None else float(operand2),
            operation=Operation(payload["operation"]),
            result=None if result is None else float(result),
        )
