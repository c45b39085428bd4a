"""Input accumulator: turns keypad events into pending state and committed steps.

The accumulator is an explicit state machine. Every (state, event) pair maps to
one handler in ``_DIGIT_TRANSITIONS`` or ``_OPERATION_TRANSITIONS``:

=================  ==========================  =====================================
state              digit / "."                 operation
=================  ==========================  =====================================
IDLE               append -> ENTERING_OP1      binary: pend -> AWAITING_OP2
                                               finalize: echo value (case B)
ENTERING_OP1       append                      same as IDLE
AWAITING_OP2       replace -> ENTERING_OP2     binary: swap pending operation
                                               finalize: commit pending (case A)
ENTERING_OP2       append                      binary: commit pending, chain on
                                               finalize: commit pending (case A)
DISPLAYING_RESULT  replace -> ENTERING_OP1     binary: result becomes operand1
                   (drops pending state)       finalize: repeat last delta (case C)
                                               or echo value (case B)
ERROR              replace -> ENTERING_OP1     rejected until a digit arrives
=================  ==========================  =====================================

Any commit whose result is non-finite or unresolved moves to ERROR.
"""
from __future__ import annotations

import re
from enum import Enum
from typing import Callable, Dict, Optional, Protocol

from loguru import logger

from SMART_CALCULATOR.engine.arithmetic import ERROR_MARKER, format_display, is_error, parse_display
from SMART_CALCULATOR.engine.step import Operation, Step


_DIGITS = re.compile(r"^[0-9]+$")
DECIMAL_POINT = "."


class AccumulatorState(str, Enum):
    IDLE = "idle"
    ENTERING_OPERAND1 = "entering_operand1"
    AWAITING_OPERAND2 = "awaiting_operand2"
    ENTERING_OPERAND2 = "entering_operand2"
    DISPLAYING_RESULT = "displaying_result"
    ERROR = "error"


class StepCommitter(Protocol):
    """What the accumulator needs from the engine that owns the chain."""

    @property
    def last_result(self) -> Optional[float]: ...

    def last_repeatable_step(self) -> Optional[Step]: ...

    def commit_step(self, operand1: float, operand2: Optional[float], operation: Operation) -> Step: ...


class InputAccumulator:
    """Tracks what the user is typing versus what has been committed to the chain."""

    def __init__(self, committer: StepCommitter) -> None:
        self._committer = committer
        self.display = "0"
        self.state = AccumulatorState.IDLE
        self.pending_operand1: Optional[float] = None
        self.pending_operation: Optional[Operation] = None

    @property
    def awaiting_operand2(self) -> bool:
        return self.state is AccumulatorState.AWAITING_OPERAND2

    @property
    def displaying_final_result(self) -> bool:
        return self.state is AccumulatorState.DISPLAYING_RESULT

    def reset(self) -> None:
        self.display = "0"
        self.state = AccumulatorState.IDLE
        self._clear_pending()

    def show_result(self, value: Optional[float]) -> None:
        """Display a chain result produced outside normal entry (edit, insert, load)."""
        self._clear_pending()
        self.display = format_display(value)
        self.state = AccumulatorState.ERROR if is_error(value) else AccumulatorState.DISPLAYING_RESULT

    # Events

    def input_digit(self, token: str) -> None:
        if token != DECIMAL_POINT and not _DIGITS.match(token):
            logger.warning(f"Ignoring keypad token {token!r}: not a digit or decimal point")
            return
        _DIGIT_TRANSITIONS[self.state](self, token)

    def set_operation(self, operation: Operation) -> None:
        if self.state is AccumulatorState.ERROR:
            logger.info(f"Display shows error. Operation {operation.value} ignored. Please clear.")
            return
        value = parse_display(self.display)
        if value is None:
            logger.warning(f"Invalid number in display: {self.display!r}. Operation {operation.value} ignored.")
            return
        _OPERATION_TRANSITIONS[self.state](self, operation, value)

    # Digit handlers

    def _start_fresh(self, token: str) -> None:
        self._clear_pending()
        self.display = _fresh_text(token)
        self.state = AccumulatorState.ENTERING_OPERAND1

    def _append_operand1(self, token: str) -> None:
        self._append(token)
        self.state = AccumulatorState.ENTERING_OPERAND1

    def _begin_operand2(self, token: str) -> None:
        self.display = _fresh_text(token)
        self.state = AccumulatorState.ENTERING_OPERAND2

    def _append(self, token: str) -> None:
        if token == DECIMAL_POINT:
            if DECIMAL_POINT not in self.display:
                self.display += DECIMAL_POINT
            return
        if self.display == "0":
            self.display = _fresh_text(token)
        else:
            self.display += token

    # Operation handlers

    def _operate_on_entry(self, operation: Operation, value: float) -> None:
        if operation is Operation.FINALIZE:
            self._finalize_value(value)
        else:
            self._pend(value, operation)

    def _operate_awaiting(self, operation: Operation, value: float) -> None:
        if operation is Operation.FINALIZE:
            self._finalize_pending(value)
        else:
            self._pend(value, operation)

    def _operate_entering_operand2(self, operation: Operation, value: float) -> None:
        if operation is Operation.FINALIZE:
            self._finalize_pending(value)
            return
        step = self._committer.commit_step(self.pending_operand1, value, self.pending_operation)
        if is_error(step.result):
            self._enter_error()
            return
        self.pending_operand1 = step.result
        self.pending_operation = operation
        self.display = format_display(step.result)
        self.state = AccumulatorState.AWAITING_OPERAND2

    def _operate_on_result(self, operation: Operation, value: float) -> None:
        if operation is not Operation.FINALIZE:
            self._pend(value, operation)
            return
        repeatable = self._committer.last_repeatable_step()
        if repeatable is None:
            self._finalize_value(value)
            return
        previous = self._committer.last_result
        operand1 = value if previous is None else previous
        step = self._committer.commit_step(operand1, repeatable.operand2, repeatable.operation)
        self._show_committed(step)

    def _pend(self, value: float, operation: Operation) -> None:
        self.pending_operand1 = value
        self.pending_operation = operation
        self.state = AccumulatorState.AWAITING_OPERAND2

    def _finalize_pending(self, value: float) -> None:
        step = self._committer.commit_step(self.pending_operand1, value, self.pending_operation)
        self._show_committed(step)

    def _finalize_value(self, value: float) -> None:
        step = self._committer.commit_step(value, None, Operation.FINALIZE)
        self._show_committed(step)

    def _show_committed(self, step: Step) -> None:
        self._clear_pending()
        if is_error(step.result):
            self._enter_error()
            return
        self.display = format_display(step.result)
        self.state = AccumulatorState.DISPLAYING_RESULT

    def _enter_error(self) -> None:
        self._clear_pending()
        self.display = ERROR_MARKER
        self.state = AccumulatorState.ERROR

    def _clear_pending(self) -> None:
        self.pending_operand1 = None
        self.pending_operation = None


def _fresh_text(token: str) -> str:
    if token == DECIMAL_POINT:
        return "0."
    return token.lstrip("0") or "0"


_DIGIT_TRANSITIONS: Dict[AccumulatorState, Callable[[InputAccumulator, str], None]] = {
    AccumulatorState.IDLE: InputAccumulator._append_operand1,
    AccumulatorState.ENTERING_OPERAND1: InputAccumulator._append_operand1,
    AccumulatorState.AWAITING_OPERAND2: InputAccumulator._begin_operand2,
    AccumulatorState.ENTERING_OPERAND2: InputAccumulator._append,
    AccumulatorState.DISPLAYING_RESULT: InputAccumulator._start_fresh,
    AccumulatorState.ERROR: InputAccumulator._start_fresh,
}

_OPERATION_TRANSITIONS: Dict[AccumulatorState, Callable[[InputAccumulator, Operation, float], None]] = {
    AccumulatorState.IDLE: InputAccumulator._operate_on_entry,
    AccumulatorState.ENTERING_OPERAND1: InputAccumulator._operate_on_entry,
    AccumulatorState.AWAITING_OPERAND2: InputAccumulator._operate_awaiting,
    AccumulatorState.ENTERING_OPERAND2: InputAccumulator._operate_entering_operand2,
    AccumulatorState.DISPLAYING_RESULT: InputAccumulator._operate_on_result,
}
