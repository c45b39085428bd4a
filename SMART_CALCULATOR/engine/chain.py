"""Ordered step chain with forward recalculation."""
from __future__ import annotations

from dataclasses import replace
from typing import Iterator, List, Optional

from loguru import logger

from SMART_CALCULATOR.engine.arithmetic import resolve
from SMART_CALCULATOR.engine.step import Operation, Step


class StepChain:
    """Owns the committed steps and keeps every step's operand1 tied to its predecessor."""

    def __init__(self, steps: Optional[List[Step]] = None) -> None:
        self._steps: List[Step] = list(steps or [])

    def __len__(self) -> int:
        return len(self._steps)

    def __iter__(self) -> Iterator[Step]:
        return iter(self._steps)

    def __getitem__(self, index: int) -> Step:
        return self._steps[index]

    def snapshot(self) -> tuple[Step, ...]:
        """Return detached copies so callers cannot mutate the chain."""
        return tuple(replace(step) for step in self._steps)

    @property
    def last_result(self) -> Optional[float]:
        if not self._steps:
            return None
        return self._steps[-1].result

    def index_of(self, step_id: str) -> Optional[int]:
        for index, step in enumerate(self._steps):
            if step.id == step_id:
                return index
        return None

    def last_repeatable_step(self) -> Optional[Step]:
        """Most recent completed binary step, the delta a repeated finalize re-applies."""
        for step in reversed(self._steps):
            if step.operation.is_binary and step.result is not None and step.operand2 is not None:
                return step
        return None

    def append(self, operand1: float, operand2: Optional[float], operation: Operation) -> Step:
        result = resolve(operand1, operand2, operation)
        if result is None:
            logger.warning(f"Committed {operation.value} step without operand2; result left unresolved")
        step = Step(operand1=operand1, operand2=operand2, operation=operation, result=result)
        self._steps.append(step)
        return step

    def update_step(
        self,
        step_id: str,
        operand1: Optional[float] = None,
        operand2: Optional[float] = None,
    ) -> bool:
        index = self.index_of(step_id)
        if index is None:
            logger.warning(f"update_step: no step with id {step_id}")
            return False

        step = self._steps[index]
        if operand1 is not None:
            step.operand1 = operand1
        if operand2 is not None:
            step.operand2 = operand2

        previous_result = self._steps[index - 1].result if index > 0 else None
        if step.operation.is_binary:
            if operand1 is None and index > 0:
                if previous_result is None:
                    logger.warning(f"update_step: step {index} has an unresolved predecessor")
                    step.result = None
                else:
                    step.operand1 = previous_result
                    step.result = self._resolve_logged(index, step)
            else:
                step.result = self._resolve_logged(index, step)
        elif index > 0:
            if operand1 is None and previous_result is not None:
                step.operand1 = previous_result
            step.result = previous_result
        else:
            step.result = step.operand1

        self.recalculate(index + 1)
        return True

    def insert_step(self, step: Step, at_index: int) -> Step:
        if not 0 <= at_index <= len(self._steps):
            raise IndexError(f"Insert position {at_index} outside 0..{len(self._steps)}")
        if self.index_of(step.id) is not None:
            raise ValueError(f"Step id collision: {step.id}")

        inserted = replace(step)
        upstream_missing = False
        if at_index > 0 and inserted.operand1 == 0:
            previous_result = self._steps[at_index - 1].result
            if previous_result is None:
                upstream_missing = True
            else:
                inserted.operand1 = previous_result

        if upstream_missing:
            logger.warning(f"insert_step: predecessor of position {at_index} is unresolved")
            inserted.result = None
        else:
            inserted.result = self._resolve_logged(at_index, inserted)

        self._steps.insert(at_index, inserted)
        self.recalculate(at_index + 1)
        return inserted

    def recalculate(self, from_index: int = 0) -> None:
        """Re-derive operand1 and result for every step from ``from_index`` to the end."""
        for index in range(max(from_index, 0), len(self._steps)):
            step = self._steps[index]
            if index > 0:
                previous_result = self._steps[index - 1].result
                if previous_result is None:
                    logger.warning(f"Recalculating step {index}: predecessor unresolved, result left empty")
                    step.result = None
                    continue
                step.operand1 = previous_result
            step.result = self._resolve_logged(index, step)

    def recalculate_all(self) -> None:
        self.recalculate(0)

    def fill_missing_results(self) -> None:
        """Compute results only where none is stored; persisted operands are left as they are."""
        for index, step in enumerate(self._steps):
            if step.result is not None:
                continue
            if step.operation is Operation.FINALIZE and index > 0:
                step.result = self._steps[index - 1].result
            elif index > 0 and self._steps[index - 1].result is None:
                logger.warning(f"Loaded step {index} follows an unresolved step, result left empty")
            else:
                step.result = self._resolve_logged(index, step)

    def clear(self) -> None:
        self._steps.clear()

    @staticmethod
    def _resolve_logged(index: int, step: Step) -> Optional[float]:
        if step.operation.is_binary and step.operand2 is None:
            logger.warning(
                f"Recalculating step {index} ({step.operation.value}) resulted in no value: operand2 missing"
            )
            return None
        return resolve(step.operand1, step.operand2, step.operation)
