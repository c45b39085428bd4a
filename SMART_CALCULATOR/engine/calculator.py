"""Calculation engine: wires the input accumulator, the step chain and the history store."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional

from loguru import logger

from SMART_CALCULATOR.engine.accumulator import AccumulatorState, InputAccumulator
from SMART_CALCULATOR.engine.chain import StepChain
from SMART_CALCULATOR.engine.step import Operation, Step
from SMART_CALCULATOR.interfaces.store import HistoryStore
from SMART_CALCULATOR.storage.errors import PersistenceError


@dataclass(frozen=True)
class EngineSnapshot:
    """Immutable view handed to listeners after every change."""

    history: tuple[Step, ...]
    display: str
    state: AccumulatorState


Listener = Callable[[EngineSnapshot], None]


class CalculationEngine:
    """Public operation surface consumed by the input-handling layer."""

    def __init__(self, store: HistoryStore) -> None:
        self.store = store
        self.chain = StepChain()
        self.accumulator = InputAccumulator(self)
        self._listeners: List[Listener] = []
        self._load_history()

    # Observation

    @property
    def history(self) -> tuple[Step, ...]:
        return self.chain.snapshot()

    @property
    def current_display_value(self) -> str:
        return self.accumulator.display

    @property
    def state(self) -> AccumulatorState:
        return self.accumulator.state

    def snapshot(self) -> EngineSnapshot:
        return EngineSnapshot(history=self.history, display=self.current_display_value, state=self.state)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener; the returned callable removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # Keypad events

    def input_digit(self, token: str) -> None:
        self.accumulator.input_digit(token)
        self._notify()

    def set_operation(self, operation: Operation) -> None:
        self.accumulator.set_operation(operation)
        self._notify()

    def clear(self) -> None:
        self.chain.clear()
        self.accumulator.reset()
        self._save_history()
        self._notify()

    # Ledger editing

    def update_step(
        self,
        step_id: str,
        operand1: Optional[float] = None,
        operand2: Optional[float] = None,
    ) -> bool:
        if not self.chain.update_step(step_id, operand1=operand1, operand2=operand2):
            return False
        self.accumulator.show_result(self.chain.last_result)
        self._save_history()
        self._notify()
        return True

    def insert_step(self, step: Step, at_index: int) -> Step:
        inserted = self.chain.insert_step(step, at_index)
        self.accumulator.show_result(self.chain.last_result)
        self._save_history()
        self._notify()
        return inserted

    # StepCommitter, used by the accumulator

    @property
    def last_result(self) -> Optional[float]:
        return self.chain.last_result

    def last_repeatable_step(self) -> Optional[Step]:
        return self.chain.last_repeatable_step()

    def commit_step(self, operand1: float, operand2: Optional[float], operation: Operation) -> Step:
        step = self.chain.append(operand1, operand2, operation)
        self._save_history()
        return step

    # Persistence

    def _load_history(self) -> None:
        try:
            steps = self.store.load()
        except PersistenceError as exc:
            logger.error(f"Failed to load history: {exc}")
            steps = []

        if not steps:
            logger.info("No saved history found.")
            return

        self.chain = StepChain(steps)
        self.chain.fill_missing_results()
        self.accumulator.show_result(self.chain.last_result)
        logger.info(f"History loaded successfully. {len(self.chain)} steps.")

    def _save_history(self) -> None:
        try:
            self.store.save(self.chain.snapshot())
        except PersistenceError as exc:
            logger.error(f"Failed to save history: {exc}")
            return
        logger.debug(f"History saved successfully. {len(self.chain)} steps.")

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)
