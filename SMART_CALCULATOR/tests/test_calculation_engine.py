"""End-to-end tests for the calculation engine over an in-memory store."""
from __future__ import annotations

import math
from typing import List, Sequence

from SMART_CALCULATOR.cli import feed_tokens
from SMART_CALCULATOR.engine.accumulator import AccumulatorState
from SMART_CALCULATOR.engine.calculator import CalculationEngine, EngineSnapshot
from SMART_CALCULATOR.engine.step import Operation, Step
from SMART_CALCULATOR.interfaces.store import HistoryStore
from SMART_CALCULATOR.storage.errors import PersistenceError
from SMART_CALCULATOR.storage.history_store import InMemoryHistoryStore


class FailingStore(HistoryStore):
    def __init__(self) -> None:
        self.save_attempts = 0

    def load(self) -> List[Step]:
        raise PersistenceError("corrupt history")

    def save(self, steps: Sequence[Step]) -> None:
        self.save_attempts += 1
        raise PersistenceError("disk full")


def press(engine: CalculationEngine, keys: str) -> None:
    feed_tokens(engine, keys.split())


def results(engine: CalculationEngine) -> list:
    return [step.result for step in engine.history]


def test_addition(engine: CalculationEngine) -> None:
    press(engine, "2 + 3 =")
    assert engine.current_display_value == "5"
    assert len(engine.history) == 1
    assert engine.history[0].result == 5.0


def test_left_to_right_evaluation(engine: CalculationEngine) -> None:
    press(engine, "2 + 3 x 4 =")

    history = engine.history
    assert [(s.operand1, s.operation, s.operand2, s.result) for s in history] == [
        (2.0, Operation.ADD, 3.0, 5.0),
        (5.0, Operation.MULTIPLY, 4.0, 20.0),
    ]
    assert engine.current_display_value == "20"


def test_longer_chain_ignores_precedence(engine: CalculationEngine) -> None:
    press(engine, "2 x 3 + 4 x 5 =")
    assert engine.current_display_value == "50"


def test_decimal_arithmetic(engine: CalculationEngine) -> None:
    press(engine, "1 . 5 + 0 . 5 =")
    assert engine.current_display_value == "2"


def test_division_by_zero_shows_error_and_rejects_operations(engine: CalculationEngine) -> None:
    press(engine, "5 / 0 =")

    assert engine.current_display_value == "Error"
    assert math.isnan(engine.history[-1].result)
    assert engine.state is AccumulatorState.ERROR

    press(engine, "+ =")
    assert len(engine.history) == 1
    assert engine.current_display_value == "Error"

    press(engine, "4 + 1 =")
    assert engine.current_display_value == "5"


def test_repeat_finalize_iterates_last_delta(engine: CalculationEngine) -> None:
    press(engine, "5 + 2 = = =")

    assert results(engine) == [7.0, 9.0, 11.0]
    assert (engine.history[1].operand1, engine.history[1].operand2) == (7.0, 2.0)
    assert engine.history[1].operation is Operation.ADD
    assert engine.current_display_value == "11"


def test_repeat_finalize_without_prior_delta_echoes(engine: CalculationEngine) -> None:
    press(engine, "7 = =")
    assert results(engine) == [7.0, 7.0]
    assert all(step.operation is Operation.FINALIZE for step in engine.history)


def test_edit_propagation(engine: CalculationEngine, store: InMemoryHistoryStore) -> None:
    press(engine, "2 + 3 = x 4 =")
    first_id = engine.history[0].id

    assert engine.update_step(first_id, operand2=5.0) is True

    history = engine.history
    assert (history[0].operand1, history[0].operand2, history[0].result) == (2.0, 5.0, 7.0)
    assert (history[1].operand1, history[1].operand2, history[1].result) == (7.0, 4.0, 28.0)
    assert engine.current_display_value == "28"
    assert CalculationEngine(store).history == history


def test_edit_unknown_step_reports_not_found(engine: CalculationEngine) -> None:
    press(engine, "2 + 3 =")
    assert engine.update_step("no-such-id", operand2=9.0) is False
    assert engine.current_display_value == "5"


def test_insertion_propagation(engine: CalculationEngine) -> None:
    press(engine, "10 / 2 = + 3 =")
    assert engine.current_display_value == "8"
    ids = [step.id for step in engine.history]

    engine.insert_step(Step(operand1=0.0, operand2=2.0, operation=Operation.MULTIPLY), 1)

    history = engine.history
    assert [(s.operand1, s.operation, s.operand2, s.result) for s in history] == [
        (10.0, Operation.DIVIDE, 2.0, 5.0),
        (5.0, Operation.MULTIPLY, 2.0, 10.0),
        (10.0, Operation.ADD, 3.0, 13.0),
    ]
    assert [history[0].id, history[2].id] == ids
    assert engine.current_display_value == "13"


def test_edit_into_division_by_zero_puts_display_in_error(engine: CalculationEngine) -> None:
    press(engine, "6 / 3 = + 1 =")
    engine.update_step(engine.history[0].id, operand2=0.0)

    assert all(math.isnan(result) for result in results(engine))
    assert engine.current_display_value == "Error"
    assert engine.state is AccumulatorState.ERROR


def test_finalize_after_edit_repeats_edited_delta(engine: CalculationEngine) -> None:
    press(engine, "5 + 2 =")
    engine.update_step(engine.history[0].id, operand2=3.0)
    press(engine, "=")

    assert results(engine) == [8.0, 11.0]


def test_clear_matches_fresh_engine(engine: CalculationEngine, store: InMemoryHistoryStore) -> None:
    press(engine, "2 + 3 x")
    engine.clear()

    assert engine.history == ()
    assert engine.current_display_value == "0"
    assert engine.state is AccumulatorState.IDLE

    fresh = CalculationEngine(InMemoryHistoryStore())
    assert (fresh.history, fresh.current_display_value, fresh.state) == (
        engine.history,
        engine.current_display_value,
        engine.state,
    )
    assert CalculationEngine(store).history == ()


def test_round_trip_persistence(engine: CalculationEngine, store: InMemoryHistoryStore) -> None:
    press(engine, "2 + 3 x 4 = - 1 = =")

    reloaded = CalculationEngine(store)

    assert reloaded.history == engine.history
    assert [step.id for step in reloaded.history] == [step.id for step in engine.history]
    assert reloaded.current_display_value == engine.current_display_value == "18"
    assert reloaded.state is AccumulatorState.DISPLAYING_RESULT


def test_reloaded_engine_continues_repeat_finalize(engine: CalculationEngine, store: InMemoryHistoryStore) -> None:
    press(engine, "5 + 2 =")
    reloaded = CalculationEngine(store)
    press(reloaded, "=")

    assert results(reloaded) == [7.0, 9.0]


def test_persistence_failures_are_not_fatal(log_messages) -> None:
    store = FailingStore()
    engine = CalculationEngine(store)

    assert engine.history == ()
    press(engine, "2 + 3 =")

    assert engine.current_display_value == "5"
    assert store.save_attempts == 1
    assert any("corrupt history" in message for message in log_messages)
    assert any("disk full" in message for message in log_messages)


def test_undecodable_history_starts_empty() -> None:
    store = InMemoryHistoryStore(values={"calculationHistory": "{not json"})
    engine = CalculationEngine(store)

    assert engine.history == ()
    assert engine.current_display_value == "0"


def test_listeners_receive_snapshots(engine: CalculationEngine) -> None:
    received: List[EngineSnapshot] = []
    unsubscribe = engine.subscribe(received.append)

    press(engine, "4 x 2 =")
    assert received[-1].display == "8"
    assert len(received[-1].history) == 1
    assert received[-1].state is AccumulatorState.DISPLAYING_RESULT

    count = len(received)
    unsubscribe()
    press(engine, "1")
    assert len(received) == count


def test_history_is_read_only_view(engine: CalculationEngine) -> None:
    press(engine, "2 + 3 =")
    engine.history[0].operand2 = 40.0

    assert engine.history[0].operand2 == 3.0


def test_reload_keeps_explicit_operand1_edit(engine: CalculationEngine, store: InMemoryHistoryStore) -> None:
    press(engine, "2 + 3 x 4 =")
    engine.update_step(engine.history[1].id, operand1=10.0)
    assert [(s.operand1, s.result) for s in engine.history] == [(2.0, 5.0), (10.0, 40.0)]

    reloaded = CalculationEngine(store)

    assert reloaded.history == engine.history
    assert reloaded.current_display_value == engine.current_display_value == "40"


def test_reload_keeps_edited_finalize_step(engine: CalculationEngine, store: InMemoryHistoryStore) -> None:
    press(engine, "5 + 2 = 9 =")
    engine.update_step(engine.history[1].id, operand1=50.0)

    reloaded = CalculationEngine(store)

    assert reloaded.history == engine.history
    assert (reloaded.history[1].operand1, reloaded.history[1].result) == (50.0, 7.0)


def test_chained_division_by_zero_enters_error(engine: CalculationEngine) -> None:
    press(engine, "5 / 0 +")

    assert engine.current_display_value == "Error"
    assert engine.state is AccumulatorState.ERROR
    assert len(engine.history) == 1

    press(engine, "=")
    assert len(engine.history) == 1
    assert engine.current_display_value == "Error"
