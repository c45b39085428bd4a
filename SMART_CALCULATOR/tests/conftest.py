"""Shared fixtures for SmartCalculator tests."""
from __future__ import annotations

import pytest
from loguru import logger

from SMART_CALCULATOR.engine.calculator import CalculationEngine
from SMART_CALCULATOR.storage.history_store import InMemoryHistoryStore


@pytest.fixture
def store() -> InMemoryHistoryStore:
    return InMemoryHistoryStore()


@pytest.fixture
def engine(store: InMemoryHistoryStore) -> CalculationEngine:
    return CalculationEngine(store)


@pytest.fixture
def log_messages():
    messages: list[str] = []
    handler_id = logger.add(lambda message: messages.append(message.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler_id)
