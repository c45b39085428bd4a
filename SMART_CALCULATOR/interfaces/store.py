"""Abstract base class for step-history persistence."""
from __future__ import annotations

import abc
from typing import List, Sequence

from SMART_CALCULATOR.engine.step import Step


class HistoryStore(abc.ABC):
    """Durable home of the step chain. Missing data loads as an empty list."""

    @abc.abstractmethod
    def load(self) -> List[Step]:
        """Return the persisted steps in order, raising PersistenceError on undecodable data."""

    @abc.abstractmethod
    def save(self, steps: Sequence[Step]) -> None:
        """Replace the persisted steps, raising PersistenceError when the write fails."""
