"""Key-value history stores: an in-process mapping and a JSON document on disk."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Sequence

from loguru import logger

from SMART_CALCULATOR.config.settings import DEFAULT_HISTORY_KEY
from SMART_CALCULATOR.engine.step import Step
from SMART_CALCULATOR.interfaces.store import HistoryStore
from SMART_CALCULATOR.storage.errors import PersistenceError


def encode_steps(steps: Sequence[Step]) -> str:
    return json.dumps([step.to_dict() for step in steps])


def decode_steps(payload: Any) -> List[Step]:
    """Decode a JSON string (or already-parsed list) into steps."""
    try:
        raw = json.loads(payload) if isinstance(payload, str) else payload
        if not isinstance(raw, list):
            raise TypeError(f"expected a list of steps, got {type(raw).__name__}")
        return [Step.from_dict(item) for item in raw]
    except (TypeError, ValueError, KeyError) as exc:
        raise PersistenceError(f"Failed to decode history: {exc}") from exc


class InMemoryHistoryStore(HistoryStore):
    """Process-local key-value store holding encoded history, one instance per owner."""

    def __init__(self, key: str = DEFAULT_HISTORY_KEY, values: Dict[str, str] | None = None) -> None:
        self.key = key
        self.values: Dict[str, str] = values if values is not None else {}

    def load(self) -> List[Step]:
        if self.key not in self.values:
            return []
        return decode_steps(self.values[self.key])

    def save(self, steps: Sequence[Step]) -> None:
        self.values[self.key] = encode_steps(steps)


class JsonFileHistoryStore(HistoryStore):
    """JSON document mapping keys to step lists. Other keys in the file are preserved."""

    def __init__(self, path: Path, key: str = DEFAULT_HISTORY_KEY) -> None:
        self.path = Path(path)
        self.key = key

    def _read_document(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            document = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise PersistenceError(f"Failed to read {self.path}: {exc}") from exc
        if not isinstance(document, dict):
            raise PersistenceError(f"{self.path} does not hold a key-value document")
        return document

    def load(self) -> List[Step]:
        document = self._read_document()
        if self.key not in document:
            logger.debug(f"No saved history under {self.key!r} in {self.path}")
            return []
        return decode_steps(document[self.key])

    def save(self, steps: Sequence[Step]) -> None:
        try:
            document = self._read_document()
        except PersistenceError:
            logger.warning(f"Overwriting unreadable history document {self.path}")
            document = {}
        document[self.key] = [step.to_dict() for step in steps]
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(document, indent=2), encoding="utf-8")
        except OSError as exc:
            raise PersistenceError(f"Failed to write {self.path}: {exc}") from exc
