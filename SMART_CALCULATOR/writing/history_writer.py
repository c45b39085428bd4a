"""Tabular export of the step ledger."""
from __future__ import annotations

from pathlib import Path
from typing import Sequence

import pandas as pd

from SMART_CALCULATOR.engine.arithmetic import format_display
from SMART_CALCULATOR.engine.step import Step


COLUMNS = ["position", "id", "operand1", "operation", "operand2", "result", "display"]


def history_to_frame(steps: Sequence[Step]) -> pd.DataFrame:
    rows = [
        {
            "position": position,
            "id": step.id,
            "operand1": step.operand1,
            "operation": step.operation.value,
            "operand2": step.operand2,
            "result": step.result,
            "display": format_display(step.result),
        }
        for position, step in enumerate(steps, start=1)
    ]
    return pd.DataFrame(rows, columns=COLUMNS)


def write_history(steps: Sequence[Step], path: Path) -> Path:
    """Write the ledger as CSV or JSON records, chosen by the file suffix."""
    path = Path(path)
    frame = history_to_frame(steps)
    suffix = path.suffix.lower()
    path.parent.mkdir(parents=True, exist_ok=True)
    if suffix == ".csv":
        frame.to_csv(path, index=False)
    elif suffix == ".json":
        frame.to_json(path, orient="records", indent=2, force_ascii=False)
    else:
        raise ValueError(f"Unsupported export format {suffix!r}; use .csv or .json")
    return path
