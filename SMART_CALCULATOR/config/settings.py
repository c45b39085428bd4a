"""Centralized configuration loader for SmartCalculator."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR.parent / ".env"

load_dotenv(ENV_PATH)

DEFAULT_HISTORY_PATH = Path.home() / ".smart_calculator" / "history.json"
DEFAULT_HISTORY_KEY = "calculationHistory"
DEFAULT_LOG_LEVEL = "INFO"


@dataclass
class Settings:
    history_path: Path
    history_key: str
    log_level: str


def get_settings() -> Settings:
    history_path = os.getenv("SMART_CALC_HISTORY_PATH")
    history_key = os.getenv("SMART_CALC_HISTORY_KEY")
    log_level = os.getenv("SMART_CALC_LOG_LEVEL")

    return Settings(
        history_path=Path(history_path).expanduser() if history_path else DEFAULT_HISTORY_PATH,
        history_key=history_key or DEFAULT_HISTORY_KEY,
        log_level=(log_level or DEFAULT_LOG_LEVEL).upper(),
    )
