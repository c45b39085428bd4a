"""Persistence error types."""
from __future__ import annotations


class PersistenceError(Exception):
    """Raised by a history store when steps cannot be read or written."""
