"""Error types raised across the ingestion pipeline.

Row-level parse failures are not exceptions at the API surface; they are
collected into :class:`penny.core.models.ParseResult`. The classes below
cover the conditions a caller has to tell apart.
"""

from __future__ import annotations

from typing import Iterable, List


class PennyError(Exception):
    """Base class for every error raised by this package."""


class ExpenseNotFoundError(PennyError):
    """Raised when an expense id does not exist in the store."""

    def __init__(self, expense_id: int):
        self.expense_id = expense_id
        super().__init__(f"Expense not found: {expense_id}")


class InvalidExpenseError(PennyError):
    """Raised when a manually entered expense fails validation.

    ``errors`` holds one message per failing field.
    """

    def __init__(self, errors: Iterable[str]):
        self.errors: List[str] = list(errors)
        super().__init__("; ".join(self.errors))


class UnsupportedFileError(PennyError):
    """Raised when no parser is registered for an uploaded file type."""


class ConfigError(PennyError):
    """Raised for malformed configuration values."""
