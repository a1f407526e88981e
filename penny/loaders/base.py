# penny/loaders/base.py
from __future__ import annotations

import io
import os
import re
from abc import ABC, abstractmethod
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, Sequence, Union

from penny.core.categorizer import KeywordCategorizer
from penny.core.models import Expense, ParseResult, RowError

Source = Union[str, os.PathLike, bytes, io.IOBase]

EMPTY_FILE_MESSAGE = "file is empty or has no headers"

VENDOR_ALIASES = ("vendor_name", "vendor", "merchant")
AMOUNT_ALIASES = ("amount", "amt", "price")
DATE_ALIASES = ("date", "expense_date", "txn_date")
DESC_ALIASES = ("description", "desc", "notes")

# Tried in order. strptime accepts a single digit for %d and %m, so each
# format carries a pattern that pins the field widths.
DATE_FORMATS = (
    (re.compile(r"\d{4}-\d{2}-\d{2}"), "%Y-%m-%d"),
    (re.compile(r"\d{2}/\d{2}/\d{4}"), "%d/%m/%Y"),
    (re.compile(r"\d{2}/\d{2}/\d{4}"), "%m/%d/%Y"),
    (re.compile(r"\d{2}-\d{2}-\d{4}"), "%d-%m-%Y"),
    (re.compile(r"\d{1,2}/\d{1,2}/\d{4}"), "%d/%m/%Y"),
)

# The store keeps whole cents with at most ten integer digits.
MIN_AMOUNT = Decimal("0.01")
MAX_AMOUNT = Decimal("9999999999.99")

_AMOUNT_NOISE = (",", "₹", "$")


class RowValidationError(ValueError):
    """A single row failed validation; the rest of the file still loads."""


class BaseParser(ABC):
    def __init__(self, categorizer: KeywordCategorizer | None = None):
        self.categorizer = categorizer or KeywordCategorizer()

    @abstractmethod
    def parse(self, source: Source) -> ParseResult:
        """
        Read tabular expense data from source.
        Row failures are collected into the result instead of raised.
        """
        pass

    def parse_rows(self, header: Sequence[str], rows: Iterable[tuple[int, Sequence[str]]]) -> ParseResult:
        """Validate data rows against a header.

        ``rows`` yields ``(row_number, cells)`` with the header counted as
        row 1.
        """
        result = ParseResult()
        index = build_column_index(header)
        for row_number, cells in rows:
            try:
                result.expenses.append(self.parse_row(cells, index))
            except RowValidationError as exc:
                result.errors.append(RowError(row_number, str(exc)))
        return result

    def parse_row(self, cells: Sequence[str], index: Dict[str, int]) -> Expense:
        vendor = get_column(cells, index, VENDOR_ALIASES)
        amount_raw = get_column(cells, index, AMOUNT_ALIASES)
        date_raw = get_column(cells, index, DATE_ALIASES)
        desc = get_column(cells, index, DESC_ALIASES)

        if not vendor:
            raise RowValidationError("vendor_name is required")
        amount = parse_amount(amount_raw)
        when = parse_date(date_raw)
        return Expense(
            date=when,
            amount=amount,
            vendor_name=vendor.strip(),
            description=desc.strip(),
            category=self.categorizer.categorize(vendor),
        )


def read_source(source: Source) -> bytes | str:
    """Return the full contents of a path, bytes object or open file."""
    if isinstance(source, (bytes, bytearray)):
        return bytes(source)
    if isinstance(source, (str, os.PathLike)):
        with open(source, "rb") as f:
            return f.read()
    return source.read()


def normalize_header(name: str) -> str:
    return str(name).strip().lower().replace(" ", "_")


def build_column_index(header: Sequence[str]) -> Dict[str, int]:
    index = {}
    for idx, name in enumerate(header):
        index[normalize_header(name)] = idx
    return index


def get_column(cells: Sequence[str], index: Dict[str, int], aliases: Sequence[str]) -> str:
    for alias in aliases:
        idx = index.get(alias)
        if idx is not None and idx < len(cells):
            return str(cells[idx]).strip()
    return ""


def parse_amount(raw: str) -> Decimal:
    if not raw or not raw.strip():
        raise RowValidationError("amount is required")
    cleaned = raw
    for noise in _AMOUNT_NOISE:
        cleaned = cleaned.replace(noise, "")
    try:
        amount = Decimal(cleaned.strip())
    except InvalidOperation:
        raise RowValidationError(f"invalid amount value: '{raw}'")
    return check_amount(amount, raw)


def check_amount(amount: Decimal, raw) -> Decimal:
    """Reject amounts the store cannot hold as a positive number of cents."""
    if not amount.is_finite() or amount > MAX_AMOUNT:
        raise RowValidationError(f"invalid amount value: '{raw}'")
    if amount < MIN_AMOUNT:
        raise RowValidationError("amount must be greater than 0")
    return amount


def parse_date(raw: str, today: date | None = None) -> date:
    if not raw or not raw.strip():
        return today or date.today()
    text = raw.strip()
    for pattern, fmt in DATE_FORMATS:
        if not pattern.fullmatch(text):
            continue
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    raise RowValidationError(f"unrecognised date format: '{text}'")
