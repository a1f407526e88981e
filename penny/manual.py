from datetime import date, datetime
from decimal import Decimal, InvalidOperation

import yaml

from penny.core.models import ExpenseRequest


def _parse_date(value, entry):
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.fromisoformat(str(value)).date()
    except ValueError:
        raise ValueError(f"Unrecognized 'date' in manual entry: {entry}")


def _parse_amount(value, entry):
    if value is None or value == '':
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"Unrecognized 'amount' in manual entry: {entry}")


def load_manual_expenses(path):
    """Load manually entered expenses from a YAML list.

    Each entry has ``date`` (ISO), ``amount``, ``vendor_name`` (``merchant``
    is accepted too) and an optional ``description``. Business validation
    happens when the requests are created, not here.
    """
    with open(path, encoding='utf-8') as f:
        data = yaml.safe_load(f) or []
    if not isinstance(data, list):
        raise ValueError(f"Manual expense file {path} must contain a list")

    requests = []
    for entry in data:
        if not isinstance(entry, dict):
            raise ValueError(f"Manual entry must be a mapping: {entry!r}")
        requests.append(
            ExpenseRequest(
                date=_parse_date(entry.get('date'), entry),
                amount=_parse_amount(entry.get('amount'), entry),
                vendor_name=entry.get('vendor_name', entry.get('merchant')),
                description=entry.get('description'),
            )
        )
    return requests
