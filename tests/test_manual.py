from datetime import date
from decimal import Decimal

import pytest

from penny.manual import load_manual_expenses


def test_load_manual_expenses(tmp_path):
    path = tmp_path / 'manual.yaml'
    path.write_text(
        """\
- date: 2025-05-04
  description: Farmers Market
  merchant: CASH
  amount: 10
- date: '2025-05-06'
  vendor_name: Cult Fit
  amount: '1,499'
"""
    )
    with pytest.raises(ValueError, match="Unrecognized 'amount'"):
        load_manual_expenses(path)

    path.write_text(path.read_text().replace("'1,499'", "1499"))
    first, second = load_manual_expenses(path)
    assert first.date == date(2025, 5, 4)
    assert first.vendor_name == 'CASH'
    assert first.amount == Decimal('10')
    assert first.description == 'Farmers Market'
    assert second.date == date(2025, 5, 6)
    assert second.vendor_name == 'Cult Fit'
    assert second.description is None


def test_missing_fields_are_left_for_validation(tmp_path):
    path = tmp_path / 'manual.yaml'
    path.write_text("- vendor_name: Uber\n")
    (req,) = load_manual_expenses(path)
    assert req.date is None
    assert req.amount is None


def test_empty_and_malformed_files(tmp_path):
    path = tmp_path / 'manual.yaml'
    path.write_text("")
    assert load_manual_expenses(path) == []

    path.write_text("vendor_name: Uber\n")
    with pytest.raises(ValueError):
        load_manual_expenses(path)
