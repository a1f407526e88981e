from datetime import date
from decimal import Decimal

import pytest

from penny.core.models import Expense
from penny.database import SQLiteExpenseStore


@pytest.fixture
def store(tmp_path):
    return SQLiteExpenseStore(str(tmp_path / "penny.db"))


def make_expense(amount, category="Food", vendor="Swiggy", when=date(2025, 1, 10), description=""):
    return Expense(
        date=when,
        amount=Decimal(str(amount)),
        vendor_name=vendor,
        description=description,
        category=category,
    )


@pytest.fixture
def expense_factory():
    return make_expense
