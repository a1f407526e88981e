from __future__ import annotations

from collections import defaultdict
from decimal import Decimal
from typing import Dict, Iterable, List

from penny.core.models import CategoryStat, DashboardSnapshot, Expense, VendorStat
from penny.database import ExpenseStore
from penny.utils import month_key

TOP_VENDORS_LIMIT = 5


class DashboardAssembler:
    """Build the dashboard from the current store contents on every call."""

    def __init__(self, store: ExpenseStore, top_vendors_limit: int = TOP_VENDORS_LIMIT):
        self.store = store
        self.top_vendors_limit = top_vendors_limit

    def assemble(self) -> DashboardSnapshot:
        expenses = self.store.list_all()
        anomalies = self.store.list_anomalies()
        return DashboardSnapshot(
            monthly_by_category=monthly_by_category(expenses),
            top_vendors=top_vendors(expenses, self.top_vendors_limit),
            category_totals=category_totals(expenses),
            anomalies=anomalies,
        )


def monthly_by_category(expenses: Iterable[Expense]) -> Dict[str, Dict[str, Decimal]]:
    """{"2024-01": {"Food": Decimal("1200.00"), ...}, ...}"""
    result: Dict[str, Dict[str, Decimal]] = {}
    for e in expenses:
        cats = result.setdefault(month_key(e.date), {})
        cats[e.category] = cats.get(e.category, Decimal(0)) + e.amount
    return result


def _rollup(expenses: Iterable[Expense], key) -> List[tuple]:
    # dicts keep first-encountered order and sorted() is stable, so ties
    # stay in encounter order
    totals: Dict[str, Decimal] = {}
    counts: Dict[str, int] = defaultdict(int)
    for e in expenses:
        k = key(e)
        totals[k] = totals.get(k, Decimal(0)) + e.amount
        counts[k] += 1
    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    return [(k, total, counts[k]) for k, total in ranked]


def category_totals(expenses: Iterable[Expense]) -> List[CategoryStat]:
    return [
        CategoryStat(category=k, total=total, count=count)
        for k, total, count in _rollup(expenses, lambda e: e.category)
    ]


def top_vendors(expenses: Iterable[Expense], limit: int = TOP_VENDORS_LIMIT) -> List[VendorStat]:
    return [
        VendorStat(vendor_name=k, total=total, count=count)
        for k, total, count in _rollup(expenses, lambda e: e.vendor_name)[:limit]
    ]
