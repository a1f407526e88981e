"""Mean-multiplier anomaly flagging.

An expense is anomalous when its amount is greater than the mean amount of
its category times a configurable multiplier (3.0 by default).
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import List

from penny.core.models import Expense
from penny.database import ExpenseStore

logger = logging.getLogger(__name__)

DEFAULT_MULTIPLIER = 3.0


class MeanMultiplierAnomalyDetector:
    def __init__(self, store: ExpenseStore, multiplier: float = DEFAULT_MULTIPLIER):
        self.store = store
        self.multiplier = Decimal(str(multiplier))

    def recalculate_for_category(self, category: str) -> None:
        """Re-derive the anomaly flag for every expense in ``category``.

        Must run after any insert or delete that touches the category. Every
        expense is written, so ones that no longer exceed the threshold are
        cleared as well as new outliers flagged.
        """
        expenses = self.store.list_by_category(category)
        if not expenses:
            return

        mean = sum((e.amount for e in expenses), Decimal(0)) / len(expenses)
        threshold = mean * self.multiplier

        to_flag = _ids(expenses, lambda e: e.amount > threshold)
        to_clear = _ids(expenses, lambda e: e.amount <= threshold)

        self.store.apply_anomaly_flags(to_flag, to_clear)

        logger.debug(
            "Anomaly recalc [category=%s, expenses=%d, mean=%.2f, threshold=%.2f, flagged=%d]",
            category, len(expenses), mean, threshold, len(to_flag),
        )

    def would_be_anomaly(self, category: str, amount) -> bool:
        """Whether ``amount`` exceeds the threshold of the existing history.

        The candidate amount is not included in the mean. With no history
        nothing can be judged and the answer is False.
        """
        mean = self.store.average_amount(category)
        if mean is None or mean == 0:
            return False
        return Decimal(str(amount)) > mean * self.multiplier


def _ids(expenses: List[Expense], predicate) -> List[int]:
    return [e.id for e in expenses if predicate(e)]
