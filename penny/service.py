"""Sequence categorization, persistence and anomaly recalculation."""

from __future__ import annotations

import logging
from decimal import Decimal
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from penny.anomaly import MeanMultiplierAnomalyDetector
from penny.config import DEFAULT_CONFIG, build_categorizer
from penny.core.categorizer import KeywordCategorizer
from penny.core.models import DashboardSnapshot, Expense, ExpenseRequest, UploadResult
from penny.dashboard import DashboardAssembler
from penny.database import ExpenseStore, SQLiteExpenseStore
from penny.exceptions import ExpenseNotFoundError, InvalidExpenseError
from penny.loaders import get_parser
from penny.loaders.base import BaseParser, RowValidationError, check_amount
from penny.manual import load_manual_expenses
from penny.utils import filter_expenses_by_month

logger = logging.getLogger(__name__)


class ExpenseService:
    """Entry point for adding, removing, importing and reporting expenses.

    Every write is followed by an anomaly recalculation for each category it
    touched, once per distinct category.
    """

    def __init__(
        self,
        store: ExpenseStore,
        categorizer: KeywordCategorizer | None = None,
        detector: MeanMultiplierAnomalyDetector | None = None,
        assembler: DashboardAssembler | None = None,
        config: Mapping[str, object] | None = None,
    ):
        self.config = dict(config or DEFAULT_CONFIG)
        self.store = store
        self.categorizer = categorizer or build_categorizer(self.config)
        self.detector = detector or MeanMultiplierAnomalyDetector(
            store, float(self.config["anomaly_multiplier"])
        )
        self.assembler = assembler or DashboardAssembler(
            store, int(self.config["top_vendors_limit"])
        )

    @classmethod
    def from_config(cls, config: Mapping[str, object]) -> "ExpenseService":
        return cls(SQLiteExpenseStore(str(config["db_path"])), config=config)

    # Read

    def list_expenses(self, month: str | None = None) -> List[Expense]:
        expenses = self.store.list_all()
        if month:
            expenses = filter_expenses_by_month(expenses, month)
        return expenses

    def get_expense(self, expense_id: int) -> Expense:
        expense = self.store.find_by_id(expense_id)
        if expense is None:
            raise ExpenseNotFoundError(expense_id)
        return expense

    def rules(self) -> Mapping[str, str]:
        return self.categorizer.get_rules()

    def dashboard(self) -> DashboardSnapshot:
        return self.assembler.assemble()

    def check_anomaly(self, vendor_name: str, amount) -> Dict[str, object]:
        """Preview how an expense would be categorized and flagged."""
        category = self.categorizer.categorize(vendor_name)
        return {
            "category": category,
            "would_be_anomaly": self.detector.would_be_anomaly(category, amount),
        }

    # Write

    def create_expense(self, request: ExpenseRequest) -> Expense:
        _validate(request)
        category = self.categorizer.categorize(request.vendor_name)
        saved = self.store.insert(
            Expense(
                date=request.date,
                amount=Decimal(str(request.amount)),
                vendor_name=request.vendor_name.strip(),
                description=(request.description or "").strip(),
                category=category,
            )
        )
        self.detector.recalculate_for_category(category)
        return self.get_expense(saved.id)

    def delete_expense(self, expense_id: int) -> None:
        expense = self.get_expense(expense_id)
        if not self.store.delete_by_id(expense_id):
            raise ExpenseNotFoundError(expense_id)
        self.detector.recalculate_for_category(expense.category)
        logger.debug("Deleted expense [id=%s, category=%s]", expense_id, expense.category)

    def upload_file(
        self,
        source,
        filename: str | None = None,
        parser: Optional[BaseParser] = None,
    ) -> UploadResult:
        """Parse a CSV/Excel upload and persist every valid row.

        Valid rows are stored in one batch even when other rows fail; the
        failures come back in ``UploadResult.errors``.
        """
        if parser is None:
            name = filename or (str(source) if isinstance(source, (str, Path)) else "upload.csv")
            parser = get_parser(name, self.config, self.categorizer)

        parsed = parser.parse(source)
        if parsed.expenses:
            self.store.insert_batch(parsed.expenses)
            affected = dict.fromkeys(e.category for e in parsed.expenses)
            for category in affected:
                self.detector.recalculate_for_category(category)

        logger.info("File upload: added=%d, errors=%d", len(parsed.expenses), len(parsed.errors))
        return UploadResult(
            added=len(parsed.expenses),
            failed=len(parsed.errors),
            errors=parsed.messages,
        )

    def import_manual(self, path) -> List[Expense]:
        return [self.create_expense(req) for req in load_manual_expenses(path)]


def _validate(request: ExpenseRequest) -> None:
    errors = []
    if request.date is None:
        errors.append("date is required")
    if request.amount is None:
        errors.append("amount is required")
    else:
        try:
            check_amount(Decimal(str(request.amount)), request.amount)
        except RowValidationError as exc:
            errors.append(str(exc))
        except (ArithmeticError, TypeError, ValueError):
            errors.append(f"invalid amount value: '{request.amount}'")
    if not request.vendor_name or not str(request.vendor_name).strip():
        errors.append("vendor_name is required")
    if errors:
        raise InvalidExpenseError(errors)
