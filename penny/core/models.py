# penny/core/models.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional

_CENT = Decimal("0.01")


def format_amount(value: Decimal) -> str:
    return f"{Decimal(value).quantize(_CENT):f}"


@dataclass
class Expense:
    date: date
    amount: Decimal
    vendor_name: str
    category: str
    description: str = ""
    is_anomaly: bool = False
    id: Optional[int] = None
    created_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "amount": format_amount(self.amount),
            "vendor_name": self.vendor_name,
            "description": self.description,
            "category": self.category,
            "is_anomaly": self.is_anomaly,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass
class ExpenseRequest:
    """Input for a single manually entered expense."""
    date: Optional[date]
    amount: Optional[Decimal]
    vendor_name: Optional[str]
    description: Optional[str] = None


@dataclass(frozen=True)
class RowError:
    row: Optional[int]
    message: str

    def __str__(self) -> str:
        if self.row is None:
            return self.message
        return f"Row {self.row}: {self.message}"


@dataclass
class ParseResult:
    expenses: List[Expense] = field(default_factory=list)
    errors: List[RowError] = field(default_factory=list)

    @property
    def messages(self) -> List[str]:
        return [str(err) for err in self.errors]


@dataclass
class UploadResult:
    added: int
    failed: int
    errors: List[str]


@dataclass
class MonthlyCategoryTotal:
    month: str
    category: str
    total: Decimal
    count: int


@dataclass
class VendorStat:
    vendor_name: str
    total: Decimal
    count: int

    def to_dict(self) -> Dict[str, object]:
        return {
            "vendor_name": self.vendor_name,
            "total": format_amount(self.total),
            "count": self.count,
        }


@dataclass
class CategoryStat:
    category: str
    total: Decimal
    count: int

    def to_dict(self) -> Dict[str, object]:
        return {
            "category": self.category,
            "total": format_amount(self.total),
            "count": self.count,
        }


@dataclass
class DashboardSnapshot:
    monthly_by_category: Dict[str, Dict[str, Decimal]]
    top_vendors: List[VendorStat]
    category_totals: List[CategoryStat]
    anomalies: List[Expense]

    @property
    def anomaly_count(self) -> int:
        return len(self.anomalies)

    def to_dict(self) -> Dict[str, object]:
        return {
            "monthly_by_category": {
                month: {cat: format_amount(total) for cat, total in cats.items()}
                for month, cats in self.monthly_by_category.items()
            },
            "top_vendors": [v.to_dict() for v in self.top_vendors],
            "category_totals": [c.to_dict() for c in self.category_totals],
            "anomalies": [e.to_dict() for e in self.anomalies],
            "anomaly_count": self.anomaly_count,
        }
