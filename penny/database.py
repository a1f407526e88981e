import sqlite3
from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from penny.core.models import Expense, MonthlyCategoryTotal, VendorStat

# SQLite's default host-parameter limit is 999 on older builds.
_MAX_PARAMS = 500


class ExpenseStore(ABC):
    """Persistence operations the pipeline depends on.

    Ids and ``created_at`` are assigned by the store; the anomaly flag is
    only ever written through :meth:`apply_anomaly_flags` or
    :meth:`bulk_set_anomaly_flag`.
    """

    @abstractmethod
    def insert(self, expense: Expense) -> Expense:
        ...

    @abstractmethod
    def insert_batch(self, expenses: Sequence[Expense]) -> List[Expense]:
        ...

    @abstractmethod
    def find_by_id(self, expense_id: int) -> Optional[Expense]:
        ...

    @abstractmethod
    def delete_by_id(self, expense_id: int) -> bool:
        """Return False when no expense has that id."""

    @abstractmethod
    def list_all(self) -> List[Expense]:
        """All expenses, newest date first, ties by descending id."""

    @abstractmethod
    def list_by_category(self, category: str) -> List[Expense]:
        ...

    @abstractmethod
    def list_anomalies(self) -> List[Expense]:
        """Flagged expenses, largest amount first."""

    @abstractmethod
    def average_amount(self, category: str) -> Optional[Decimal]:
        """Mean amount for a category, or None when it has no expenses."""

    @abstractmethod
    def bulk_set_anomaly_flag(self, ids: Iterable[int], flag: bool) -> None:
        ...

    @abstractmethod
    def apply_anomaly_flags(self, flagged: Iterable[int], cleared: Iterable[int]) -> None:
        """Set ``flagged`` and clear ``cleared`` together; neither lands alone."""

    @abstractmethod
    def monthly_category_totals(self) -> List[MonthlyCategoryTotal]:
        ...

    @abstractmethod
    def vendor_totals(self, limit: int) -> List[VendorStat]:
        ...


def _to_cents(amount) -> int:
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _from_cents(cents) -> Decimal:
    return Decimal(int(cents)).scaleb(-2)


def _init_db(conn: sqlite3.Connection) -> None:
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS expenses (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            date TEXT NOT NULL,
            amount_cents INTEGER NOT NULL CHECK (amount_cents > 0),
            vendor_name TEXT NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            category TEXT NOT NULL,
            is_anomaly INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL
        );
        CREATE INDEX IF NOT EXISTS idx_expense_category ON expenses (category);
        CREATE INDEX IF NOT EXISTS idx_expense_date ON expenses (date);
        CREATE INDEX IF NOT EXISTS idx_expense_anomaly ON expenses (is_anomaly);
        """
    )
    conn.commit()


_COLUMNS = "id, date, amount_cents, vendor_name, description, category, is_anomaly, created_at"


def _row_to_expense(row) -> Expense:
    return Expense(
        id=row[0],
        date=date.fromisoformat(row[1]),
        amount=_from_cents(row[2]),
        vendor_name=row[3],
        description=row[4],
        category=row[5],
        is_anomaly=bool(row[6]),
        created_at=datetime.fromisoformat(row[7]),
    )


class SQLiteExpenseStore(ExpenseStore):
    """SQLite-backed store. Each call opens and closes its own connection.

    Amounts are kept as integer cents so sums and means stay exact.
    """

    def __init__(self, db_path: str):
        self.db_path = str(db_path)

    def _connect(self) -> sqlite3.Connection:
        path = Path(self.db_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(path)
        _init_db(conn)
        return conn

    def _insert(self, conn: sqlite3.Connection, expense: Expense, created_at: datetime) -> Expense:
        stored = replace(
            expense,
            vendor_name=expense.vendor_name.strip(),
            description=(expense.description or "").strip(),
            amount=_from_cents(_to_cents(expense.amount)),
            is_anomaly=False,
            created_at=created_at,
        )
        cur = conn.execute(
            """
            INSERT INTO expenses
            (date, amount_cents, vendor_name, description, category, is_anomaly, created_at)
            VALUES (?, ?, ?, ?, ?, 0, ?)
            """,
            (
                stored.date.isoformat(),
                _to_cents(stored.amount),
                stored.vendor_name,
                stored.description,
                stored.category,
                created_at.isoformat(),
            ),
        )
        return replace(stored, id=cur.lastrowid)

    def insert(self, expense: Expense) -> Expense:
        conn = self._connect()
        try:
            saved = self._insert(conn, expense, datetime.now())
            conn.commit()
            return saved
        finally:
            conn.close()

    def insert_batch(self, expenses: Sequence[Expense]) -> List[Expense]:
        """Insert all expenses in one transaction; nothing is stored on failure."""
        if not expenses:
            return []
        conn = self._connect()
        try:
            created_at = datetime.now()
            with conn:
                return [self._insert(conn, e, created_at) for e in expenses]
        finally:
            conn.close()

    def find_by_id(self, expense_id: int) -> Optional[Expense]:
        conn = self._connect()
        try:
            row = conn.execute(
                f"SELECT {_COLUMNS} FROM expenses WHERE id = ?", (expense_id,)
            ).fetchone()
            return _row_to_expense(row) if row else None
        finally:
            conn.close()

    def delete_by_id(self, expense_id: int) -> bool:
        conn = self._connect()
        try:
            cur = conn.execute("DELETE FROM expenses WHERE id = ?", (expense_id,))
            conn.commit()
            return cur.rowcount > 0
        finally:
            conn.close()

    def _select(self, where: str = "", params: Sequence = (), order: str = "id") -> List[Expense]:
        conn = self._connect()
        try:
            rows = conn.execute(
                f"SELECT {_COLUMNS} FROM expenses {where} ORDER BY {order}", params
            ).fetchall()
            return [_row_to_expense(r) for r in rows]
        finally:
            conn.close()

    def list_all(self) -> List[Expense]:
        return self._select(order="date DESC, id DESC")

    def list_by_category(self, category: str) -> List[Expense]:
        return self._select("WHERE category = ?", (category,))

    def list_anomalies(self) -> List[Expense]:
        return self._select("WHERE is_anomaly = 1", order="amount_cents DESC, id")

    def average_amount(self, category: str) -> Optional[Decimal]:
        conn = self._connect()
        try:
            total, count = conn.execute(
                "SELECT COALESCE(SUM(amount_cents), 0), COUNT(*) FROM expenses WHERE category = ?",
                (category,),
            ).fetchone()
        finally:
            conn.close()
        if not count:
            return None
        return (Decimal(total) / Decimal(count)).scaleb(-2)

    def _set_flag(self, conn: sqlite3.Connection, ids: List[int], flag: bool) -> None:
        for start in range(0, len(ids), _MAX_PARAMS):
            chunk = ids[start:start + _MAX_PARAMS]
            placeholders = ", ".join("?" for _ in chunk)
            conn.execute(
                f"UPDATE expenses SET is_anomaly = ? WHERE id IN ({placeholders})",
                [int(flag), *chunk],
            )

    def bulk_set_anomaly_flag(self, ids: Iterable[int], flag: bool) -> None:
        self.apply_anomaly_flags(ids if flag else [], [] if flag else ids)

    def apply_anomaly_flags(self, flagged: Iterable[int], cleared: Iterable[int]) -> None:
        flagged, cleared = list(flagged), list(cleared)
        if not flagged and not cleared:
            return
        conn = self._connect()
        try:
            with conn:
                self._set_flag(conn, flagged, True)
                self._set_flag(conn, cleared, False)
        finally:
            conn.close()

    def monthly_category_totals(self) -> List[MonthlyCategoryTotal]:
        conn = self._connect()
        try:
            rows = conn.execute(
                """
                SELECT strftime('%Y-%m', date) AS month,
                       category,
                       SUM(amount_cents) AS total,
                       COUNT(*) AS count
                FROM expenses
                GROUP BY month, category
                ORDER BY month DESC, total DESC
                """
            ).fetchall()
        finally:
            conn.close()
        return [
            MonthlyCategoryTotal(month=r[0], category=r[1], total=_from_cents(r[2]), count=int(r[3]))
            for r in rows
        ]

    def vendor_totals(self, limit: int) -> List[VendorStat]:
        conn = self._connect()
        try:
            rows = conn.execute(
                """
                SELECT vendor_name,
                       SUM(amount_cents) AS total,
                       COUNT(*) AS count
                FROM expenses
                GROUP BY vendor_name
                ORDER BY total DESC, MIN(id)
                LIMIT ?
                """,
                (limit,),
            ).fetchall()
        finally:
            conn.close()
        return [
            VendorStat(vendor_name=r[0], total=_from_cents(r[1]), count=int(r[2]))
            for r in rows
        ]
