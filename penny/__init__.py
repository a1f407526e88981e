"""Expense ingestion, keyword categorization and anomaly flagging."""

__version__ = "0.1.0"
