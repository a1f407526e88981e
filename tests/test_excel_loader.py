from datetime import date, datetime
from decimal import Decimal

import pandas as pd

from penny.loaders import get_parser
from penny.loaders.excel_loader import ExcelExpenseParser, LegacyExcelExpenseParser


def _fake_sheet(monkeypatch, rows, calls=None):
    df = pd.DataFrame(rows)

    def fake_read_excel(handle, *args, **kwargs):
        if calls is not None:
            calls.append(kwargs)
        return df

    monkeypatch.setattr(pd, 'read_excel', fake_read_excel)


def test_excel_rows_share_csv_validation(monkeypatch):
    _fake_sheet(monkeypatch, [
        ['Vendor Name', 'Amount', 'Date', 'Description'],
        ['Netflix', 499.0, datetime(2025, 3, 1), 'monthly'],
        ['Uber', float('nan'), '2025-03-02', None],
        ['Amazon', '1,299.50', '15/03/2025', None],
    ])

    result = ExcelExpenseParser().parse('fake.xlsx')

    assert [e.vendor_name for e in result.expenses] == ['Netflix', 'Amazon']
    netflix, amazon = result.expenses
    assert netflix.amount == Decimal('499')
    assert netflix.date == date(2025, 3, 1)
    assert netflix.category == 'Entertainment'
    assert amazon.amount == Decimal('1299.50')
    assert amazon.date == date(2025, 3, 15)
    assert amazon.description == ''
    assert result.messages == ['Row 3: amount is required']


def test_excel_empty_sheet(monkeypatch):
    _fake_sheet(monkeypatch, [])
    result = ExcelExpenseParser().parse('fake.xlsx')
    assert result.expenses == []
    assert result.messages == ['file is empty or has no headers']


def test_excel_unreadable_workbook(monkeypatch):
    def broken(*args, **kwargs):
        raise ValueError('File is not a zip file')

    monkeypatch.setattr(pd, 'read_excel', broken)
    result = ExcelExpenseParser().parse(b'not a workbook')
    assert result.expenses == []
    assert result.messages == ['file could not be read: File is not a zip file']


def test_engine_per_parser(monkeypatch):
    calls = []
    _fake_sheet(monkeypatch, [['vendor', 'amount'], ['Swiggy', 10]], calls)
    ExcelExpenseParser().parse('a.xlsx')
    LegacyExcelExpenseParser().parse('a.xls')
    assert [c['engine'] for c in calls] == ['openpyxl', 'xlrd']


def test_get_parser_by_extension():
    assert type(get_parser('upload.XLSX')) is ExcelExpenseParser
    assert type(get_parser('old.xls')) is LegacyExcelExpenseParser
