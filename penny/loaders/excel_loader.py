# penny/loaders/excel_loader.py
import io
import logging
import os
from datetime import date, datetime

import pandas as pd

from penny.core.models import ParseResult, RowError
from penny.loaders.base import EMPTY_FILE_MESSAGE, BaseParser, read_source

logger = logging.getLogger(__name__)


def _cell_text(value):
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return ""
    if isinstance(value, (datetime, pd.Timestamp)):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class ExcelExpenseParser(BaseParser):
    """
    Parser for .xlsx / .xls workbooks. Only the first sheet is read.

    Cells are converted to text before validation so the same alias, amount
    and date rules apply as for CSV. Date cells typed by Excel become ISO
    strings.
    """
    engine = "openpyxl"

    def parse(self, source):
        try:
            if isinstance(source, (str, os.PathLike)):
                handle = source
            else:
                handle = io.BytesIO(read_source(source))
            df = pd.read_excel(handle, header=None, engine=self.engine)
        except Exception as exc:
            # openpyxl/xlrd raise a wide range of types for corrupt workbooks
            logger.error("Fatal workbook read error: %s", exc)
            return ParseResult(errors=[RowError(None, f"file could not be read: {exc}")])

        lines = [[_cell_text(v) for v in row] for row in df.itertuples(index=False, name=None)]
        if not lines or not any(cell.strip() for cell in lines[0]):
            return ParseResult(errors=[RowError(None, EMPTY_FILE_MESSAGE)])

        rows = (
            (row_number, row)
            for row_number, row in enumerate(lines[1:], start=2)
            if any(cell.strip() for cell in row)
        )
        result = self.parse_rows(lines[0], rows)
        logger.info(
            "Parsed workbook: %d expense(s), %d row error(s)",
            len(result.expenses), len(result.errors),
        )
        return result


class LegacyExcelExpenseParser(ExcelExpenseParser):
    """Parser for old binary .xls workbooks."""
    engine = "xlrd"
