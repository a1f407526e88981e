# penny/loaders/csv_loader.py
import csv
import io
import logging

from penny.core.models import ParseResult, RowError
from penny.loaders.base import EMPTY_FILE_MESSAGE, BaseParser, read_source

logger = logging.getLogger(__name__)


class CSVExpenseParser(BaseParser):
    """
    Parser for comma-separated expense exports.

    The header row is matched case-insensitively against the column aliases
    in penny.loaders.base (e.g. "Vendor Name", "merchant", "Amt", "Txn Date").
    Columns that are not recognised are ignored. A blank line between data
    rows is a row like any other and fails for its missing vendor.
    """

    def parse(self, source):
        try:
            raw = read_source(source)
            text = raw.decode("utf-8-sig") if isinstance(raw, bytes) else raw
            lines = list(csv.reader(io.StringIO(text, newline="")))
        except (OSError, UnicodeDecodeError, csv.Error) as exc:
            logger.error("Fatal CSV read error: %s", exc)
            return ParseResult(errors=[RowError(None, f"file could not be read: {exc}")])

        if not lines or not any(cell.strip() for cell in lines[0]):
            return ParseResult(errors=[RowError(None, EMPTY_FILE_MESSAGE)])

        header = lines[0]
        result = self.parse_rows(header, enumerate(lines[1:], start=2))
        logger.info(
            "Parsed CSV: %d expense(s), %d row error(s)",
            len(result.expenses), len(result.errors),
        )
        return result
