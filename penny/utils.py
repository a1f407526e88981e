from datetime import date


def month_key(d: date) -> str:
    """Return the YYYY-MM bucket a date falls in."""
    return f"{d.year:04d}-{d.month:02d}"


def parse_month(month_str):
    """Split a YYYY-MM string into (year, month), validating both parts."""
    try:
        year, month = map(int, month_str.split('-'))
    except ValueError:
        raise ValueError(f"Expected YYYY-MM, got '{month_str}'")
    if not 1 <= month <= 12:
        raise ValueError(f"Expected YYYY-MM, got '{month_str}'")
    return year, month


def filter_expenses_by_month(expenses, month_str):
    """
    Return only those expenses whose date falls in the given YYYY-MM.
    """
    year, month = parse_month(month_str)
    return [e for e in expenses if e.date.year == year and e.date.month == month]
