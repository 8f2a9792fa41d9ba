import datetime

_DATE_FORMATS = ("%Y-%m-%d", "%Y/%m/%d", "%m/%d/%Y", "%d-%m-%Y")

# Spreadsheet serial day 0
_SERIAL_EPOCH = datetime.date(1899, 12, 30)


def parse_date(value: object) -> datetime.date | None:
    """Parse a cell or request value as a date. Returns None if it isn't one.

    Accepts date/datetime objects, ISO strings (optionally with a time part),
    a few common spreadsheet formats and spreadsheet serial numbers.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if isinstance(value, (int, float)):
        if value <= 0:
            return None
        return _SERIAL_EPOCH + datetime.timedelta(days=int(value))

    text = str(value).strip()
    if not text:
        return None
    if "T" in text:
        text = text.split("T", 1)[0]
    for fmt in _DATE_FORMATS:
        try:
            return datetime.datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def month_key(value: object) -> str | None:
    """Return ``YYYY-MM`` for a date-like value. E.g. '2024-01-15' -> '2024-01'."""
    parsed = parse_date(value)
    if parsed is None:
        return None
    return f"{parsed.year:04d}-{parsed.month:02d}"


def intervals_overlap(
    start: datetime.date,
    end: datetime.date,
    other_start: datetime.date,
    other_end: datetime.date,
) -> bool:
    """Inclusive interval overlap: touching on a single day counts."""
    return start <= other_end and end >= other_start
