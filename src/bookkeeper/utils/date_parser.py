"""Date parsing utilities."""

from datetime import date, timedelta
from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

PERIOD_NAMES = (
    "this-month",
    "this-quarter",
    "this-year",
    "last-month",
    "last-quarter",
    "last-year",
)


def month_end(day: date) -> date:
    """Last day of the month containing ``day``."""
    return day + relativedelta(day=31)


def quarter_start(day: date) -> date:
    return date(day.year, 3 * ((day.month - 1) // 3) + 1, 1)


def parse_date(date_str: str) -> date:
    """Parse a date string into a date object.

    Supports absolute dates ("2024-01-15", "January 15, 2024") and the
    relative forms "today", "yesterday", "tomorrow" and
    "start/end of month/quarter/year".

    Raises:
        ValueError: If date string cannot be parsed
    """
    text = date_str.strip().lower()
    today = date.today()

    relative = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
        "start of month": today.replace(day=1),
        "end of month": month_end(today),
        "start of quarter": quarter_start(today),
        "end of quarter": quarter_start(today) + relativedelta(months=3, days=-1),
        "start of year": date(today.year, 1, 1),
        "end of year": date(today.year, 12, 31),
        "end of last year": date(today.year - 1, 12, 31),
    }
    if text in relative:
        return relative[text]

    try:
        return date_parser.parse(text, yearfirst=True).date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def get_date_range(period: str) -> tuple[date, date]:
    """Get start and end dates for a named period.

    "this-*" periods end today; "last-*" periods are the full previous
    month, quarter or year.

    Raises:
        ValueError: If period string is not recognized
    """
    period = period.strip().lower()
    today = date.today()

    if period == "this-month":
        return today.replace(day=1), today
    if period == "this-quarter":
        return quarter_start(today), today
    if period == "this-year":
        return date(today.year, 1, 1), today
    if period == "last-month":
        start = (today - relativedelta(months=1)).replace(day=1)
        return start, month_end(start)
    if period == "last-quarter":
        start = quarter_start(today) - relativedelta(months=3)
        return start, quarter_start(today) - timedelta(days=1)
    if period == "last-year":
        return date(today.year - 1, 1, 1), date(today.year - 1, 12, 31)

    raise ValueError(
        f"Unknown period: '{period}'. Supported periods: {', '.join(PERIOD_NAMES)}"
    )
