"""Date normalization for the Things3 URL scheme.

Things3 accepts ``today``, ``tomorrow`` or a ``YYYY-MM-DD`` calendar date for
``when`` and ``deadline``. Time-of-day is dropped.
"""
from datetime import date, datetime, timedelta
from typing import Optional

import dateparser
from dateutil import parser as dateutil_parser

TODAY = "today"
TOMORROW = "tomorrow"


def parse_date_string(value: Optional[str], today: Optional[date] = None) -> Optional[datetime]:
    """Parse an ISO 8601 or natural-language date string.

    Relative phrases ("next friday") are resolved against ``today``.
    Returns ``None`` when nothing can be parsed.
    """
    if not value or not isinstance(value, str):
        return None
    value = value.strip()
    if not value:
        return None

    try:
        return dateutil_parser.isoparse(value)
    except (ValueError, OverflowError):
        pass

    today = today or date.today()
    settings = {"RELATIVE_BASE": datetime.combine(today, datetime.min.time())}
    return dateparser.parse(value, settings=settings)


def normalize_date(value: Optional[str], today: Optional[date] = None) -> Optional[str]:
    """Map ``value`` to ``today``, ``tomorrow``, ``YYYY-MM-DD`` or ``None``.

    The calendar date is taken as written in the input; an offset such as
    ``Z`` is not converted to local time. ``None`` means the input could not
    be parsed and the attribute should be omitted.
    """
    today = today or date.today()
    parsed = parse_date_string(value, today=today)
    if parsed is None:
        return None

    day = parsed.date()
    if day == today:
        return TODAY
    if day == today + timedelta(days=1):
        return TOMORROW
    return day.isoformat()
