"""
Relative date normalizer.

Chapter lists show release dates either as "3 days ago" style strings in the
site's language or as absolute dates in whatever format the theme uses.
Both are turned into ISO calendar dates; anything else is passed through
unchanged so no information is lost.
"""

import re
from datetime import datetime
from typing import Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

from .keywords import TimeUnit, match_time_unit

DATE_FORMAT = "%Y-%m-%d"

_MAGNITUDE_RE = re.compile(r"\d+")

_UNIT_DELTAS = {
    TimeUnit.SECOND: lambda n: relativedelta(seconds=n),
    TimeUnit.MINUTE: lambda n: relativedelta(minutes=n),
    TimeUnit.HOUR: lambda n: relativedelta(hours=n),
    TimeUnit.DAY: lambda n: relativedelta(days=n),
    TimeUnit.WEEK: lambda n: relativedelta(weeks=n),
    TimeUnit.MONTH: lambda n: relativedelta(months=n),
    TimeUnit.YEAR: lambda n: relativedelta(years=n),
}


def _parse_absolute(raw: str, now: datetime) -> Optional[str]:
    """Parse `raw` as an absolute date, or None."""
    try:
        parsed = date_parser.parse(raw, default=now.replace(hour=0, minute=0, second=0, microsecond=0))
    except (ValueError, OverflowError):
        return None
    return parsed.strftime(DATE_FORMAT)


def normalize_date(raw: str, now: Optional[datetime] = None) -> str:
    """
    Resolve a release-date string against `now`.

    "3 days ago" at 2024-01-10 becomes "2024-01-07"; "January 5, 2024"
    becomes "2024-01-05"; strings without any digit come back untouched.
    Never raises.
    """
    if not raw:
        return raw

    now = now or datetime.now()

    magnitude = _MAGNITUDE_RE.search(raw)
    if not magnitude:
        return raw

    unit = match_time_unit(raw.lower())
    if unit is None:
        return _parse_absolute(raw, now) or raw

    try:
        moment = now - _UNIT_DELTAS[unit](int(magnitude.group(0)))
    except (OverflowError, ValueError):
        return raw
    return moment.strftime(DATE_FORMAT)
