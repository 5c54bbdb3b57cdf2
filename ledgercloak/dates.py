"""
Local Date Parsing
Best-effort calendar dates from loosely formatted strings.

"2024-03-15" must mean the 15th of March on the user's own calendar, not
midnight UTC shifted into the previous day. Only the leading Y-M-D is
read, so "2024-03-15T23:30:00Z" is also the 15th.
"""

import re
from datetime import date, datetime

_YMD = re.compile(r"^(\d{4})[/-](\d{1,2})[/-](\d{1,2})")


def parse_local_date(value: str | None, today: date | None = None) -> date:
    """
    Parse a date string as a local calendar date.

    Never raises: empty or unparseable input falls back to `today`
    (or the current local date).
    """
    fallback = today or date.today()
    if not value:
        return fallback

    m = _YMD.match(value.strip())
    if m:
        try:
            return date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
        except ValueError:
            pass

    try:
        return datetime.fromisoformat(value.strip()).date()
    except ValueError:
        return fallback
