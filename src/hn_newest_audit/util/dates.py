from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from dateutil import parser as date_parser


logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Two different fill-in defaults: if the parsed dates disagree, the value left out a date field.
_FILL_A = datetime(1, 1, 1)
_FILL_B = datetime(2, 2, 2)


def parse_article_date(value: Optional[str], *, label: str = "") -> datetime:
    """
    Resolve an article's `title` timestamp attribute into an aware UTC datetime.

    Handles values like:
    - "2024-01-01T00:00:00 1704067200"  (Hacker News: ISO time followed by Unix seconds)
    - "2024-01-01T00:00:00Z"
    - "2024-01-01 09:30"                 (naive values are taken as UTC)

    Values without a full year, month and day ("10", "May", "2024") are rejected
    rather than completed from today's date. Missing or unparsable values fall back
    to EPOCH; this never raises.
    """
    if value is None:
        return EPOCH
    s = value.strip()
    if not s:
        return EPOCH

    parts = s.split()
    try:
        if len(parts) == 2 and "T" in parts[0] and parts[1].isdigit():
            return datetime.fromtimestamp(int(parts[-1]), tz=timezone.utc)

        dt = date_parser.parse(s, default=_FILL_A)
        if dt.date() != date_parser.parse(s, default=_FILL_B).date():
            raise ValueError(f"incomplete date: {s!r}")
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)
    except (ValueError, OverflowError, OSError):
        logger.warning("Failed to parse date %r for article %r; using epoch.", value, label)
        return EPOCH
