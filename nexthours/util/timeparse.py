from __future__ import annotations

import datetime as dt
import re
from typing import Tuple

_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})(?:[T ].*)?$")
_CLOCK_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2})(?:\.(\d{1,6}))?)?$")
# Offsets that upstream serializers glue onto local wall-clock values.
_UTC_MARKER_RE = re.compile(r"(?:Z|[+-]00:?00)$", re.IGNORECASE)


def strip_utc_marker(s: str) -> str:
    return _UTC_MARKER_RE.sub("", s.strip())


def parse_date_yyyy_mm_dd(s: str) -> dt.date:
    """Parse the calendar date from `YYYY-MM-DD` (or the date part of an ISO datetime)."""
    m = _DATE_RE.match(str(s).strip())
    if not m:
        raise ValueError(f"Invalid YYYY-MM-DD: {s!r}")
    y, mo, d = (int(g) for g in m.groups())
    # Raises ValueError for month 13, day 40, Feb 30, ...
    return dt.date(y, mo, d)


def parse_wall_clock(s: str) -> Tuple[int, int, int, int]:
    """Parse `HH:MM[:SS[.fff]]` into (hh, mm, ss, ms). UTC markers are ignored."""
    m = _CLOCK_RE.match(strip_utc_marker(str(s)))
    if not m:
        raise ValueError(f"Invalid HH:MM[:SS]: {s!r}")
    hh = int(m.group(1))
    mm = int(m.group(2))
    ss = int(m.group(3) or 0)
    frac = m.group(4) or ""
    ms = int((frac + "000")[:3]) if frac else 0
    if not (0 <= hh <= 23 and 0 <= mm <= 59 and 0 <= ss <= 59):
        raise ValueError(f"Invalid HH:MM[:SS]: {s!r}")
    return hh, mm, ss, ms
