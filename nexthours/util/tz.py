# nexthours/util/tz.py
from __future__ import annotations

import datetime as dt
import re
from typing import Optional

from zoneinfo import ZoneInfo

_OFFSET_RE = re.compile(r"^([+-])(\d{2}):?(\d{2})$")

HOUR_MS = 3_600_000


def normalize_tz_name(name: Optional[str]) -> str:
    """Normalize a timezone identifier.

    Supported forms:
      - None/"" -> "local"
      - "local" / "system" -> "local" (the machine's local timezone, DST-aware)
      - "UTC" / "Z" / "GMT" -> "UTC"
      - IANA names, e.g. "Asia/Kolkata"
      - Fixed offsets: "+05:30", "+0530", "-05:00"
    """
    if name is None:
        return "local"
    s = str(name).strip()
    if not s:
        return "local"

    low = s.lower()
    if low in {"local", "system", "native"}:
        return "local"
    if low in {"utc", "z", "gmt", "utc0", "utc+0"}:
        return "UTC"
    return s


def resolve_tz(name: Optional[str]) -> Optional[dt.tzinfo]:
    """Resolve a timezone name into a tzinfo.

    Returns None for "local": callers then work with naive datetimes, which the
    platform interprets with the host zone's full rules (including DST), rather
    than pinning today's UTC offset.

    Raises ValueError for invalid timezone identifiers.
    """
    tz_name = normalize_tz_name(name)

    if tz_name == "local":
        return None
    if tz_name == "UTC":
        return dt.timezone.utc

    m = _OFFSET_RE.match(tz_name)
    if m:
        sign_s, hh_s, mm_s = m.groups()
        hh = int(hh_s)
        mm = int(mm_s)
        if hh > 23 or mm > 59:
            raise ValueError(f"Invalid timezone offset: {tz_name!r}")
        sign = 1 if sign_s == "+" else -1
        return dt.timezone(dt.timedelta(minutes=sign * (hh * 60 + mm)))

    try:
        return ZoneInfo(tz_name)
    except Exception as ex:
        raise ValueError(f"Invalid timezone identifier: {tz_name!r}") from ex


def wall_clock_epoch_ms(
    d: dt.date,
    hh: int,
    mm: int,
    ss: int = 0,
    ms: int = 0,
    tz: Optional[dt.tzinfo] = None,
) -> int:
    """Epoch ms for a wall-clock reading in `tz` (None = host local time)."""
    naive = dt.datetime(d.year, d.month, d.day, hh, mm, ss, ms * 1000)
    if tz is None:
        return int(round(naive.timestamp() * 1000))
    return int(round(naive.replace(tzinfo=tz).timestamp() * 1000))


def from_epoch_ms(ms: int, tz: Optional[dt.tzinfo] = None) -> dt.datetime:
    if tz is None:
        return dt.datetime.fromtimestamp(int(ms) / 1000.0)
    return dt.datetime.fromtimestamp(int(ms) / 1000.0, tz=tz)


def hour_floor_ms(ms: int, tz: Optional[dt.tzinfo] = None) -> int:
    """Truncate `ms` down to the start of its wall-clock hour in `tz`.

    Zones with non-hour offsets (e.g. +05:30) truncate on their own hour lines,
    not on UTC hours.
    """
    t = from_epoch_ms(ms, tz).replace(minute=0, second=0, microsecond=0)
    return int(round(t.timestamp() * 1000))


def hour_label(ms: int, tz: Optional[dt.tzinfo] = None) -> str:
    return from_epoch_ms(ms, tz).strftime("%I:%M %p")
