# nexthours/interval.py
from __future__ import annotations

from typing import Optional, Tuple

from .model import MIN_MS, Interval, RawAppointment, TimelineConfig
from .util.timeparse import parse_date_yyyy_mm_dd, parse_wall_clock
from .util.tz import resolve_tz, wall_clock_epoch_ms


class InvalidTimestamp(ValueError):
    """Raised when an appointment's date/time cannot be parsed."""


def effective_duration_min(duration_min: Optional[int]) -> int:
    # Zero/negative durations still occupy one minute so start < end holds.
    if not isinstance(duration_min, int) or isinstance(duration_min, bool):
        return 1
    return max(int(duration_min), 1)


def normalize_timestamps(
    raw_date: Optional[str],
    raw_time: Optional[str],
    duration_min: Optional[int],
    *,
    tz: Optional[str] = "local",
) -> Tuple[int, int]:
    """Return (start_ms, end_ms) for a local date + local wall-clock time.

    The date and the time are combined *before* any zone is applied, and both are
    read as wall-clock values in `tz`. Upstream serializers sometimes emit the
    date as a UTC-midnight datetime or tag the time with "Z"; those markers are
    discarded instead of shifting the result a second time.
    """
    if not raw_date or not str(raw_date).strip():
        raise InvalidTimestamp("missing date")
    if not raw_time or not str(raw_time).strip():
        raise InvalidTimestamp("missing time")

    try:
        d = parse_date_yyyy_mm_dd(str(raw_date))
    except ValueError as ex:
        raise InvalidTimestamp(f"invalid date {raw_date!r}") from ex
    try:
        hh, mm, ss, ms = parse_wall_clock(str(raw_time))
    except ValueError as ex:
        raise InvalidTimestamp(f"invalid time {raw_time!r}") from ex

    try:
        start_ms = wall_clock_epoch_ms(d, hh, mm, ss, ms, tz=resolve_tz(tz))
    except (OverflowError, OSError) as ex:
        raise InvalidTimestamp(f"unrepresentable instant {raw_date!r} {raw_time!r}") from ex

    end_ms = start_ms + effective_duration_min(duration_min) * MIN_MS
    return start_ms, end_ms


def normalize_appointment(raw: RawAppointment, cfg: Optional[TimelineConfig] = None) -> Interval:
    """Build an Interval from a RawAppointment.

    Duration precedence:
      1) raw.duration_min when it is an int (<= 0 is clamped to 1 minute)
      2) cfg["default_duration_min"] (30)

    Placement precedence:
      1) start_date + start_time read as local wall clock in cfg["tz"]
      2) metadata["start_timestamp"] (epoch ms) when either part is missing
    """
    cfg = cfg or {}
    dur = raw.duration_min
    if not isinstance(dur, int) or isinstance(dur, bool):
        dur = int(cfg.get("default_duration_min", 30) or 30)
    dur = effective_duration_min(dur)

    has_wall_clock = bool(raw.start_date) and bool(raw.start_time)
    fallback = raw.metadata.get("start_timestamp") if isinstance(raw.metadata, dict) else None
    if not has_wall_clock and isinstance(fallback, int) and not isinstance(fallback, bool):
        start_ms = int(fallback)
        end_ms = start_ms + dur * MIN_MS
    else:
        start_ms, end_ms = normalize_timestamps(raw.start_date, raw.start_time, dur, tz=cfg.get("tz", "local"))

    return Interval(
        id=raw.id,
        start_ms=start_ms,
        end_ms=end_ms,
        duration_min=dur,
        label=raw.label,
        status=raw.status,
        metadata=dict(raw.metadata or {}),
    )


def overlaps(a: Interval, b: Interval) -> bool:
    # Half-open: touching endpoints do not overlap.
    return a.start_ms < b.end_ms and b.start_ms < a.end_ms
