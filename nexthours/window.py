# nexthours/window.py
from __future__ import annotations

from typing import Optional, Tuple

from .model import HOUR_MS, Bucket, Window
from .util.tz import hour_floor_ms, hour_label, normalize_tz_name, resolve_tz


class InvalidSpan(ValueError):
    """Raised when a window is requested with a non-positive span."""


def _check_span(span_hours: object) -> int:
    if not isinstance(span_hours, int) or isinstance(span_hours, bool):
        raise InvalidSpan(f"span_hours must be a positive int; got {span_hours!r}")
    if span_hours <= 0:
        raise InvalidSpan(f"span_hours must be a positive int; got {span_hours!r}")
    return int(span_hours)


def compute_window(anchor_ms: int, span_hours: int, *, tz: Optional[str] = "local") -> Window:
    """Hour-aligned window [start, start + span_hours h) containing `anchor_ms`.

    The start is the anchor truncated to its wall-clock hour in `tz`, so any two
    anchors within the same hour produce the same grid.
    """
    span = _check_span(span_hours)
    if not isinstance(anchor_ms, int) or isinstance(anchor_ms, bool):
        raise TypeError(f"anchor_ms must be int epoch milliseconds; got {type(anchor_ms).__name__}")

    tz_name = normalize_tz_name(tz)
    start_ms = hour_floor_ms(anchor_ms, resolve_tz(tz_name))
    return Window(
        start_ms=start_ms,
        end_ms=start_ms + span * HOUR_MS,
        bucket_count=span,
        bucket_ms=HOUR_MS,
        anchor_ms=int(anchor_ms),
        tz=tz_name,
    )


def hour_buckets(window: Window) -> Tuple[Bucket, ...]:
    tzinfo = resolve_tz(window.tz)
    n = window.bucket_count
    out = []
    for i in range(n):
        start = window.start_ms + i * window.bucket_ms
        out.append(
            Bucket(
                index=i,
                start_ms=start,
                end_ms=start + window.bucket_ms,
                label=hour_label(start, tzinfo),
                left_pct=(i / n) * 100.0,
                width_pct=100.0 / n,
            )
        )
    return tuple(out)


def bucket_index_for(window: Window, ms: int) -> int:
    """Bucket holding `ms`, clamped into [0, bucket_count - 1]."""
    idx = (int(ms) - window.start_ms) // window.bucket_ms
    return max(0, min(window.bucket_count - 1, int(idx)))
