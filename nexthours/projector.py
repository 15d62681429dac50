# nexthours/projector.py
from __future__ import annotations

from typing import List, Optional, Tuple

from .model import Interval, PositionedInterval, Window
from .window import bucket_index_for

_PCT_DIGITS = 6
# Smallest width that survives rounding; keeps every box strictly positive.
_PCT_STEP = 10.0 ** -_PCT_DIGITS


def _pct(x: float) -> float:
    return round(float(x), _PCT_DIGITS)


def clip_to_window(interval: Interval, window: Window) -> Optional[Tuple[int, int]]:
    """Return the part of `interval` inside the window, or None when disjoint."""
    if interval.end_ms <= window.start_ms or interval.start_ms >= window.end_ms:
        return None
    return max(interval.start_ms, window.start_ms), min(interval.end_ms, window.end_ms)


def _box(
    start_ms: int,
    end_ms: int,
    window: Window,
    *,
    min_width_pct: float,
    right_limit_pct: float = 100.0,
) -> Tuple[float, float]:
    span_ms = window.end_ms - window.start_ms
    left = (start_ms - window.start_ms) / span_ms * 100.0
    width = (end_ms - start_ms) / span_ms * 100.0

    left = max(0.0, min(100.0, left))
    width = max(float(min_width_pct), _PCT_STEP, min(100.0, width))
    # Keep the whole box on the grid; the visibility floor wins over the left edge.
    if left + width > right_limit_pct:
        left = max(0.0, right_limit_pct - width)
    return _pct(left), _pct(width)


def project(
    interval: Interval,
    row: int,
    window: Window,
    *,
    min_width_pct: float = 0.5,
) -> Optional[PositionedInterval]:
    """Position `interval` on the window grid, or None when it lies outside.

    The box is anchored on the bucket holding the (clipped) start. Coordinates
    are window-absolute: column offset plus the within-bucket fraction scaled by
    1/bucket_count. Width is not capped at the column, so an appointment running
    past the end of its starting hour extends into the following columns;
    such boxes carry overflows_bucket=True.
    """
    clipped = clip_to_window(interval, window)
    if clipped is None:
        return None
    cs, ce = clipped

    idx = bucket_index_for(window, cs)
    bucket_start = window.start_ms + idx * window.bucket_ms
    bucket_end = bucket_start + window.bucket_ms
    offset_pct = (cs - bucket_start) / window.bucket_ms * 100.0

    left, width = _box(cs, ce, window, min_width_pct=min_width_pct)
    return PositionedInterval(
        interval_id=interval.id,
        row=int(row),
        bucket_index=idx,
        left_pct=left,
        width_pct=width,
        start_ms=cs,
        end_ms=ce,
        bucket_offset_pct=_pct(max(0.0, min(100.0, offset_pct))),
        overflows_bucket=ce > bucket_end,
    )


def project_segments(
    interval: Interval,
    row: int,
    window: Window,
    *,
    min_width_pct: float = 0.5,
) -> List[PositionedInterval]:
    """Split variant of `project`: one box per covered bucket, none overflowing."""
    clipped = clip_to_window(interval, window)
    if clipped is None:
        return []
    cs, ce = clipped

    first = bucket_index_for(window, cs)
    last = bucket_index_for(window, ce - 1)
    n = window.bucket_count
    # The floor may not exceed a column, or a segment would start in the previous one.
    floor = min(float(min_width_pct), 100.0 / n)

    out: List[PositionedInterval] = []
    for k, idx in enumerate(range(first, last + 1)):
        bucket_start = window.start_ms + idx * window.bucket_ms
        bucket_end = bucket_start + window.bucket_ms
        seg_start = max(cs, bucket_start)
        seg_end = min(ce, bucket_end)
        if seg_end <= seg_start:
            continue
        left, width = _box(
            seg_start,
            seg_end,
            window,
            min_width_pct=floor,
            right_limit_pct=(idx + 1) / n * 100.0,
        )
        out.append(
            PositionedInterval(
                interval_id=interval.id,
                row=int(row),
                bucket_index=idx,
                left_pct=left,
                width_pct=width,
                start_ms=seg_start,
                end_ms=seg_end,
                bucket_offset_pct=_pct((seg_start - bucket_start) / window.bucket_ms * 100.0),
                overflows_bucket=False,
                segment=k,
            )
        )
    return out
