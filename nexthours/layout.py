# nexthours/layout.py
from __future__ import annotations

import dataclasses
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from .config import resolve_config
from .interval import InvalidTimestamp, normalize_appointment
from .model import (
    Interval,
    Layout,
    LayoutStats,
    LayoutWarning,
    PositionedInterval,
    RawAppointment,
    TimelineConfig,
)
from .partition import assign_rows, row_count
from .projector import clip_to_window, project, project_segments
from .util.console import eprint, obs_enabled
from .window import compute_window, hour_buckets

_COMPLETED = {"completed", "done", "fulfilled"}
_CANCELLED = {"cancelled", "canceled"}


def normalize_appointments(
    raw_appointments: Iterable[RawAppointment],
    cfg: Optional[TimelineConfig] = None,
) -> Tuple[List[Interval], List[LayoutWarning]]:
    """Normalize records, dropping unparseable ones with a warning.

    Duplicate ids keep the last record (in the first record's position).
    """
    by_id: Dict[str, Interval] = {}
    warnings: List[LayoutWarning] = []

    for raw in raw_appointments:
        try:
            iv = normalize_appointment(raw, cfg)
        except InvalidTimestamp as ex:
            warnings.append(LayoutWarning(id=raw.id, reason=str(ex), kind="invalid_timestamp"))
            if obs_enabled():
                eprint(f"[nexthours.layout] WARN: invalid timestamp id={raw.id!r} reason={ex}")
            by_id.pop(raw.id, None)
            continue
        if iv.id in by_id:
            warnings.append(LayoutWarning(id=iv.id, reason="duplicate id; last record wins", kind="duplicate_id"))
            if obs_enabled():
                eprint(f"[nexthours.layout] WARN: duplicate id={iv.id!r}")
        by_id[iv.id] = iv

    return list(by_id.values()), warnings


def compute_stats(intervals: Iterable[Interval]) -> LayoutStats:
    total = pending = completed = cancelled = 0
    for iv in intervals:
        total += 1
        st = (iv.status or "").strip().lower()
        if st in _COMPLETED:
            completed += 1
        elif st in _CANCELLED:
            cancelled += 1
        else:
            pending += 1
    return LayoutStats(total=total, pending=pending, completed=completed, cancelled=cancelled)


def layout_from_intervals(
    intervals: Sequence[Interval],
    anchor_ms: int,
    span_hours: int,
    cfg: Optional[TimelineConfig] = None,
    *,
    warnings: Sequence[LayoutWarning] = (),
) -> Layout:
    """Window -> rows -> coordinates for already-normalized intervals.

    Rows are assigned over the intervals visible in the window only, so the
    row count is the peak concurrency inside the window.
    """
    c = resolve_config(cfg)
    window = compute_window(anchor_ms, span_hours, tz=c["tz"])
    buckets = hour_buckets(window)

    visible = [iv for iv in intervals if clip_to_window(iv, window) is not None]
    assignment = assign_rows(visible)
    n_rows = row_count(assignment)

    rows: List[List[PositionedInterval]] = [[] for _ in range(n_rows)]
    min_width = c["min_width_pct"]
    for iv in visible:
        r = assignment[iv.id]
        if c["overflow"] == "split":
            rows[r].extend(project_segments(iv, r, window, min_width_pct=min_width))
        else:
            p = project(iv, r, window, min_width_pct=min_width)
            if p is not None:
                rows[r].append(p)

    for r in rows:
        r.sort(key=lambda p: (p.start_ms, p.interval_id, p.segment))

    return Layout(
        window=window,
        buckets=buckets,
        rows=tuple(tuple(r) for r in rows),
        row_count=n_rows,
        intervals=tuple(intervals),
        warnings=tuple(warnings),
        stats=compute_stats(visible),
        anchor_ms=int(anchor_ms),
        span_hours=int(span_hours),
        cfg=c,
    )


def compute_layout(
    raw_appointments: Iterable[RawAppointment],
    anchor_ms: int,
    span_hours: int,
    cfg: Optional[TimelineConfig] = None,
) -> Layout:
    """Single entry point: normalize, window, partition, project.

    Bad timestamps surface as Layout.warnings; a non-positive span raises
    InvalidSpan before any record is looked at.
    """
    c = resolve_config(cfg)
    # Fail loudly on the span first; data problems are absorbed below.
    compute_window(anchor_ms, span_hours, tz=c["tz"])
    intervals, warnings = normalize_appointments(raw_appointments, c)
    return layout_from_intervals(intervals, anchor_ms, span_hours, c, warnings=warnings)


def layout_to_dict(layout: Layout) -> Dict[str, Any]:
    """Plain JSON-able view of a Layout."""
    return {
        "window": dataclasses.asdict(layout.window),
        "buckets": [dataclasses.asdict(b) for b in layout.buckets],
        "rows": [[dataclasses.asdict(p) for p in row] for row in layout.rows],
        "row_count": layout.row_count,
        "intervals": [dataclasses.asdict(iv) for iv in layout.intervals],
        "warnings": [dataclasses.asdict(w) for w in layout.warnings],
        "stats": dataclasses.asdict(layout.stats),
        "anchor_ms": layout.anchor_ms,
        "span_hours": layout.span_hours,
    }
