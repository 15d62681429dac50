# nexthours/updates.py
from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Tuple

from .layout import layout_from_intervals
from .model import Interval, Layout, TimelineConfig, UpdateEvent
from .interval import normalize_appointment
from .sources import raw_from_wire

UPDATE_KINDS = ("add", "update", "remove")


def merge_update(intervals: Sequence[Interval], event: UpdateEvent) -> Tuple[Interval, ...]:
    """Apply one add/update/remove event to an interval set.

    - update: replace by id (unknown id: no-op)
    - remove: drop by id (unknown id: no-op)
    - add: append; an existing id is replaced in place so ids stay unique
    """
    kind = (event.kind or "").strip().lower()
    if kind not in UPDATE_KINDS:
        raise ValueError(f"Unsupported update kind: {event.kind!r}")

    target = event.target_id
    if not target:
        return tuple(intervals)

    if kind == "remove":
        return tuple(iv for iv in intervals if iv.id != target)

    if event.interval is None:
        raise ValueError(f"{kind} event for {target!r} carries no interval")

    known = any(iv.id == target for iv in intervals)
    if kind == "update" and not known:
        return tuple(intervals)
    if known:
        return tuple(event.interval if iv.id == target else iv for iv in intervals)
    return tuple(intervals) + (event.interval,)


def event_from_payload(payload: Dict[str, Any], cfg: Optional[TimelineConfig] = None) -> UpdateEvent:
    """Build an UpdateEvent from a push payload.

    Accepted shapes:
      {"kind": "remove", "id": "..."}
      {"kind": "add" | "update", "appointment": {<wire appointment>}}
      {"kind": ..., "interval": {"id": ...}}   (remove only needs the id)

    Raises ValueError for an unknown kind and InvalidTimestamp when the carried
    appointment cannot be placed.
    """
    if not isinstance(payload, dict):
        raise TypeError(f"payload must be dict; got {type(payload).__name__}")

    kind = str(payload.get("kind") or "").strip().lower()
    if kind not in UPDATE_KINDS:
        raise ValueError(f"Unsupported update kind: {payload.get('kind')!r}")

    record = payload.get("appointment")
    if not isinstance(record, dict):
        record = payload.get("interval")
    record = record if isinstance(record, dict) else {}

    target = str(payload.get("id") or record.get("id") or "").strip() or None

    if kind == "remove":
        return UpdateEvent(kind="remove", id=target)

    if target is None:
        raise ValueError(f"{kind} payload carries no appointment id")
    raw = raw_from_wire(dict(record, id=target))
    if raw is None:
        raise ValueError(f"{kind} payload carries no appointment id")
    return UpdateEvent(kind=kind, interval=normalize_appointment(raw, cfg), id=target)


def apply_update(
    layout: Layout,
    event: UpdateEvent,
    *,
    anchor_ms: Optional[int] = None,
    span_hours: Optional[int] = None,
    cfg: Optional[TimelineConfig] = None,
) -> Layout:
    """Merge `event` into the layout's interval set and recompute in full.

    The anchor and span default to the ones the layout was computed with.
    """
    intervals = merge_update(layout.intervals, event)

    # Warnings for records this event supersedes no longer apply; an update for
    # an unknown id changes nothing at all.
    target = event.target_id
    warnings: List = list(layout.warnings)
    if not ((event.kind or "").strip().lower() == "update" and layout.interval(target or "") is None):
        warnings = [w for w in warnings if w.id != target]

    return layout_from_intervals(
        intervals,
        layout.anchor_ms if anchor_ms is None else anchor_ms,
        layout.span_hours if span_hours is None else span_hours,
        layout.cfg if cfg is None else cfg,
        warnings=warnings,
    )
