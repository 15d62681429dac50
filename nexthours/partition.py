# nexthours/partition.py
from __future__ import annotations

from typing import Dict, Iterable, List, Sequence, Tuple

from .model import Interval

RowAssignment = Dict[str, int]


def _sorted_for_rows(intervals: Iterable[Interval]) -> List[Interval]:
    return sorted(intervals, key=lambda iv: (iv.start_ms, iv.id))


def assign_rows(intervals: Sequence[Interval]) -> RowAssignment:
    """Greedy interval partitioning.

    Intervals are taken in (start, id) order; each goes to the lowest-numbered
    row whose last interval ended at or before its start, otherwise a new row
    opens. The number of rows equals the maximum number of simultaneously
    active intervals.
    """
    rows_end: List[int] = []
    out: RowAssignment = {}

    for iv in _sorted_for_rows(intervals):
        row = -1
        for i, row_end in enumerate(rows_end):
            if row_end <= iv.start_ms:
                row = i
                break
        if row < 0:
            row = len(rows_end)
            rows_end.append(iv.end_ms)
        else:
            rows_end[row] = iv.end_ms
        out[iv.id] = row

    return out


def row_count(assignment: RowAssignment) -> int:
    if not assignment:
        return 0
    return max(assignment.values()) + 1


def max_concurrency(intervals: Iterable[Interval]) -> int:
    """Maximum number of intervals containing a common instant (sweep line)."""
    pts: List[Tuple[int, int]] = []
    for iv in intervals:
        if iv.end_ms <= iv.start_ms:
            continue
        pts.append((iv.start_ms, +1))
        pts.append((iv.end_ms, -1))
    # Ends sort before starts at the same instant: back-to-back is not overlap.
    pts.sort()

    best = 0
    active = 0
    for _t, delta in pts:
        active += delta
        if active > best:
            best = active
    return best
