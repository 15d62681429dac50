"""Layout validation helpers (library-facing)."""

from __future__ import annotations

from typing import Dict, List

from .model import Interval, Layout
from .partition import max_concurrency
from .projector import clip_to_window

_EPS = 1e-6


class LayoutValidationError(ValueError):
    """Raised when a layout breaks one of its structural invariants."""


def _require(cond: bool, msg: str, errs: List[str]) -> None:
    if not cond:
        errs.append(msg)


def validate_layout(layout: Layout, *, label: str = "layout") -> List[str]:
    errs: List[str] = []
    w = layout.window

    _require(w.bucket_count > 0, f"{label}: window.bucket_count must be > 0", errs)
    _require(
        w.end_ms - w.start_ms == w.bucket_count * w.bucket_ms,
        f"{label}: window span must equal bucket_count * bucket_ms",
        errs,
    )
    _require(len(layout.buckets) == w.bucket_count, f"{label}: buckets must have bucket_count entries", errs)
    for i, b in enumerate(layout.buckets):
        _require(b.index == i, f"{label}: buckets[{i}].index must be {i}", errs)
        _require(
            b.start_ms == w.start_ms + i * w.bucket_ms,
            f"{label}: buckets[{i}].start_ms misaligned",
            errs,
        )

    _require(layout.row_count == len(layout.rows), f"{label}: row_count must equal len(rows)", errs)

    split = (layout.cfg or {}).get("overflow") == "split"
    col_pct = 100.0 / w.bucket_count if w.bucket_count > 0 else 100.0

    by_id: Dict[str, Interval] = {iv.id: iv for iv in layout.intervals}
    row_members: Dict[int, Dict[str, Interval]] = {}

    for r, row in enumerate(layout.rows):
        for p in row:
            tag = f"{label}: rows[{r}] {p.interval_id!r}"
            _require(p.row == r, f"{tag} carries row={p.row}", errs)
            _require(0 <= p.bucket_index < w.bucket_count, f"{tag} bucket_index out of range: {p.bucket_index}", errs)
            _require(-_EPS <= p.left_pct <= 100 + _EPS, f"{tag} left_pct out of [0,100]: {p.left_pct}", errs)
            _require(0 < p.width_pct <= 100 + _EPS, f"{tag} width_pct out of (0,100]: {p.width_pct}", errs)
            _require(p.left_pct + p.width_pct <= 100 + _EPS, f"{tag} box exceeds the grid", errs)
            _require(w.start_ms <= p.start_ms < p.end_ms <= w.end_ms, f"{tag} clipped span outside window", errs)
            if split:
                col_left = p.bucket_index * col_pct
                _require(
                    col_left - _EPS <= p.left_pct and p.left_pct + p.width_pct <= col_left + col_pct + _EPS,
                    f"{tag} segment {p.segment} leaves bucket {p.bucket_index}",
                    errs,
                )
            iv = by_id.get(p.interval_id)
            if iv is None:
                errs.append(f"{tag} has no interval")
                continue
            row_members.setdefault(r, {})[iv.id] = iv

    # Same-row intervals must not overlap (touching endpoints allowed).
    for r, members in row_members.items():
        ivs = sorted(members.values(), key=lambda iv: (iv.start_ms, iv.id))
        for a, b in zip(ivs, ivs[1:]):
            if a.end_ms > b.start_ms:
                errs.append(f"{label}: rows[{r}] {a.id!r} overlaps {b.id!r}")

    visible = [iv for iv in layout.intervals if clip_to_window(iv, w) is not None]
    peak = max_concurrency(visible)
    _require(layout.row_count == peak, f"{label}: row_count {layout.row_count} != peak concurrency {peak}", errs)

    return errs


def assert_valid_layout(layout: Layout) -> None:
    errs = validate_layout(layout, label="layout")
    if errs:
        raise LayoutValidationError(errs[0])


__all__ = [
    "LayoutValidationError",
    "assert_valid_layout",
    "validate_layout",
]
