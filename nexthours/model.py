# nexthours/model.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

MIN_MS = 60_000
HOUR_MS = 3_600_000

# Layout-facing config (read with cfg.get(key, default), see nexthours.config)
TimelineConfig = Dict[str, Any]


@dataclass(frozen=True)
class RawAppointment:
    """Appointment record as handed over by the data-fetching layer."""

    id: str
    start_date: Optional[str]
    start_time: Optional[str]
    duration_min: Optional[int]
    label: str = ""
    status: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Interval:
    id: str
    start_ms: int
    end_ms: int            # exclusive
    duration_min: int      # effective duration (>= 1)
    label: str = ""
    status: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Window:
    start_ms: int
    end_ms: int            # exclusive; end_ms - start_ms == bucket_count * bucket_ms
    bucket_count: int
    bucket_ms: int = HOUR_MS
    anchor_ms: Optional[int] = None
    tz: str = "local"

    def contains(self, ms: int) -> bool:
        return self.start_ms <= ms < self.end_ms


@dataclass(frozen=True)
class Bucket:
    index: int
    start_ms: int
    end_ms: int
    label: str
    left_pct: float
    width_pct: float


@dataclass(frozen=True)
class PositionedInterval:
    interval_id: str
    row: int
    bucket_index: int
    left_pct: float        # window-absolute, 0..100
    width_pct: float       # window-absolute, (0..100]
    start_ms: int          # window-clipped
    end_ms: int            # window-clipped
    bucket_offset_pct: float = 0.0
    overflows_bucket: bool = False
    segment: int = 0


@dataclass(frozen=True)
class LayoutWarning:
    id: str
    reason: str
    kind: str = "invalid_timestamp"  # "invalid_timestamp" | "duplicate_id"


@dataclass(frozen=True)
class LayoutStats:
    total: int = 0
    pending: int = 0
    completed: int = 0
    cancelled: int = 0


@dataclass(frozen=True)
class Layout:
    window: Window
    buckets: Tuple[Bucket, ...]
    rows: Tuple[Tuple[PositionedInterval, ...], ...]
    row_count: int
    intervals: Tuple[Interval, ...] = ()
    warnings: Tuple[LayoutWarning, ...] = ()
    stats: LayoutStats = LayoutStats()
    anchor_ms: Optional[int] = None
    span_hours: Optional[int] = None
    cfg: Dict[str, Any] = field(default_factory=dict, compare=False)

    def positioned(self) -> Tuple[PositionedInterval, ...]:
        return tuple(p for row in self.rows for p in row)

    def positioned_ids(self) -> frozenset:
        return frozenset(p.interval_id for row in self.rows for p in row)

    def interval(self, interval_id: str) -> Optional[Interval]:
        for iv in self.intervals:
            if iv.id == interval_id:
                return iv
        return None


@dataclass(frozen=True)
class UpdateEvent:
    kind: str                          # "add" | "update" | "remove"
    interval: Optional[Interval] = None
    id: Optional[str] = None

    @property
    def target_id(self) -> Optional[str]:
        if self.interval is not None:
            return self.interval.id
        return self.id


__all__ = [
    "MIN_MS",
    "HOUR_MS",
    "TimelineConfig",
    "RawAppointment",
    "Interval",
    "Window",
    "Bucket",
    "PositionedInterval",
    "LayoutWarning",
    "LayoutStats",
    "Layout",
    "UpdateEvent",
]
