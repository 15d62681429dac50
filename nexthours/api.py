"""nexthours.api

Stable *library* entrypoint for the appointment timeline layout engine.

Policy:
  - Only names listed in __all__ are considered public API.
  - Everything else is internal and may change without notice.
"""

from __future__ import annotations

from nexthours.config import resolve_config
from nexthours.interaction import (
    IDLE,
    InteractionState,
    clear_selection,
    hover,
    reconcile,
    select,
    unhover,
)
from nexthours.interval import InvalidTimestamp, normalize_appointment, normalize_timestamps
from nexthours.layout import compute_layout, layout_from_intervals, layout_to_dict
from nexthours.model import (
    Bucket,
    Interval,
    Layout,
    LayoutStats,
    LayoutWarning,
    PositionedInterval,
    RawAppointment,
    UpdateEvent,
    Window,
)
from nexthours.partition import assign_rows, max_concurrency
from nexthours.projector import project, project_segments
from nexthours.session import TimelineSession, UpdateFeed
from nexthours.sources import (
    InMemorySource,
    JsonFileSource,
    anchor_from_payload,
    raw_from_wire,
    raws_from_payload,
)
from nexthours.updates import apply_update, event_from_payload, merge_update
from nexthours.validate import LayoutValidationError, assert_valid_layout, validate_layout
from nexthours.window import InvalidSpan, compute_window, hour_buckets

__all__ = [
    # entry points
    "compute_layout",
    "apply_update",
    "hover",
    "unhover",
    "select",
    "clear_selection",
    "reconcile",
    # pipeline stages
    "normalize_timestamps",
    "normalize_appointment",
    "compute_window",
    "hour_buckets",
    "assign_rows",
    "max_concurrency",
    "project",
    "project_segments",
    "merge_update",
    "event_from_payload",
    "layout_from_intervals",
    "layout_to_dict",
    "resolve_config",
    # data sources / live updates
    "raw_from_wire",
    "raws_from_payload",
    "anchor_from_payload",
    "InMemorySource",
    "JsonFileSource",
    "TimelineSession",
    "UpdateFeed",
    # validation
    "validate_layout",
    "assert_valid_layout",
    "LayoutValidationError",
    # types / errors
    "RawAppointment",
    "Interval",
    "Window",
    "Bucket",
    "PositionedInterval",
    "Layout",
    "LayoutStats",
    "LayoutWarning",
    "UpdateEvent",
    "InteractionState",
    "IDLE",
    "InvalidTimestamp",
    "InvalidSpan",
]
