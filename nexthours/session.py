# nexthours/session.py
from __future__ import annotations

import dataclasses
from typing import Any, Callable, Dict, Iterable, List, Optional

from . import interaction as _ix
from .config import resolve_config
from .interaction import InteractionState
from .interval import InvalidTimestamp
from .layout import compute_layout, layout_from_intervals
from .model import Layout, LayoutWarning, RawAppointment, TimelineConfig, UpdateEvent
from .sources import AppointmentSource, anchor_from_payload, raws_from_payload
from .updates import apply_update, event_from_payload
from .util.console import eprint, obs_enabled

Listener = Callable[[Dict[str, Any]], None]


class UpdateFeed:
    """In-memory push channel: subscribe(callback) -> unsubscribe()."""

    def __init__(self) -> None:
        self._listeners: List[Listener] = []

    def subscribe(self, callback: Listener) -> Callable[[], None]:
        self._listeners.append(callback)

        def _unsubscribe() -> None:
            try:
                self._listeners.remove(callback)
            except ValueError:
                pass

        return _unsubscribe

    def publish(self, payload: Dict[str, Any]) -> int:
        listeners = list(self._listeners)
        for cb in listeners:
            cb(payload)
        return len(listeners)

    def __len__(self) -> int:
        return len(self._listeners)


class TimelineSession:
    """Holds the last computed Layout and the interaction state.

    Every input (full load, push payload, incremental event, new anchor) is
    turned into a complete new Layout before it replaces the current one, and
    the interaction state is reconciled against it in the same step.
    """

    def __init__(self, cfg: Optional[TimelineConfig] = None, *, room: Optional[str] = None) -> None:
        self.cfg = resolve_config(cfg)
        self.room = room if room is not None else self.cfg.get("room")
        self.layout: Optional[Layout] = None
        self.interaction: InteractionState = _ix.IDLE

    # --- layout ------------------------------------------------------------

    def _swap(self, layout: Layout) -> Layout:
        self.layout = layout
        self.interaction = _ix.reconcile(self.interaction, layout)
        return layout

    def _span(self, span_hours: Optional[int]) -> int:
        if span_hours is not None:
            return span_hours
        if self.layout is not None and self.layout.span_hours is not None:
            return self.layout.span_hours
        return int(self.cfg["span_hours"])

    def _anchor(self, anchor_ms: Optional[int], payload: Any = None) -> int:
        if anchor_ms is not None:
            return anchor_ms
        if self.layout is not None and self.layout.anchor_ms is not None:
            return self.layout.anchor_ms
        suggested = anchor_from_payload(payload)
        if suggested is not None:
            return suggested
        raise ValueError("anchor_ms is required for the first layout")

    def load(
        self,
        raw_appointments: Iterable[RawAppointment],
        anchor_ms: int,
        span_hours: Optional[int] = None,
    ) -> Layout:
        return self._swap(compute_layout(raw_appointments, anchor_ms, self._span(span_hours), self.cfg))

    def refresh(
        self,
        source: AppointmentSource,
        resource_id: Any,
        anchor_ms: int,
        span_hours: Optional[int] = None,
    ) -> Layout:
        """Fetch and load. A failing fetch propagates and keeps the last Layout."""
        span = self._span(span_hours)
        raws = source.fetch_appointments(resource_id, span)
        return self.load(raws, anchor_ms, span)

    def set_anchor(self, anchor_ms: int) -> Optional[Layout]:
        if self.layout is None:
            return None
        layout = self.layout
        return self._swap(
            layout_from_intervals(layout.intervals, anchor_ms, self._span(None), self.cfg, warnings=layout.warnings)
        )

    def apply(self, event: UpdateEvent, anchor_ms: Optional[int] = None) -> Layout:
        layout = self.layout
        if layout is None:
            # Nothing loaded yet: start from an empty set.
            layout = compute_layout([], self._anchor(anchor_ms), self._span(None), self.cfg)
        return self._swap(apply_update(layout, event, anchor_ms=anchor_ms, cfg=self.cfg))

    # --- push channel --------------------------------------------------------

    def accepts(self, payload: Dict[str, Any]) -> bool:
        if not self.room:
            return True
        return payload.get("room") == self.room or payload.get("key") == self.room

    def handle_payload(self, payload: Dict[str, Any], anchor_ms: Optional[int] = None) -> Optional[Layout]:
        """Consume one push payload; returns the new Layout or None if ignored.

        {"kind": ...}             incremental add/update/remove
        {"data": {...}}           full replacement (with or without "refresh")
        {"gantt"/"appointments"}  bare chart payload, full replacement

        Anything else (a bare {"refresh": true}, an unknown or malformed event)
        leaves the current Layout in place.
        """
        if not isinstance(payload, dict):
            return None
        if not self.accepts(payload):
            if obs_enabled():
                eprint(f"[nexthours.session] skip payload room={payload.get('room')!r} key={payload.get('key')!r}")
            return None

        if "kind" in payload:
            return self._handle_event_payload(payload, anchor_ms)

        if "data" in payload:
            data = payload.get("data")
        elif "gantt" in payload or "appointments" in payload:
            data = payload
        else:
            # A bare refresh ping or an unknown message carries no appointment set.
            if obs_enabled():
                eprint(f"[nexthours.session] skip payload without data keys={sorted(payload)!r}")
            return None
        if not isinstance(data, (dict, list)):
            return None
        if isinstance(data, dict) and "gantt" not in data and "appointments" not in data:
            return None
        raws = raws_from_payload(data)
        return self.load(raws, self._anchor(anchor_ms, data), self._span(None))

    def _handle_event_payload(self, payload: Dict[str, Any], anchor_ms: Optional[int]) -> Optional[Layout]:
        try:
            event = event_from_payload(payload, self.cfg)
        except InvalidTimestamp as ex:
            record = payload.get("appointment") or payload.get("interval") or {}
            target = str(payload.get("id") or (record.get("id") if isinstance(record, dict) else "") or "")
            if obs_enabled():
                eprint(f"[nexthours.session] WARN: invalid timestamp id={target!r} reason={ex}")
            # The changed appointment can no longer be placed: drop it.
            layout = self.apply(UpdateEvent(kind="remove", id=target), anchor_ms)
            warning = LayoutWarning(id=target, reason=str(ex), kind="invalid_timestamp")
            return self._swap(dataclasses.replace(layout, warnings=layout.warnings + (warning,)))
        except ValueError as ex:
            # Unknown kind or missing id: the message is dropped, the Layout stays.
            if obs_enabled():
                eprint(f"[nexthours.session] WARN: skip malformed event kind={payload.get('kind')!r} reason={ex}")
            return None
        return self.apply(event, anchor_ms)

    def attach(self, feed: UpdateFeed) -> Callable[[], None]:
        return feed.subscribe(self.handle_payload)

    # --- interaction ---------------------------------------------------------

    def hover(self, interval_id: str) -> InteractionState:
        self.interaction = _ix.hover(self.interaction, interval_id)
        return self.interaction

    def unhover(self, interval_id: str) -> InteractionState:
        self.interaction = _ix.unhover(self.interaction, interval_id)
        return self.interaction

    def select(self, interval_id: Optional[str]) -> InteractionState:
        self.interaction = _ix.select(self.interaction, interval_id)
        return self.interaction

    def clear_selection(self) -> InteractionState:
        self.interaction = _ix.clear_selection(self.interaction)
        return self.interaction
