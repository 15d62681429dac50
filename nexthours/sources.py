"""Appointment data sources and wire-format mapping.

The layout core only needs something shaped like

    fetch_appointments(resource_id, span_hours) -> list[RawAppointment]

Any transport satisfying it will do; this module ships the in-memory and
JSON-file variants used by tests and tools, plus the mapping from the chart
endpoint's wire records to RawAppointment.
"""

from __future__ import annotations

import datetime as dt
import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Union

from .model import RawAppointment
from .util.console import eprint, obs_enabled

JsonPath = Union[str, Path]

_DATE_KEYS = ("appointment_date", "start_date")
_TIME_KEYS = ("appointment_time", "start_time")
_DURATION_KEYS = ("duration_minutes", "duration_min", "duration")
_LABEL_KEYS = ("patient_name", "text", "label")
_CONSUMED = {"id", "status", "startTimestamp", *_DATE_KEYS, *_TIME_KEYS, *_DURATION_KEYS}


def _first_str(record: Mapping[str, Any], keys: Iterable[str]) -> Optional[str]:
    for k in keys:
        v = record.get(k)
        if isinstance(v, str) and v.strip():
            return v.strip()
    return None


def _first_int(record: Mapping[str, Any], keys: Iterable[str]) -> Optional[int]:
    for k in keys:
        v = record.get(k)
        if isinstance(v, bool):
            continue
        if isinstance(v, int):
            return v
        if isinstance(v, float) and v.is_integer():
            return int(v)
        if isinstance(v, str) and v.strip().lstrip("-").isdigit():
            return int(v.strip())
    return None


def raw_from_wire(record: Mapping[str, Any]) -> Optional[RawAppointment]:
    """Map one chart/appointment record to a RawAppointment (None without an id)."""
    if not isinstance(record, Mapping):
        return None
    rid = str(record.get("id") or "").strip()
    if not rid:
        return None

    metadata: Dict[str, Any] = {k: v for k, v in record.items() if k not in _CONSUMED}
    ts = record.get("startTimestamp")
    if isinstance(ts, int) and not isinstance(ts, bool):
        metadata["start_timestamp"] = ts

    return RawAppointment(
        id=rid,
        start_date=_first_str(record, _DATE_KEYS),
        start_time=_first_str(record, _TIME_KEYS),
        duration_min=_first_int(record, _DURATION_KEYS),
        label=_first_str(record, _LABEL_KEYS) or "",
        status=str(record.get("status") or ""),
        metadata=metadata,
    )


def raws_from_payload(payload: Any) -> List[RawAppointment]:
    """Extract RawAppointments from a chart payload.

    Accepts a bare list of records, {"appointments": [...]}, or the chart
    endpoint's {"gantt": [...], "appointments": [...]} pair. In the latter,
    gantt entries define the set and matching appointment records (by id)
    supply the local date/time fields.
    """
    if isinstance(payload, list):
        records: List[Any] = payload
    elif isinstance(payload, dict):
        gantt = payload.get("gantt")
        appts = payload.get("appointments")
        appts_list = appts if isinstance(appts, list) else []
        if isinstance(gantt, list):
            by_id = {
                str(a.get("id")): a
                for a in appts_list
                if isinstance(a, dict) and a.get("id") is not None
            }
            records = []
            for g in gantt:
                if not isinstance(g, dict):
                    continue
                extra = by_id.get(str(g.get("id")))
                merged = dict(g)
                if extra:
                    for k, v in extra.items():
                        if k in _DATE_KEYS or k in _TIME_KEYS or k not in merged:
                            merged[k] = v
                records.append(merged)
        else:
            records = appts_list
    else:
        raise TypeError(f"payload must be a list or dict; got {type(payload).__name__}")

    out: List[RawAppointment] = []
    for rec in records:
        raw = raw_from_wire(rec) if isinstance(rec, dict) else None
        if raw is None:
            if obs_enabled():
                eprint(f"[nexthours.sources] WARN: skipping record without id: {rec!r}")
            continue
        out.append(raw)
    return out


def _parse_instant_ms(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        d = dt.datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    # Naive values are read as host local wall clock.
    return int(round(d.timestamp() * 1000))


def anchor_from_payload(payload: Any) -> Optional[int]:
    """Server-suggested window start: meta.gantt_range.start, else None."""
    if not isinstance(payload, dict):
        return None
    meta = payload.get("meta")
    if not isinstance(meta, dict):
        return None
    rng = meta.get("gantt_range")
    if not isinstance(rng, dict):
        return None
    return _parse_instant_ms(rng.get("start"))


class AppointmentSource(Protocol):
    def fetch_appointments(self, resource_id: Any, span_hours: int) -> List[RawAppointment]:
        """Return the raw appointments for `resource_id` in the next `span_hours`."""


class InMemorySource:
    """Fixture source keyed by resource id."""

    def __init__(self, records: Optional[Mapping[Any, Iterable[RawAppointment]]] = None) -> None:
        self._records: Dict[Any, List[RawAppointment]] = {k: list(v) for k, v in (records or {}).items()}

    def put(self, resource_id: Any, records: Iterable[RawAppointment]) -> None:
        self._records[resource_id] = list(records)

    def fetch_appointments(self, resource_id: Any, span_hours: int) -> List[RawAppointment]:
        return list(self._records.get(resource_id, []))


class JsonFileSource:
    """Reads a chart payload JSON file (one file per resource or a shared file)."""

    def __init__(self, path: JsonPath) -> None:
        self.path = Path(path)

    def load_payload(self) -> Any:
        return json.loads(self.path.read_text(encoding="utf-8", errors="replace"))

    def fetch_appointments(self, resource_id: Any, span_hours: int) -> List[RawAppointment]:
        payload = self.load_payload()
        if isinstance(payload, dict) and isinstance(payload.get("resources"), dict):
            payload = payload["resources"].get(str(resource_id), [])
        return raws_from_payload(payload)
