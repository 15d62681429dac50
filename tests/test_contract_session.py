from __future__ import annotations

import json
import unittest
from pathlib import Path
from typing import Any, List

from nexthours.model import RawAppointment, UpdateEvent
from nexthours.session import TimelineSession, UpdateFeed
from nexthours.sources import InMemorySource

REPO_ROOT = Path(__file__).resolve().parents[1]
FIXTURE = REPO_ROOT / "tests" / "fixtures" / "next_hours_payload.json"

# 2025-01-01T00:00:00Z
BASE = 1735689600000
H = 3_600_000
M = 60_000

CFG = {"tz": "UTC", "span_hours": 3}
ANCHOR = BASE + 10 * H


def _raw(id_: str, time: str, minutes: int) -> RawAppointment:
    return RawAppointment(id=id_, start_date="2025-01-01", start_time=time, duration_min=minutes)


def _wire(id_: str, time: str, minutes: int = 30, date: str = "2025-01-01") -> dict:
    return {"id": id_, "appointment_date": date, "appointment_time": time, "duration_minutes": minutes}


class _FailingSource:
    def fetch_appointments(self, resource_id: Any, span_hours: int) -> List[RawAppointment]:
        raise ConnectionError("upstream unavailable")


class TestUpdateFeedContract(unittest.TestCase):
    def test_subscribe_publish_unsubscribe(self) -> None:
        feed = UpdateFeed()
        seen: List[dict] = []
        unsubscribe = feed.subscribe(seen.append)
        self.assertEqual(len(feed), 1)
        self.assertEqual(feed.publish({"x": 1}), 1)
        unsubscribe()
        unsubscribe()
        self.assertEqual(len(feed), 0)
        self.assertEqual(feed.publish({"x": 2}), 0)
        self.assertEqual(seen, [{"x": 1}])


class TestTimelineSessionContract(unittest.TestCase):
    def setUp(self) -> None:
        self.s = TimelineSession(CFG)
        self.s.load([_raw("a", "10:00", 30), _raw("b", "10:15", 30)], ANCHOR)

    def test_load_uses_configured_span(self) -> None:
        assert self.s.layout is not None
        self.assertEqual(self.s.layout.span_hours, 3)
        self.assertEqual(self.s.layout.row_count, 2)

    def test_incremental_payloads(self) -> None:
        lay = self.s.handle_payload({"kind": "add", "appointment": _wire("c", "10:20")})
        assert lay is not None
        self.assertEqual(lay.row_count, 3)
        lay = self.s.handle_payload({"kind": "remove", "id": "c"})
        assert lay is not None
        self.assertEqual(lay.row_count, 2)
        self.assertIs(self.s.layout, lay)

    def test_full_replacement_payload(self) -> None:
        lay = self.s.handle_payload({"refresh": True, "data": {"appointments": [_wire("z", "11:00")]}})
        assert lay is not None
        self.assertEqual(lay.positioned_ids(), frozenset({"z"}))
        # The previous anchor is kept.
        self.assertEqual(lay.window.start_ms, BASE + 10 * H)

    def test_invalid_update_drops_the_appointment(self) -> None:
        lay = self.s.handle_payload({"kind": "update", "appointment": _wire("a", "10:00", date="2025-13-40")})
        assert lay is not None
        self.assertEqual(lay.positioned_ids(), frozenset({"b"}))
        self.assertEqual([(w.id, w.kind) for w in lay.warnings], [("a", "invalid_timestamp")])

    def test_room_filter(self) -> None:
        s = TimelineSession(CFG, room="doctor-7")
        s.load([_raw("a", "10:00", 30)], ANCHOR)
        before = s.layout
        self.assertIsNone(s.handle_payload({"room": "doctor-8", "kind": "remove", "id": "a"}))
        self.assertIs(s.layout, before)
        lay = s.handle_payload({"key": "doctor-7", "kind": "remove", "id": "a"})
        assert lay is not None
        self.assertEqual(lay.row_count, 0)

    def test_non_dict_payload_ignored(self) -> None:
        self.assertIsNone(self.s.handle_payload("ping"))  # type: ignore[arg-type]

    def test_refresh_without_data_keeps_layout(self) -> None:
        before = self.s.layout
        self.assertIsNone(self.s.handle_payload({"refresh": True}))
        self.assertIs(self.s.layout, before)
        assert self.s.layout is not None
        self.assertEqual(len(self.s.layout.intervals), 2)

    def test_payload_without_appointment_set_is_ignored(self) -> None:
        before = self.s.layout
        self.assertIsNone(self.s.handle_payload({"status": "ok"}))
        self.assertIsNone(self.s.handle_payload({"refresh": True, "data": None}))
        self.assertIsNone(self.s.handle_payload({"data": {"meta": {}}}))
        self.assertIs(self.s.layout, before)
        # An explicitly empty set is still a full replacement.
        lay = self.s.handle_payload({"data": {"appointments": []}})
        assert lay is not None
        self.assertEqual(lay.row_count, 0)

    def test_malformed_events_do_not_break_the_feed(self) -> None:
        feed = UpdateFeed()
        seen: List[dict] = []
        self.s.attach(feed)
        feed.subscribe(seen.append)
        before = self.s.layout

        self.assertEqual(feed.publish({"kind": "patch", "id": "a"}), 2)
        self.assertEqual(feed.publish({"kind": "add", "appointment": {"appointment_time": "10:00"}}), 2)
        self.assertIs(self.s.layout, before)
        self.assertEqual(len(seen), 2)

        feed.publish({"kind": "remove", "id": "a"})
        assert self.s.layout is not None
        self.assertEqual(self.s.layout.positioned_ids(), frozenset({"b"}))

    def test_attach_to_feed(self) -> None:
        feed = UpdateFeed()
        detach = self.s.attach(feed)
        feed.publish({"kind": "remove", "id": "a"})
        assert self.s.layout is not None
        self.assertEqual(self.s.layout.positioned_ids(), frozenset({"b"}))
        detach()
        feed.publish({"kind": "remove", "id": "b"})
        self.assertEqual(self.s.layout.positioned_ids(), frozenset({"b"}))

    def test_selection_reset_when_interval_leaves(self) -> None:
        self.s.select("a")
        self.s.hover("b")
        self.assertEqual(self.s.interaction.selected_id, "a")
        self.s.apply(UpdateEvent(kind="remove", id="b"))
        self.assertEqual(self.s.interaction.selected_id, "a")
        self.s.apply(UpdateEvent(kind="remove", id="a"))
        self.assertEqual(self.s.interaction.mode, "idle")

    def test_hover_reset_when_anchor_moves(self) -> None:
        self.s.hover("a")
        self.s.set_anchor(BASE + 12 * H)
        self.assertEqual(self.s.interaction.mode, "idle")
        assert self.s.layout is not None
        self.assertEqual(self.s.layout.window.start_ms, BASE + 12 * H)
        self.assertEqual(len(self.s.layout.intervals), 2)

    def test_refresh_and_failing_source(self) -> None:
        src = InMemorySource({"dr-1": [_raw("x", "11:00", 30)]})
        lay = self.s.refresh(src, "dr-1", ANCHOR)
        self.assertEqual(lay.positioned_ids(), frozenset({"x"}))
        with self.assertRaises(ConnectionError):
            self.s.refresh(_FailingSource(), "dr-1", ANCHOR)
        self.assertIs(self.s.layout, lay)

    def test_first_payload_takes_anchor_from_meta(self) -> None:
        s = TimelineSession({"tz": "UTC"})
        self.assertIsNone(s.set_anchor(ANCHOR))
        payload = json.loads(FIXTURE.read_text(encoding="utf-8"))
        lay = s.handle_payload({"data": payload})
        assert lay is not None
        self.assertEqual(lay.window.start_ms, BASE + 10 * H)
        self.assertEqual(lay.row_count, 2)

    def test_apply_without_layout_needs_anchor(self) -> None:
        s = TimelineSession({"tz": "UTC"})
        with self.assertRaises(ValueError):
            s.apply(UpdateEvent(kind="remove", id="a"))
        lay = s.apply(UpdateEvent(kind="remove", id="a"), ANCHOR)
        self.assertEqual(lay.row_count, 0)


if __name__ == "__main__":
    unittest.main(verbosity=2)
