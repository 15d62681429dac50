from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path

from nexthours.layout import compute_layout
from nexthours.model import RawAppointment
from nexthours.sources import (
    InMemorySource,
    JsonFileSource,
    anchor_from_payload,
    raw_from_wire,
    raws_from_payload,
)
from nexthours.validate import validate_layout

REPO_ROOT = Path(__file__).resolve().parents[1]
FIXTURE = REPO_ROOT / "tests" / "fixtures" / "next_hours_payload.json"

# 2025-01-01T00:00:00Z
BASE = 1735689600000
H = 3_600_000
M = 60_000


def _load_fixture() -> dict:
    return json.loads(FIXTURE.read_text(encoding="utf-8"))


class TestSourcesContract(unittest.TestCase):
    def test_raw_from_wire_maps_fields(self) -> None:
        raw = raw_from_wire(
            {
                "id": 42,
                "appointment_date": "2025-01-01",
                "appointment_time": "09:30:00",
                "duration_minutes": "45",
                "patient_name": "Asha Rao",
                "status": "booked",
                "appointment_type": "consultation",
                "startTimestamp": 1735723800000,
            }
        )
        assert raw is not None
        self.assertEqual(raw.id, "42")
        self.assertEqual((raw.start_date, raw.start_time), ("2025-01-01", "09:30:00"))
        self.assertEqual(raw.duration_min, 45)
        self.assertEqual(raw.label, "Asha Rao")
        self.assertEqual(raw.status, "booked")
        self.assertEqual(raw.metadata["appointment_type"], "consultation")
        self.assertEqual(raw.metadata["start_timestamp"], 1735723800000)
        self.assertNotIn("appointment_date", raw.metadata)

    def test_raw_from_wire_without_id(self) -> None:
        self.assertIsNone(raw_from_wire({"appointment_time": "10:00"}))
        self.assertIsNone(raw_from_wire({"id": "  "}))

    def test_bare_list_and_appointments_key(self) -> None:
        rec = {"id": "x", "start_date": "2025-01-01", "start_time": "10:00", "duration_min": 15}
        self.assertEqual([r.id for r in raws_from_payload([rec, {"no": "id"}])], ["x"])
        self.assertEqual([r.id for r in raws_from_payload({"appointments": [rec]})], ["x"])
        with self.assertRaises(TypeError):
            raws_from_payload("nope")

    def test_gantt_and_appointments_are_merged_by_id(self) -> None:
        raws = {r.id: r for r in raws_from_payload(_load_fixture())}
        self.assertEqual(sorted(raws), ["a1", "a2", "a3", "a4", "a5", "a6"])
        # The appointment record's local date wins over the gantt's ISO datetime.
        self.assertEqual(raws["a1"].start_date, "2025-01-01")
        self.assertEqual(raws["a1"].start_time, "10:00:00")
        self.assertEqual(raws["a3"].metadata["patient_contact"], "+91 90000 00003")
        self.assertEqual(raws["a3"].metadata["reason"], "Suture removal")
        self.assertIsNone(raws["a5"].start_date)

    def test_anchor_from_payload(self) -> None:
        self.assertEqual(anchor_from_payload(_load_fixture()), BASE + 10 * H + 20 * M)
        self.assertEqual(anchor_from_payload({"meta": {"gantt_range": {"start": 123}}}), 123)
        self.assertIsNone(anchor_from_payload({"meta": {}}))
        self.assertIsNone(anchor_from_payload({"meta": {"gantt_range": {"start": "garbage"}}}))
        self.assertIsNone(anchor_from_payload([]))

    def test_fixture_layout(self) -> None:
        payload = _load_fixture()
        lay = compute_layout(raws_from_payload(payload), anchor_from_payload(payload), payload["hours"], {"tz": "UTC"})

        self.assertEqual((lay.window.start_ms, lay.window.end_ms), (BASE + 10 * H, BASE + 13 * H))
        rows = {p.interval_id: p.row for p in lay.positioned()}
        self.assertEqual(rows, {"a1": 0, "a2": 1, "a3": 0, "a5": 1})
        self.assertEqual(lay.row_count, 2)
        self.assertEqual([(w.id, w.kind) for w in lay.warnings], [("a4", "invalid_timestamp")])
        self.assertEqual((lay.stats.total, lay.stats.completed, lay.stats.pending), (4, 1, 3))

        a3 = next(p for p in lay.positioned() if p.interval_id == "a3")
        self.assertEqual(a3.bucket_index, 1)
        self.assertAlmostEqual(a3.left_pct, 55.555556, places=5)
        self.assertAlmostEqual(a3.width_pct, 25.0, places=5)
        self.assertAlmostEqual(a3.bucket_offset_pct, 66.666667, places=5)
        self.assertTrue(a3.overflows_bucket)

        a1 = lay.interval("a1")
        assert a1 is not None
        self.assertEqual(a1.start_ms, BASE + 10 * H)
        self.assertEqual(validate_layout(lay), [])

    def test_in_memory_source(self) -> None:
        rec = RawAppointment(id="a", start_date="2025-01-01", start_time="10:00", duration_min=30)
        src = InMemorySource({"dr-1": [rec]})
        self.assertEqual(src.fetch_appointments("dr-1", 8), [rec])
        self.assertEqual(src.fetch_appointments("dr-2", 8), [])
        src.put("dr-2", [rec])
        self.assertEqual(len(src.fetch_appointments("dr-2", 8)), 1)

    def test_json_file_source(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            p = Path(td) / "payload.json"
            p.write_text(json.dumps(_load_fixture()), encoding="utf-8")
            self.assertEqual(len(JsonFileSource(p).fetch_appointments("any", 3)), 6)

            shared = Path(td) / "shared.json"
            shared.write_text(
                json.dumps({"resources": {"7": _load_fixture(), "8": []}}),
                encoding="utf-8",
            )
            src = JsonFileSource(shared)
            self.assertEqual(len(src.fetch_appointments(7, 3)), 6)
            self.assertEqual(src.fetch_appointments("8", 3), [])
            self.assertEqual(src.fetch_appointments("9", 3), [])


if __name__ == "__main__":
    unittest.main(verbosity=2)
