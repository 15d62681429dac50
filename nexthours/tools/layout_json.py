#!/usr/bin/env python3
from __future__ import annotations

import argparse
import datetime as dt
import json
import os
import sys
from pathlib import Path
from typing import Any, List, Optional

from nexthours.config import DEFAULT_SPAN_HOURS
from nexthours.layout import compute_layout, layout_to_dict
from nexthours.sources import anchor_from_payload, raws_from_payload
from nexthours.util.tz import normalize_tz_name, resolve_tz
from nexthours.validate import validate_layout
from nexthours.window import InvalidSpan

try:
    import orjson  # type: ignore
except Exception:  # pragma: no cover
    orjson = None  # type: ignore


def _die(msg: str, rc: int = 2) -> int:
    print(f"[nexthours-layout] ERROR: {msg}", file=sys.stderr)
    return rc


def _parse_anchor(s: str, tz_name: str) -> int:
    """Epoch ms, or an ISO datetime (naive values are wall clock in --tz)."""
    raw = s.strip()
    if raw.lstrip("-").isdigit():
        return int(raw)
    d = dt.datetime.fromisoformat(raw.replace("Z", "+00:00"))
    if d.tzinfo is None:
        tzinfo = resolve_tz(tz_name)
        if tzinfo is not None:
            d = d.replace(tzinfo=tzinfo)
    return int(round(d.timestamp() * 1000))


def _dumps(obj: Any) -> str:
    if orjson is not None:
        return orjson.dumps(obj, option=orjson.OPT_SORT_KEYS | orjson.OPT_INDENT_2).decode("utf-8")
    return json.dumps(obj, ensure_ascii=False, sort_keys=True, indent=2)


def main(argv: List[str] | None = None) -> int:
    ap = argparse.ArgumentParser(
        prog="nexthours-layout",
        description="Compute the next-hours timeline layout for a chart payload JSON.",
    )
    ap.add_argument("--in", dest="in_json", required=True, help="Input chart payload JSON path")
    ap.add_argument("--out", default=None, help="Output layout JSON path (default: stdout)")
    ap.add_argument(
        "--anchor",
        default=None,
        help="Window anchor: epoch ms or ISO datetime (default: payload meta.gantt_range.start)",
    )
    ap.add_argument(
        "--hours",
        type=int,
        default=None,
        help=f"Window span in hours (default: payload 'hours' or {DEFAULT_SPAN_HOURS})",
    )
    ap.add_argument(
        "--tz",
        default=os.getenv("NEXTHOURS_TZ", "local"),
        help="Wall-clock timezone for dates/times and hour buckets (default: env NEXTHOURS_TZ or 'local')",
    )
    ap.add_argument("--overflow", choices=("span", "split"), default="span", help="Cross-hour rendering mode")
    ap.add_argument("--default-duration", type=int, default=30, help="Minutes when a record has no duration (default: 30)")
    ap.add_argument("--strict", action="store_true", help="Fail (rc=3) when the layout breaks an invariant")
    ns = ap.parse_args(argv)

    in_path = Path(ns.in_json)
    if not in_path.exists():
        return _die(f"Missing input JSON: {in_path}")
    try:
        payload = json.loads(in_path.read_text(encoding="utf-8", errors="replace"))
    except Exception as e:
        return _die(f"Failed to load JSON: {in_path} ({e})")

    tz_name = normalize_tz_name(ns.tz)
    try:
        resolve_tz(tz_name)
    except ValueError as e:
        return _die(f"Invalid --tz value: {e}")

    anchor_ms: Optional[int]
    if ns.anchor:
        try:
            anchor_ms = _parse_anchor(ns.anchor, tz_name)
        except ValueError as e:
            return _die(f"Invalid --anchor value: {e}")
    else:
        anchor_ms = anchor_from_payload(payload)
    if anchor_ms is None:
        return _die("No --anchor given and payload has no meta.gantt_range.start")

    hours = ns.hours
    if hours is None:
        declared = payload.get("hours") if isinstance(payload, dict) else None
        hours = declared if isinstance(declared, int) and declared > 0 else DEFAULT_SPAN_HOURS

    cfg = {"tz": tz_name, "overflow": ns.overflow, "default_duration_min": int(ns.default_duration)}
    try:
        raws = raws_from_payload(payload)
        layout = compute_layout(raws, anchor_ms, int(hours), cfg)
    except InvalidSpan as e:
        return _die(str(e))
    except (TypeError, ValueError) as e:
        return _die(f"Failed to compute layout: {e}")

    if ns.strict:
        errs = validate_layout(layout)
        if errs:
            return _die("Invalid layout: " + "; ".join(errs[:10]), rc=3)

    text = _dumps(layout_to_dict(layout))
    if ns.out:
        out = Path(ns.out).expanduser()
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(text + "\n", encoding="utf-8", newline="\n")
        print(f"[nexthours-layout] OK: {out} rows={layout.row_count} warnings={len(layout.warnings)}")
    else:
        print(text)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
