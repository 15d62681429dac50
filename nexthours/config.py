"""Layout configuration.

A plain cfg dict, read with defaults. Recognized keys:

  tz                    bucketing/wall-clock timezone (env NEXTHOURS_TZ, default "local")
  span_hours            window size in hours (env NEXTHOURS_SPAN_HOURS, default 8)
  default_duration_min  duration used when a record carries none (default 30)
  min_width_pct         visibility floor for positioned boxes (default 0.5)
  overflow              "span" (one box per interval) | "split" (one box per bucket)
  room                  push-channel room/key filter for sessions (default None)
"""

from __future__ import annotations

import os
from typing import Any, Dict, Optional

from .model import TimelineConfig
from .util.tz import normalize_tz_name, resolve_tz

OVERFLOW_MODES = ("span", "split")

DEFAULT_SPAN_HOURS = 8
DEFAULT_DURATION_MIN = 30
DEFAULT_MIN_WIDTH_PCT = 0.5


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name, "") or "").strip()
    if not raw:
        return default
    try:
        v = int(raw)
        if v > 0:
            return v
    except ValueError:
        pass
    return default


def default_config() -> Dict[str, Any]:
    return {
        "tz": normalize_tz_name(os.getenv("NEXTHOURS_TZ", "local")),
        "span_hours": _env_int("NEXTHOURS_SPAN_HOURS", DEFAULT_SPAN_HOURS),
        "default_duration_min": DEFAULT_DURATION_MIN,
        "min_width_pct": DEFAULT_MIN_WIDTH_PCT,
        "overflow": "span",
        "room": None,
    }


def resolve_config(cfg: Optional[TimelineConfig] = None) -> Dict[str, Any]:
    """Return a complete cfg dict (defaults filled in), validated.

    Raises ValueError for an unknown overflow mode, an unresolvable tz or a
    non-positive default duration / non-positive width floor.
    """
    out = default_config()
    if cfg:
        for k, v in cfg.items():
            if v is not None or k == "room":
                out[k] = v

    out["tz"] = normalize_tz_name(out.get("tz"))
    resolve_tz(out["tz"])

    overflow = str(out.get("overflow") or "span").strip().lower()
    if overflow not in OVERFLOW_MODES:
        raise ValueError(f"overflow must be one of {OVERFLOW_MODES}; got {out.get('overflow')!r}")
    out["overflow"] = overflow

    dur = out.get("default_duration_min")
    if not isinstance(dur, int) or isinstance(dur, bool) or dur <= 0:
        raise ValueError(f"default_duration_min must be a positive int; got {dur!r}")

    width = out.get("min_width_pct")
    if not isinstance(width, (int, float)) or isinstance(width, bool) or not (0 < width <= 100):
        raise ValueError(f"min_width_pct must be within (0, 100]; got {width!r}")
    out["min_width_pct"] = float(width)

    return out
