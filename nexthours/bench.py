from __future__ import annotations

import random
from typing import List

from .model import RawAppointment

_STATUSES = ("booked", "booked", "booked", "completed", "cancelled")
_TYPES = ("consultation", "follow-up", "procedure", "review")


def make_synthetic_appointments(
    n: int,
    *,
    seed: int = 1,
    date: str = "2025-01-01",
    first_hour: int = 8,
    last_hour: int = 16,
    max_duration_min: int = 120,
) -> List[RawAppointment]:
    """Deterministic appointment set for property checks and timing runs.

    Starts fall on 5-minute steps between first_hour and last_hour; durations
    range over [0, max_duration_min] so zero-length records are covered too.
    """
    if n < 0:
        raise ValueError("n must be >= 0")
    if not (0 <= first_hour <= last_hour <= 23):
        raise ValueError("hours must satisfy 0 <= first_hour <= last_hour <= 23")

    rng = random.Random(seed)
    out: List[RawAppointment] = []
    for i in range(n):
        hh = rng.randint(first_hour, last_hour)
        mm = rng.randrange(0, 60, 5)
        dur = 0 if rng.random() < 0.05 else rng.randint(5, max(5, max_duration_min))
        out.append(
            RawAppointment(
                id=f"bench-{seed}-{i:05d}",
                start_date=date,
                start_time=f"{hh:02d}:{mm:02d}:00",
                duration_min=dur,
                label=f"Patient {i:05d}",
                status=_STATUSES[i % len(_STATUSES)],
                metadata={"appointment_type": _TYPES[(i + seed) % len(_TYPES)]},
            )
        )
    return out
