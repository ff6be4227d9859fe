from __future__ import annotations

import math
from datetime import datetime, timezone

# 2012-08-06 05:17:00 UTC, Curiosity touchdown in Gale Crater
LANDING_UNIX_TS = 1344230220

# Mean Martian solar day in Earth seconds
SOL_SECONDS = 88775.245


def _to_utc(instant: datetime) -> datetime:
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


def seconds_since_landing(instant: datetime) -> int:
    """
    Whole seconds elapsed between landing and `instant` (negative before landing).
    """
    return math.floor(_to_utc(instant).timestamp()) - LANDING_UNIX_TS


def sol_for(instant: datetime) -> int:
    """
    Martian sol index for an Earth instant.

    sol = ceil(delta_seconds / 88775.245)

    Any started fraction of a sol counts as that sol, so the landing instant
    itself is sol 0 and one second later is sol 1. Dates before landing use the
    same formula and give zero or negative indices.
    """
    delta = seconds_since_landing(instant)
    return math.ceil(delta / SOL_SECONDS)
