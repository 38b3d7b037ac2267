"""
utils.py: Small helpers shared by the engines and the tracker.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Optional


def as_utc(ts: datetime) -> datetime:
    """Naive timestamps are taken to be UTC."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts


def utc_now(now: Optional[datetime] = None) -> datetime:
    """`now` normalized to UTC, or the current time when not given."""
    return as_utc(now) if now else datetime.now(timezone.utc)


def round_half_up(value: float) -> int:
    # round() is half-to-even: 12.5 -> 12
    return int(math.floor(value + 0.5))
