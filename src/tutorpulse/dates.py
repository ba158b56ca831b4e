# ABOUTME: Shared date helpers for ISO date strings stored on records.
# ABOUTME: Normalizes "now" and computes whole-day gaps rounded up.

from __future__ import annotations

import math
from datetime import date, datetime, timezone
from typing import Optional, Union

import pandas as pd

Moment = Union[date, datetime, pd.Timestamp, str]

SECONDS_PER_DAY = 86400


def resolve_now(now: Optional[Moment] = None) -> pd.Timestamp:
    """Return `now` as a UTC timestamp; a bare date means midnight UTC."""

    if now is None:
        return pd.Timestamp(datetime.now(timezone.utc))
    stamp = pd.Timestamp(now)
    if stamp.tzinfo is None:
        return stamp.tz_localize("UTC")
    return stamp.tz_convert("UTC")


def parse_day(value: Optional[str]) -> Optional[pd.Timestamp]:
    """Parse an ISO date string as UTC; returns None for blank or unparseable text."""

    if not value:
        return None
    stamp = pd.to_datetime(value, utc=True, errors="coerce")
    if pd.isna(stamp):
        return None
    return stamp


def days_between(later: pd.Timestamp, earlier: pd.Timestamp) -> int:
    """Whole days from `earlier` to `later`, rounded up (negative when `later` is earlier)."""

    return math.ceil((later - earlier).total_seconds() / SECONDS_PER_DAY)
