"""Time-remaining resolution for milestone targets.

A milestone's remaining time can come from two places: a server-supplied
``"<minutes>:<seconds>"`` token, or a raw target timestamp compared to the
current time. The token wins for display; the timestamp is the fallback when
the token is missing or not numeric. Nothing here raises on bad input: the
no-target marker ``/`` is returned instead.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import pandas as pd
import pytz

from .models import NO_TARGET

MINUTES_PER_DAY = 1440
MINUTES_PER_HOUR = 60
OVERDUE_PREFIX = "Overdue by "


@dataclass(frozen=True, slots=True)
class TimeRemaining:
    display: str
    hours: float | None

    @property
    def is_overdue(self) -> bool:
        return self.hours is not None and self.hours < 0

    @property
    def has_target(self) -> bool:
        return self.hours is not None


NO_TARGET_REMAINING = TimeRemaining(NO_TARGET, None)


def format_duration(minutes: int) -> str:
    """Render whole minutes as ``"{d}d {h}h {m}m"``.

    >>> format_duration(1563)
    '1d 2h 3m'
    >>> format_duration(45)
    '45m'
    """
    minutes = abs(int(minutes))
    days, rest = divmod(minutes, MINUTES_PER_DAY)
    hours, mins = divmod(rest, MINUTES_PER_HOUR)
    parts: list[str] = []
    if days > 0:
        parts.append(f"{days}d")
    if hours > 0 or days > 0:
        parts.append(f"{hours}h")
    parts.append(f"{mins}m")
    return " ".join(parts)


def _display(total_minutes: float) -> str:
    text = format_duration(math.floor(abs(total_minutes)))
    return f"{OVERDUE_PREFIX}{text}" if total_minutes < 0 else text


def parse_timestamp(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    ts = pd.to_datetime(value, utc=True, errors="coerce")
    if ts is None or pd.isna(ts):
        return None
    return ts.to_pydatetime()


def from_target(target: Any, now: datetime | None = None) -> TimeRemaining:
    target_dt = parse_timestamp(target)
    if target_dt is None:
        return NO_TARGET_REMAINING
    now = now or datetime.now(pytz.UTC)
    if now.tzinfo is None:
        now = pytz.UTC.localize(now)
    delta_minutes = (target_dt - now).total_seconds() / 60.0
    return TimeRemaining(_display(delta_minutes), delta_minutes / 60.0)


def from_token(token: Any) -> TimeRemaining | None:
    """Parse a ``"<integer-minutes>:<sub-unit>"`` token, ``None`` if malformed."""
    if token is None:
        return None
    text = str(token).strip()
    if not text:
        return None
    minutes_part, _, sub_part = text.partition(":")
    negative = minutes_part.startswith("-")
    digits = minutes_part.lstrip("+-")
    if not digits.isdigit():
        return None
    seconds = 0
    if sub_part:
        if not sub_part.isdigit():
            return None
        seconds = int(sub_part)
    total_minutes = int(digits) + seconds / 60.0
    if negative:
        total_minutes = -total_minutes
    return TimeRemaining(_display(total_minutes), total_minutes / 60.0)


def resolve_time_remaining(
    token: Any = None,
    target: Any = None,
    now: datetime | None = None,
) -> TimeRemaining:
    """Resolve display text and signed hours remaining for one milestone."""
    from_tok = from_token(token)
    if from_tok is not None:
        return from_tok
    return from_target(target, now=now)
