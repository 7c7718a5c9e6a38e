"""Row ordering for the drill-down table.

SLA columns hold display strings (``"2h 5m"``, ``"Overdue by 1d 3m"``,
``"Violated"``, ``"Completed"``, ``"/"``); they are compared through a signed
minute score. Every other column compares case-folded text or numbers, with
empty values first in both directions.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from functools import cmp_to_key
from typing import Any

from .config import SLA_FIELDS
from .models import NO_TARGET, CaseRow
from .time_remaining import MINUTES_PER_DAY, MINUTES_PER_HOUR, OVERDUE_PREFIX

ASC = "asc"
DESC = "desc"

VIOLATED_SCORE = -1_000_000_000.0
NO_TARGET_SCORE = 1_000_000_000.0
COMPLETED_SCORE = 2_000_000_000.0

_COMPONENT_RE = re.compile(r"(-?\d+)\s*([dhm])", re.IGNORECASE)
_FACTORS = {"d": MINUTES_PER_DAY, "h": MINUTES_PER_HOUR, "m": 1}


def parse_duration_minutes(text: str) -> int:
    """Sum ``d``/``h``/``m`` components of a duration string.

    >>> parse_duration_minutes("1d 2h 3m")
    1563
    """
    return sum(int(n) * _FACTORS[unit.lower()] for n, unit in _COMPONENT_RE.findall(text))


def sla_score(value: Any) -> float:
    """Signed score for an SLA display value; lower sorts first ascending."""
    if value is None:
        return NO_TARGET_SCORE
    text = str(value).strip()
    if text == "Violated":
        return VIOLATED_SCORE
    if text == "Completed":
        return COMPLETED_SCORE
    if not text or text == NO_TARGET:
        return NO_TARGET_SCORE
    if text.startswith(OVERDUE_PREFIX):
        return -float(parse_duration_minutes(text[len(OVERDUE_PREFIX):]))
    if not _COMPONENT_RE.search(text):
        return NO_TARGET_SCORE
    return float(parse_duration_minutes(text))


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    try:
        return value != value  # NaN
    except Exception:
        return False


def _sort_key(value: Any) -> Any:
    if isinstance(value, str):
        return value.casefold()
    return value


def _cmp(a: Any, b: Any) -> int:
    ka, kb = _sort_key(a), _sort_key(b)
    try:
        if ka < kb:
            return -1
        if ka > kb:
            return 1
        return 0
    except TypeError:
        sa, sb = str(a).casefold(), str(b).casefold()
        return (sa > sb) - (sa < sb)


def row_value(row: CaseRow | Mapping[str, Any], field: str) -> Any:
    if isinstance(row, CaseRow):
        return row.value(field)
    return row.get(field)


def compare(
    row_a: CaseRow | Mapping[str, Any],
    row_b: CaseRow | Mapping[str, Any],
    field: str,
    direction: str = ASC,
) -> int:
    """Three-way compare two rows on ``field``; returns -1, 0 or 1."""
    sign = -1 if direction == DESC else 1
    a = row_value(row_a, field)
    b = row_value(row_b, field)
    if field in SLA_FIELDS:
        # Ascending: Violated, most overdue first, remaining, "/", Completed.
        # Descending mirrors that whole order; empty-first applies to plain columns only.
        sa, sb = sla_score(a), sla_score(b)
        return sign * ((sa > sb) - (sa < sb))
    empty_a, empty_b = _is_empty(a), _is_empty(b)
    if empty_a and empty_b:
        return 0
    if empty_a:
        return -1
    if empty_b:
        return 1
    return sign * _cmp(a, b)


def sort_rows(rows: Iterable[Any], field: str | None, direction: str = ASC) -> list[Any]:
    """Stable sort; already-sorted input comes back unchanged."""
    items = list(rows)
    if not field:
        return items
    return sorted(items, key=cmp_to_key(lambda a, b: compare(a, b, field, direction)))


@dataclass(frozen=True, slots=True)
class SortState:
    field: str | None = None
    direction: str = ASC

    def toggle(self, field: str) -> SortState:
        """Header activation: same field flips direction, a new field sorts ascending."""
        if field == self.field:
            return SortState(field, DESC if self.direction == ASC else ASC)
        return SortState(field, ASC)

    @property
    def icon(self) -> str:
        return "utility:arrowup" if self.direction == ASC else "utility:arrowdown"
