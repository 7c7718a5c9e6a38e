"""Milestone aggregations: per-type counts, priority breakdowns, severity buckets, gauges."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime

import pandas as pd

from sla_app.core.config import DEFAULT_PRIORITY, MILESTONE_TYPES, PRIORITY_HEATMAP, PRIORITY_ORDER
from sla_app.core.models import MilestoneRecord, MilestoneStats, SeverityBucket
from sla_app.core.thresholds import DEFAULT_THRESHOLDS, Thresholds, classify
from sla_app.core.time_remaining import resolve_time_remaining

REPRESENTATIVE_RULES = ("first", "earliest_target", "most_severe")

FULL_CIRCLE = 100.0
GAUGE_STACK_ORDER = (
    SeverityBucket.RED,
    SeverityBucket.ORANGE,
    SeverityBucket.YELLOW,
    SeverityBucket.GREEN,
)

FRAME_COLUMNS = [
    "order",
    "case_id",
    "name",
    "priority",
    "hours",
    "is_completed",
    "is_violated",
    "is_stopped",
    "bucket",
    "severity",
]


@dataclass(slots=True)
class SummarySnapshot:
    active: dict[str, MilestoneStats] = field(default_factory=dict)
    stopped: dict[str, MilestoneStats] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class GaugeSegment:
    bucket: SeverityBucket
    percent: float
    offset: float


@dataclass(slots=True)
class CounterItem:
    id: str
    full_label: str
    short_label: str
    field_name: str
    count: int
    tooltip: str
    item_style: str
    heatmap_style: str
    has_data: bool
    segments: list[GaugeSegment]
    is_alerting: bool = False
    completed: int = 0
    stopped_count: int = 0


def milestones_to_frame(
    milestones: Iterable[MilestoneRecord],
    *,
    thresholds: Thresholds = DEFAULT_THRESHOLDS,
    now: datetime | None = None,
) -> pd.DataFrame:
    rows = []
    for order, m in enumerate(milestones):
        remaining = resolve_time_remaining(token=m.time_remaining_token, target=m.target_date, now=now)
        bucket = classify(
            remaining.hours,
            completed=m.is_completed,
            violated=m.is_violated,
            thresholds=thresholds,
        )
        rows.append(
            {
                "order": order,
                "case_id": m.case_id,
                "name": m.name,
                "priority": m.priority or DEFAULT_PRIORITY,
                "hours": remaining.hours,
                "is_completed": m.is_completed,
                "is_violated": m.is_violated,
                "is_stopped": m.is_stopped,
                "bucket": bucket.value if bucket is not None else None,
                "severity": bucket.rank if bucket is not None else -1,
            }
        )
    return pd.DataFrame(rows, columns=FRAME_COLUMNS)


def select_representatives(df: pd.DataFrame, rule: str = "first") -> pd.DataFrame:
    """Keep one milestone per case.

    ``first`` keeps the first occurrence in input order; ``earliest_target``
    keeps the milestone with the fewest hours remaining; ``most_severe`` keeps
    the most urgent bucket (then fewest hours). Ties fall back to input order.
    Milestones without a case id are never collapsed.
    """
    if rule not in REPRESENTATIVE_RULES:
        raise ValueError(f"Unknown representative rule {rule!r}; expected one of {REPRESENTATIVE_RULES}")
    if df.empty:
        return df
    keyed = df[df["case_id"].notna()]
    orphans = df[df["case_id"].isna()]
    if rule == "earliest_target":
        keyed = keyed.sort_values(by=["hours", "order"], ascending=[True, True], na_position="last", kind="stable")
    elif rule == "most_severe":
        keyed = keyed.sort_values(
            by=["severity", "hours", "order"],
            ascending=[False, True, True],
            na_position="last",
            kind="stable",
        )
    keyed = keyed.drop_duplicates(subset="case_id", keep="first")
    return pd.concat([keyed, orphans]).sort_values(by="order", kind="stable")


def _stats_for(sub: pd.DataFrame) -> MilestoneStats:
    stats = MilestoneStats(priority_counts={p: 0 for p in PRIORITY_ORDER})
    if sub.empty:
        return stats
    bucketed = sub[sub["bucket"].notna()]
    stats.count = int(len(bucketed))
    stats.completed = int(len(sub) - len(bucketed))
    counts = bucketed["bucket"].value_counts()
    for bucket in SeverityBucket:
        stats.bucket_counts[bucket] = int(counts.get(bucket.value, 0))
    priorities = bucketed["priority"].value_counts()
    for priority in PRIORITY_ORDER:
        stats.priority_counts[priority] = int(priorities.get(priority, 0))
    return stats


def aggregate_milestones(
    milestones: Iterable[MilestoneRecord],
    *,
    priority_mode: bool = False,
    representative: str = "first",
    thresholds: Thresholds = DEFAULT_THRESHOLDS,
    now: datetime | None = None,
    frame: pd.DataFrame | None = None,
) -> dict[str, MilestoneStats]:
    """Per-milestone-type statistics keyed by milestone type name.

    Completed milestones are counted in ``completed`` and never bucketed, so
    ``sum(bucket_counts) == count`` always holds. In priority mode only one
    representative milestone per case contributes (see
    ``select_representatives``).
    """
    df = frame if frame is not None else milestones_to_frame(milestones, thresholds=thresholds, now=now)
    df = _known_types(df)
    if priority_mode:
        df = select_representatives(df, representative)
    return {m.name: _stats_for(df[df["name"] == m.name]) for m in MILESTONE_TYPES}


def _known_types(df: pd.DataFrame) -> pd.DataFrame:
    return df[df["name"].isin([m.name for m in MILESTONE_TYPES])]


def summarize(
    milestones: Iterable[MilestoneRecord],
    *,
    priority_mode: bool = False,
    representative: str = "first",
    thresholds: Thresholds = DEFAULT_THRESHOLDS,
    now: datetime | None = None,
) -> SummarySnapshot:
    """Aggregate active and stopped (waiting) milestones as separate sets.

    In priority mode the representative per case is chosen across both sets,
    so a case contributes once in total, not once per set.
    """
    df = _known_types(milestones_to_frame(milestones, thresholds=thresholds, now=now))
    if priority_mode:
        df = select_representatives(df, representative)
    stopped_mask = df["is_stopped"].astype(bool)
    return SummarySnapshot(
        active=aggregate_milestones([], frame=df[~stopped_mask]),
        stopped=aggregate_milestones([], frame=df[stopped_mask]),
    )


# ------------------ Gauge Derivation ------------------
def gauge_segments(stats: MilestoneStats) -> list[GaugeSegment]:
    """Stacked gauge segments (red, orange, yellow, green).

    Each offset is the full circle minus the percentages of the preceding
    segments. The denominator is floored at 1 so empty types never divide by
    zero.
    """
    denom = max(stats.count, 1)
    consumed = 0.0
    segments: list[GaugeSegment] = []
    for bucket in GAUGE_STACK_ORDER:
        percent = 100.0 * stats.bucket_counts.get(bucket, 0) / denom
        segments.append(GaugeSegment(bucket, percent, FULL_CIRCLE - consumed))
        consumed += percent
    return segments


def priority_tooltip(stats: MilestoneStats) -> str:
    pc = stats.priority_counts
    return " | ".join(f"{p[0]}: {pc.get(p, 0)}" for p in PRIORITY_ORDER)


def heatmap_background(stats: MilestoneStats) -> str:
    if stats.count <= 0:
        return "transparent"
    for priority in ("Urgent", "High"):
        if stats.priority_counts.get(priority, 0) > 0:
            return PRIORITY_HEATMAP[priority]
    return PRIORITY_HEATMAP["Normal"]


def build_counter_items(
    snapshot: SummarySnapshot,
    *,
    threshold_color: str = "#ff0000",
    normal_color: str = "#000000",
) -> list[CounterItem]:
    """Pure gauge view model for the counter panel, one item per milestone type."""
    items: list[CounterItem] = []
    empty = MilestoneStats(priority_counts={p: 0 for p in PRIORITY_ORDER})
    for mtype in MILESTONE_TYPES:
        stats = snapshot.active.get(mtype.name, empty)
        stopped = snapshot.stopped.get(mtype.name, empty)
        color = threshold_color if stats.count > 0 else normal_color
        items.append(
            CounterItem(
                id=mtype.name,
                full_label=mtype.name,
                short_label=mtype.short_label,
                field_name=mtype.field_name,
                count=stats.count,
                tooltip=priority_tooltip(stats),
                item_style=f"color: {color}",
                heatmap_style=f"background-color: {heatmap_background(stats)}",
                has_data=stats.has_data,
                segments=gauge_segments(stats),
                is_alerting=stats.bucket_counts.get(SeverityBucket.RED, 0) > 0,
                completed=stats.completed,
                stopped_count=stopped.count,
            )
        )
    return items


def bucket_totals(stats_by_type: Mapping[str, MilestoneStats]) -> dict[SeverityBucket, int]:
    totals = {b: 0 for b in SeverityBucket}
    for stats in stats_by_type.values():
        for bucket, count in stats.bucket_counts.items():
            totals[bucket] += count
    return totals
