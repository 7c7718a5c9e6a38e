import pytest

from sla_app.analytics.aggregations.milestones import (
    aggregate_milestones,
    bucket_totals,
    build_counter_items,
    gauge_segments,
    priority_tooltip,
    summarize,
)
from sla_app.core.models import MilestoneRecord, MilestoneStats, SeverityBucket


def _m(case_id, name, token=None, priority=None, completed=False, violated=False, stopped=False):
    return MilestoneRecord(
        case_id=case_id,
        name=name,
        priority=priority,
        time_remaining_token=token,
        is_completed=completed,
        is_violated=violated,
        is_stopped=stopped,
    )


def _sample_milestones():
    return [
        _m("c1", "Analysis and Timeline", "1500:00", "High"),  # 25h green
        _m("c1", "Response Time", "30:00", "High"),  # 0.5h red
        _m("c2", "Response Time", "600:00", "Urgent"),  # 10h orange
        _m("c3", "Response Time", completed=True, priority="Low"),
        _m("c4", "Response Time", completed=True, violated=True),
        _m("c5", "Something Else", "10:00", "High"),
        _m("c6", "Response Time", "2000:00", "Normal", stopped=True),
    ]


def test_counts_and_buckets():
    stats = aggregate_milestones([m for m in _sample_milestones() if not m.is_stopped])
    rt = stats["Response Time"]
    assert rt.count == 3
    assert rt.completed == 1
    assert rt.bucket_counts[SeverityBucket.RED] == 2
    assert rt.bucket_counts[SeverityBucket.ORANGE] == 1
    assert sum(rt.bucket_counts.values()) == rt.count
    assert rt.priority_counts == {"Urgent": 1, "High": 1, "Normal": 1, "Low": 0}
    assert stats["Analysis and Timeline"].bucket_counts[SeverityBucket.GREEN] == 1
    assert set(stats) == {"Response Time", "Analysis and Timeline", "Update or Workaround", "Fix Resolution"}


def test_priority_mode_first_occurrence():
    stats = aggregate_milestones(_sample_milestones()[:5], priority_mode=True)
    assert stats["Analysis and Timeline"].count == 1
    assert stats["Response Time"].count == 2


def test_priority_mode_earliest_target():
    stats = aggregate_milestones(_sample_milestones()[:5], priority_mode=True, representative="earliest_target")
    assert stats["Analysis and Timeline"].count == 0
    assert stats["Response Time"].count == 3


def test_priority_mode_most_severe():
    stats = aggregate_milestones(_sample_milestones()[:5], priority_mode=True, representative="most_severe")
    assert stats["Analysis and Timeline"].count == 0
    assert stats["Response Time"].bucket_counts[SeverityBucket.RED] == 2


def test_unknown_representative_rule():
    with pytest.raises(ValueError):
        aggregate_milestones(_sample_milestones(), priority_mode=True, representative="latest")


def test_priority_mode_ignores_unknown_types_first():
    milestones = [_m("c9", "Something Else", "10:00"), _m("c9", "Fix Resolution", "10:00")]
    stats = aggregate_milestones(milestones, priority_mode=True)
    assert stats["Fix Resolution"].count == 1


def test_summarize_splits_stopped():
    snapshot = summarize(_sample_milestones())
    assert snapshot.active["Response Time"].count == 3
    assert snapshot.stopped["Response Time"].count == 1
    assert snapshot.stopped["Response Time"].bucket_counts[SeverityBucket.GREEN] == 1


def test_summarize_empty():
    snapshot = summarize([])
    assert all(not s.has_data for s in snapshot.active.values())


def test_gauge_segments_sum_to_full_circle():
    stats = summarize(_sample_milestones()).active["Response Time"]
    segments = gauge_segments(stats)
    assert [s.bucket for s in segments] == [
        SeverityBucket.RED,
        SeverityBucket.ORANGE,
        SeverityBucket.YELLOW,
        SeverityBucket.GREEN,
    ]
    assert sum(s.percent for s in segments) == pytest.approx(100.0)
    assert segments[0].offset == 100.0
    assert segments[1].offset == pytest.approx(100.0 - segments[0].percent)


def test_empty_gauge_has_no_segments():
    segments = gauge_segments(MilestoneStats())
    assert all(s.percent == 0 for s in segments)


def test_counter_items():
    items = build_counter_items(summarize(_sample_milestones()), threshold_color="#f00", normal_color="#000")
    assert [i.short_label for i in items] == ["RT", "A&T", "UoW", "Fx"]
    rt = items[0]
    assert rt.full_label == "Response Time"
    assert rt.count == 3
    assert rt.tooltip == "U: 1 | H: 1 | N: 1 | L: 0"
    assert rt.item_style == "color: #f00"
    assert rt.heatmap_style == "background-color: rgba(229, 115, 115, 0.3)"
    assert rt.is_alerting
    assert rt.completed == 1
    assert rt.stopped_count == 1
    fx = items[3]
    assert not fx.has_data
    assert fx.item_style == "color: #000"
    assert fx.heatmap_style == "background-color: transparent"
    assert not fx.is_alerting


def test_tooltip_and_totals():
    stats = aggregate_milestones(_sample_milestones())
    assert priority_tooltip(stats["Fix Resolution"]) == "U: 0 | H: 0 | N: 0 | L: 0"
    totals = bucket_totals(stats)
    assert totals[SeverityBucket.RED] == 2
    assert sum(totals.values()) == sum(s.count for s in stats.values())


def test_priority_mode_counts_case_once_across_stopped_and_active():
    milestones = [
        _m("c1", "Response Time", "30:00", "High", stopped=True),
        _m("c1", "Fix Resolution", "30:00", "High"),
        _m("c2", "Fix Resolution", "3000:00", "Low"),
    ]
    snapshot = summarize(milestones, priority_mode=True)
    total = sum(s.count for s in snapshot.active.values()) + sum(s.count for s in snapshot.stopped.values())
    assert total == 2
    assert snapshot.stopped["Response Time"].count == 1
    assert snapshot.active["Fix Resolution"].count == 1
    unfiltered = summarize(milestones)
    assert unfiltered.active["Fix Resolution"].count == 2


def test_stopped_red_milestones_never_alert():
    milestones = [
        _m("c1", "Response Time", "10:00", "Urgent", stopped=True),
        _m("c2", "Response Time", "3000:00", "Low"),
    ]
    snapshot = summarize(milestones)
    assert snapshot.stopped["Response Time"].bucket_counts[SeverityBucket.RED] == 1
    rt = build_counter_items(snapshot)[0]
    assert rt.stopped_count == 1
    assert not rt.is_alerting
