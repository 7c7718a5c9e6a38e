from datetime import datetime

import pytz

from sla_app.analytics.aggregations.milestones import build_counter_items, summarize
from sla_app.core.column_config import build_columns
from sla_app.core.models import MilestoneRecord
from sla_app.core.normalizer import RowNormalizer
from sla_app.features.drilldown.state import DrilldownState, compute_view_model
from sla_app.visual.gauges import gauge_chart, gauge_frame
from sla_app.visual.tables import rows_to_frame, ticket_frame

NOW = datetime(2024, 9, 1, 12, 0, 0, tzinfo=pytz.UTC)


def _sample_items():
    milestones = [
        MilestoneRecord("c1", "Response Time", "High", time_remaining_token="30:00"),
        MilestoneRecord("c2", "Response Time", "Low", time_remaining_token="3000:00"),
    ]
    return build_counter_items(summarize(milestones, now=NOW))


def test_gauge_frame_segments():
    rt = _sample_items()[0]
    df = gauge_frame(rt)
    assert list(df["bucket"]) == ["red", "orange", "yellow", "green"]
    assert df["percent"].sum() == 100.0
    chart = gauge_chart(rt)
    assert chart is not None


def test_empty_gauge_renders_neutral_ring():
    fx = _sample_items()[3]
    df = gauge_frame(fx)
    assert list(df["bucket"]) == ["none"]
    assert gauge_chart(fx, size=80) is not None


def test_rows_to_frame_uses_cell_values():
    columns = build_columns("CaseNumber, Subject, IsEscalated, jira")
    state = DrilldownState(columns=columns)
    headers = compute_view_model(state).headers
    raw = {
        "Id": "500A",
        "CaseNumber": "00001",
        "Subject": "Crash",
        "IsEscalated": True,
        "Jira_Tickets__r": [{"Id": "a1", "Name": "AVB-7", "AVB_Status__c": "Done"}],
    }
    rows = RowNormalizer(now=NOW).normalize([raw], columns)
    df = rows_to_frame(rows, headers)
    assert list(df.columns) == [c.field_name for c in columns]
    assert df.loc[0, "IsEscalated"] == True  # noqa: E712
    assert df.loc[0, "jira"] == "AVB-7"
    assert df.loc[0, "RT_Remaining"] == "/"
    tickets = ticket_frame(rows[0])
    assert tickets.loc[0, "Status"] == "Done"
    assert tickets.loc[0, "Ticket"].endswith("/browse/AVB-7")
