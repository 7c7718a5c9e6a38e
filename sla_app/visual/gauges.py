"""Gauge chart builders (Altair) for the milestone counter panel."""

from __future__ import annotations

import altair as alt
import pandas as pd

from sla_app.analytics.aggregations.milestones import CounterItem

BUCKET_COLORS = {
    "red": "#e57373",
    "orange": "#ffb74d",
    "yellow": "#fff176",
    "green": "#81c784",
}
EMPTY_COLOR = "#e0e0e0"


def gauge_frame(item: CounterItem) -> pd.DataFrame:
    """One row per stacked segment, in red, orange, yellow, green order."""
    rows = [
        {
            "bucket": seg.bucket.value,
            "percent": seg.percent,
            "offset": seg.offset,
            "order": idx,
        }
        for idx, seg in enumerate(item.segments)
    ]
    df = pd.DataFrame(rows, columns=["bucket", "percent", "offset", "order"])
    if not item.has_data:
        # Zero-count types render a neutral ring instead of dividing by zero
        df = pd.DataFrame([{"bucket": "none", "percent": 100.0, "offset": 100.0, "order": 0}])
    return df


def gauge_chart(item: CounterItem, *, size: int = 120) -> alt.Chart:
    df = gauge_frame(item)
    domain = list(BUCKET_COLORS) + ["none"]
    colors = list(BUCKET_COLORS.values()) + [EMPTY_COLOR]
    base = (
        alt.Chart(df)
        .mark_arc(innerRadius=size // 3)
        .encode(
            theta=alt.Theta("percent:Q", stack=True),
            order=alt.Order("order:Q"),
            color=alt.Color(
                "bucket:N",
                scale=alt.Scale(domain=domain, range=colors),
                legend=None,
            ),
            tooltip=[
                alt.Tooltip("bucket:N", title="Bucket"),
                alt.Tooltip("percent:Q", title="Percent", format=".1f"),
            ],
        )
    )
    label = (
        alt.Chart(pd.DataFrame({"text": [str(item.count)]}))
        .mark_text(size=size // 5, fontWeight="bold")
        .encode(text="text:N")
    )
    return (base + label).properties(width=size, height=size, title=item.short_label)
