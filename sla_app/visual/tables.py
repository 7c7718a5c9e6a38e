"""Reusable table helpers for Streamlit rendering of drill-down rows."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import pandas as pd
import streamlit as st

from sla_app.core.models import CaseRow
from sla_app.features.drilldown.state import HeaderView

SLA_HELP = "Time remaining until the milestone target (or its final state)."


def rows_to_frame(rows: Sequence[CaseRow], headers: Sequence[HeaderView]) -> pd.DataFrame:
    """Flatten pre-computed cells into a DataFrame keyed by column field name."""
    data: list[dict[str, Any]] = []
    for row in rows:
        data.append({cell.key: cell.checked if cell.is_boolean else cell.value for cell in row.cells})
    return pd.DataFrame(data, columns=[h.field_name for h in headers])


def column_config_for(headers: Sequence[HeaderView]) -> dict[str, object]:
    cfg: dict[str, object] = {}
    for header in headers:
        label = header.label
        if header.show_sort_icon:
            label = f"{label} ▲▼"
        width = "small" if header.data_type == "boolean" else "medium"
        if header.data_type == "boolean":
            cfg[header.field_name] = st.column_config.CheckboxColumn(label, width=width)
        elif header.field_name.endswith("_Remaining"):
            cfg[header.field_name] = st.column_config.TextColumn(label, help=SLA_HELP, width=width)
        else:
            cfg[header.field_name] = st.column_config.TextColumn(label, width=width)
    return cfg


def ticket_frame(row: CaseRow) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "Ticket": t.url,
                "Status": t.status,
                "Priority": t.priority,
                "Fix Version": t.fix_version,
                "Assignee": t.assignee,
            }
            for t in row.tickets
        ]
    )


def render_case_table(rows: Sequence[CaseRow], headers: Sequence[HeaderView], limit: int = 1000):
    df = rows_to_frame(rows, headers).head(limit)
    st.dataframe(df, hide_index=True, column_config=column_config_for(headers))
