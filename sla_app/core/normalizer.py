"""Turn raw case records into render-ready drill-down rows."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime
from typing import Any

import pandas as pd
import pytz

from .config import (
    CASE_ID_FIELD,
    DEFAULT_PRIORITY,
    DEFAULT_TICKET_BASE_URL,
    MILESTONE_BY_NAME,
    MILESTONE_RELATION,
    SLA_FIELDS,
    TICKET_RELATION,
    TIMEZONE,
)
from .mappers import case_milestones, flatten_record, map_tickets
from .models import (
    SLA_COMPLETED,
    SLA_NO_TARGET,
    SLA_VIOLATED,
    CaseRow,
    Cell,
    Column,
    MilestoneRecord,
    SlaKind,
    SlaStatus,
)
from .thresholds import DEFAULT_THRESHOLDS, Thresholds, classify, severity_class
from .time_remaining import resolve_time_remaining

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d %H:%M"


def milestone_status(
    milestone: MilestoneRecord,
    now: datetime | None = None,
) -> tuple[SlaStatus, float | None]:
    """Status and signed hours remaining for a single milestone instance."""
    if milestone.is_completed:
        return (SLA_VIOLATED if milestone.is_violated else SLA_COMPLETED), None
    remaining = resolve_time_remaining(
        token=milestone.time_remaining_token,
        target=milestone.target_date,
        now=now,
    )
    if not remaining.has_target:
        return SLA_NO_TARGET, None
    kind = SlaKind.OVERDUE if remaining.is_overdue else SlaKind.REMAINING
    return SlaStatus(kind, remaining.display), remaining.hours


def combine_status(current: SlaStatus, candidate: SlaStatus) -> SlaStatus:
    """Keep the higher-precedence status; on a tie the earlier one stays."""
    return candidate if candidate.rank > current.rank else current


def is_date_field(field_name: str) -> bool:
    return "date" in field_name.lower()


class RowNormalizer:
    def __init__(
        self,
        thresholds: Thresholds = DEFAULT_THRESHOLDS,
        *,
        timezone: str = TIMEZONE,
        ticket_base_url: str = DEFAULT_TICKET_BASE_URL,
        now: datetime | None = None,
    ):
        self.thresholds = thresholds
        self._tz = pytz.timezone(timezone)
        self.ticket_base_url = ticket_base_url
        self._now = now

    @property
    def now(self) -> datetime:
        return self._now or datetime.now(pytz.UTC)

    # ------------------ SLA Resolution ------------------
    def resolve_sla(
        self, milestones: Iterable[MilestoneRecord]
    ) -> tuple[dict[str, SlaStatus], dict[str, str]]:
        """One SLA status and severity class per milestone type field."""
        statuses = {f: SLA_NO_TARGET for f in SLA_FIELDS}
        classes = {f: "" for f in SLA_FIELDS}
        now = self.now
        for milestone in milestones:
            mtype = MILESTONE_BY_NAME.get(milestone.name or "")
            if mtype is None:
                continue
            status, hours = milestone_status(milestone, now=now)
            current = statuses[mtype.field_name]
            if combine_status(current, status) is current:
                continue
            statuses[mtype.field_name] = status
            if milestone.is_violated:
                bucket = classify(hours, completed=False, violated=True, thresholds=self.thresholds)
            elif milestone.is_completed or hours is None:
                bucket = None
            else:
                bucket = classify(hours, thresholds=self.thresholds)
            classes[mtype.field_name] = severity_class(bucket)
        return statuses, classes

    # ------------------ Flattening ------------------
    def flatten(self, raw: Mapping[str, Any]) -> dict[str, Any]:
        """Flattened record with derived SLA values written under their field names."""
        record = flatten_record(raw)
        statuses, _ = self.resolve_sla(case_milestones(raw))
        for field_name, status in statuses.items():
            record[field_name] = status.display
        return record

    # ------------------ Cell Formatting ------------------
    def format_date(self, value: Any) -> Any:
        if not value:
            return ""
        ts = pd.to_datetime(value, utc=True, errors="coerce")
        if ts is None or pd.isna(ts):
            return value
        return ts.tz_convert(self._tz).strftime(DATE_FORMAT)

    def format_value(self, field_name: str, value: Any) -> Any:
        if value and is_date_field(field_name) and field_name not in SLA_FIELDS:
            return self.format_date(value)
        return value

    def build_cells(self, row: CaseRow, columns: Sequence[Column]) -> list[Cell]:
        cells: list[Cell] = []
        for col in columns:
            if col.data_type == "jira":
                value = ", ".join(t.name for t in row.tickets)
            elif col.field_name in row.sla:
                value = row.sla[col.field_name].display
            else:
                value = self.format_value(col.field_name, row.record.get(col.field_name))
            is_boolean = col.data_type == "boolean"
            cells.append(
                Cell(
                    key=col.field_name,
                    value=value,
                    is_url=col.data_type == "button",
                    is_boolean=is_boolean,
                    checked=bool(value) if is_boolean else False,
                    css_class=row.sla_classes.get(col.field_name, ""),
                )
            )
        return cells

    # ------------------ Rows ------------------
    @staticmethod
    def row_class(record: Mapping[str, Any], violated: bool = False) -> str:
        if violated:
            return "table-row sla-violated"
        priority = str(record.get("Priority") or DEFAULT_PRIORITY).lower()
        return f"table-row priority-{priority}"

    def normalize_row(self, raw: Mapping[str, Any], columns: Sequence[Column]) -> CaseRow:
        record = flatten_record(raw)
        milestones = case_milestones(raw)
        statuses, classes = self.resolve_sla(milestones)
        row_class = self.row_class(record, violated=any(m.is_violated for m in milestones))
        for field_name, status in statuses.items():
            record[field_name] = status.display
        record.pop(MILESTONE_RELATION, None)
        tickets = map_tickets(raw, self.ticket_base_url)
        record.pop(TICKET_RELATION, None)
        row = CaseRow(
            key=str(record.get("Id") or record.get(CASE_ID_FIELD) or ""),
            record=record,
            sla=statuses,
            sla_classes=classes,
            row_class=row_class,
            tickets=tickets,
        )
        row.cells = self.build_cells(row, columns)
        return row

    def _error_row(self, raw: Any, columns: Sequence[Column], index: int) -> CaseRow:
        key = ""
        if isinstance(raw, Mapping):
            key = str(raw.get("Id") or raw.get(CASE_ID_FIELD) or "")
        key = key or f"row-{index}"
        return CaseRow(
            key=key,
            record={},
            sla={f: SLA_NO_TARGET for f in SLA_FIELDS},
            cells=[Cell(key=col.field_name, value="") for col in columns],
            row_class="table-row row-error",
        )

    def normalize(self, raw_records: Iterable[Any], columns: Sequence[Column]) -> list[CaseRow]:
        """Normalize a page of raw case records; bad rows degrade, never abort."""
        rows: list[CaseRow] = []
        for index, raw in enumerate(raw_records):
            try:
                rows.append(self.normalize_row(raw, columns))
            except Exception as exc:
                logger.warning("Malformed case record at index %s: %s", index, exc)
                rows.append(self._error_row(raw, columns, index))
        return rows

    def rebuild_cells(self, rows: Iterable[CaseRow], columns: Sequence[Column]) -> list[CaseRow]:
        """Re-align cells after a column change without refetching."""
        out: list[CaseRow] = []
        for row in rows:
            row.cells = self.build_cells(row, columns)
            out.append(row)
        return out
