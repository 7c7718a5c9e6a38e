"""CSV export of the filtered drill-down result set."""

from __future__ import annotations

import csv
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace
from typing import Any

import pandas as pd

from .client import CaseFilters, SlaDataSource
from .column_config import query_fields
from .config import CASE_ID_FIELD, EXPORT_FILENAME, EXPORT_ROW_CAP, SLA_FIELDS
from .mappers import map_tickets, to_field_key
from .models import Column, TicketRef
from .normalizer import RowNormalizer

logger = logging.getLogger(__name__)

# Export field name -> TicketRef attribute
TICKET_FIELDS: dict[str, str] = {
    "Jira.Name": "name",
    "Jira.Status": "status",
    "Jira.Priority": "priority",
    "Jira.FixVersion": "fix_version",
    "Jira.Assignee": "assignee",
}


@dataclass(frozen=True, slots=True)
class ExportField:
    api_name: str
    label: str
    selected: bool = True


def selectable_fields(columns: Sequence[Column]) -> list[ExportField]:
    """Every exportable column (SLA columns included) plus ticket fields."""
    out: list[ExportField] = []
    for col in columns:
        if col.data_type == "jira":
            continue
        out.append(ExportField(col.source_field or col.field_name, col.label))
    for name in TICKET_FIELDS:
        out.append(ExportField(name, name.replace(".", " ")))
    return out


def toggle_field(fields: Sequence[ExportField], api_name: str, selected: bool) -> list[ExportField]:
    return [replace(f, selected=selected) if f.api_name == api_name else f for f in fields]


def _ticket_value(ticket: TicketRef | None, attribute: str) -> str:
    if ticket is None:
        return ""
    return str(getattr(ticket, attribute, "") or "")


def _placeholder_row(raw: Any, selected_fields: Sequence[str]) -> dict[str, Any]:
    """Identifier-only row for a record that could not be flattened."""
    ids = raw if isinstance(raw, Mapping) else {}
    return {
        name: _cell(ids.get(name)) if name in (CASE_ID_FIELD, "Id") else ""
        for name in selected_fields
    }


def _cell(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, (list, dict)):
        return ""
    return value


class CsvExporter:
    def __init__(
        self,
        source: SlaDataSource,
        normalizer: RowNormalizer,
        *,
        row_cap: int = EXPORT_ROW_CAP,
    ):
        self.source = source
        self.normalizer = normalizer
        self.row_cap = row_cap

    @staticmethod
    def query_fields(selected_fields: Sequence[str]) -> list[str]:
        """Stored fields to request; derived SLA and ticket fields are excluded."""
        columns = [
            Column(to_field_key(name), name, source_field=name)
            for name in selected_fields
            if name not in SLA_FIELDS and name not in TICKET_FIELDS
        ]
        return query_fields(columns)

    def build_rows(
        self, raw_records: Sequence[dict[str, Any]], selected_fields: Sequence[str]
    ) -> list[dict[str, Any]]:
        """One output row per case and ticket reference (at least one per case)."""
        case_fields = [f for f in selected_fields if f not in TICKET_FIELDS]
        ticket_fields = [f for f in selected_fields if f in TICKET_FIELDS]
        rows: list[dict[str, Any]] = []
        for raw in raw_records:
            try:
                record = self.normalizer.flatten(raw)
                tickets: list[TicketRef | None] = list(map_tickets(raw, self.normalizer.ticket_base_url))
            except Exception as exc:
                logger.warning("Malformed record in export, writing placeholder row: %s", exc)
                rows.append(_placeholder_row(raw, selected_fields))
                continue
            base = {
                name: _cell(self.normalizer.format_value(to_field_key(name), record.get(to_field_key(name))))
                for name in case_fields
            }
            for ticket in tickets or [None]:
                row = dict(base)
                for name in ticket_fields:
                    row[name] = _ticket_value(ticket, TICKET_FIELDS[name])
                rows.append({name: row[name] for name in selected_fields})
        return rows

    def to_csv(self, rows: Sequence[dict[str, Any]], selected_fields: Sequence[str]) -> str:
        df = pd.DataFrame(list(rows), columns=list(selected_fields))
        return df.to_csv(index=False, quoting=csv.QUOTE_ALL, lineterminator="\n")

    async def export(self, filters: CaseFilters, selected_fields: Sequence[str]) -> str:
        """Fetch the unpaginated result set for ``filters`` and serialise it."""
        selected = list(selected_fields)
        request = filters.page_request(self.query_fields(selected), offset=0, limit=self.row_cap)
        raw_records = await self.source.fetch_case_page(request)
        logger.info("Exporting %d case(s) to %s", len(raw_records), EXPORT_FILENAME)
        return self.to_csv(self.build_rows(raw_records, selected), selected)
