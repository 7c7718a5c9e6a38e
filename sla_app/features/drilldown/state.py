"""Explicit drill-down state and its side-effect-free view model."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from sla_app.core.client import CaseFilters
from sla_app.core.column_config import header_state
from sla_app.core.config import DEFAULT_PAGE_SIZE, PRIORITY_ORDER
from sla_app.core.export import ExportField
from sla_app.core.models import CaseRow, Column
from sla_app.core.sequencer import PartitionCursor
from sla_app.core.sorting import SortState


class DrilldownPhase(str, Enum):
    CLOSED = "closed"
    OPENING = "opening"
    OPEN = "open"
    LOADING_MORE = "loading_more"


@dataclass(slots=True)
class PartitionState:
    cursor: PartitionCursor = field(default_factory=PartitionCursor)
    rows: list[CaseRow] = field(default_factory=list)
    loading: bool = False
    loading_offset: int | None = None


@dataclass(slots=True)
class DrilldownState:
    phase: DrilldownPhase = DrilldownPhase.CLOSED
    dashboard_id: str | None = None
    scope_id: str | None = None
    columns: list[Column] = field(default_factory=list)
    sort: SortState = field(default_factory=SortState)
    search_term: str = ""
    priority_filter: tuple[str, ...] = ()
    has_jira: bool = False
    only_first_sla: bool = False
    primary: PartitionState = field(default_factory=PartitionState)
    stopped: PartitionState = field(default_factory=PartitionState)
    export_fields: list[ExportField] = field(default_factory=list)
    is_export_open: bool = False

    @classmethod
    def closed(cls, page_size: int = DEFAULT_PAGE_SIZE) -> DrilldownState:
        return cls(
            primary=PartitionState(PartitionCursor(page_size)),
            stopped=PartitionState(PartitionCursor(page_size)),
        )

    def partition(self, stopped: bool) -> PartitionState:
        return self.stopped if stopped else self.primary

    def filters(self) -> CaseFilters:
        return CaseFilters(
            dashboard_id=self.dashboard_id or "",
            scope_id=self.scope_id,
            search_term=self.search_term,
            priority_filter=self.priority_filter,
            has_jira=self.has_jira,
            sort_field=self.sort.field,
            sort_order=self.sort.direction,
            only_first_sla=self.only_first_sla,
        )


@dataclass(frozen=True, slots=True)
class HeaderView:
    field_name: str
    label: str
    data_type: str
    style: str
    is_sortable: bool
    header_class: str
    show_sort_icon: bool


@dataclass(frozen=True, slots=True)
class DrilldownViewModel:
    is_open: bool
    title: str
    headers: list[HeaderView]
    rows: list[CaseRow]
    stopped_rows: list[CaseRow]
    search_placeholder: str
    priority_variants: dict[str, str]
    has_jira_variant: str
    sort_icon: str
    is_loading: bool
    is_loading_more: bool
    has_more: bool
    is_export_open: bool
    export_fields: list[ExportField]


def _variant(active: bool) -> str:
    return "brand" if active else "neutral"


def compute_view_model(state: DrilldownState) -> DrilldownViewModel:
    """Derive everything a renderer needs from ``state`` without mutating it."""
    headers = []
    for col in state.columns:
        header_class, show_icon = header_state(col, state.sort.field)
        headers.append(
            HeaderView(
                field_name=col.field_name,
                label=col.label,
                data_type=col.data_type,
                style=col.style,
                is_sortable=col.is_sortable,
                header_class=header_class,
                show_sort_icon=show_icon,
            )
        )
    primary = state.primary
    more = "+" if primary.cursor.has_more else ""
    return DrilldownViewModel(
        is_open=state.phase is not DrilldownPhase.CLOSED,
        title=f"{state.dashboard_id} Overview" if state.dashboard_id else "",
        headers=headers,
        rows=list(primary.rows),
        stopped_rows=list(state.stopped.rows),
        search_placeholder=f"Filter {len(primary.rows)}{more} cases...",
        priority_variants={p: _variant(p in state.priority_filter) for p in PRIORITY_ORDER},
        has_jira_variant=_variant(state.has_jira),
        sort_icon=state.sort.icon,
        is_loading=state.phase is DrilldownPhase.OPENING or (primary.loading and primary.loading_offset == 0),
        is_loading_more=state.phase is DrilldownPhase.LOADING_MORE,
        has_more=primary.cursor.has_more,
        is_export_open=state.is_export_open,
        export_fields=list(state.export_fields),
    )
