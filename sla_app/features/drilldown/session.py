"""Drill-down session: the async state machine behind the case table.

``Closed -> Opening -> Open <-> Loading-more -> Closed``. Filter and sort
changes re-enter a fetch from offset 0 without resetting the session; each
partition's ``RequestSequencer`` makes sure only the newest response is
applied. In-flight requests are never aborted, their results are dropped.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from sla_app.core.client import SlaDataSource
from sla_app.core.column_config import MetadataLookup, build_columns, query_fields
from sla_app.core.config import (
    CASE_ID_FIELD,
    MILESTONE_BY_NAME,
    SCROLL_LOAD_THRESHOLD_PX,
    AppSettings,
)
from sla_app.core.dashboard import Notifier, log_notifier
from sla_app.core.export import CsvExporter, selectable_fields, toggle_field
from sla_app.core.normalizer import RowNormalizer
from sla_app.core.sequencer import RequestSequencer
from sla_app.core.sorting import ASC, SortState, sort_rows
from sla_app.core.subscriptions import ColumnResizeGesture, ListenerRegistry, Subscription
from sla_app.core.thresholds import Thresholds

from .state import DrilldownPhase, DrilldownState, DrilldownViewModel, compute_view_model

logger = logging.getLogger(__name__)

ESCAPE_KEY = "Escape"


class DrilldownSession:
    def __init__(
        self,
        source: SlaDataSource,
        settings: AppSettings,
        *,
        scope_id: str | None = None,
        normalizer: RowNormalizer | None = None,
        listeners: ListenerRegistry | None = None,
        metadata_lookup: MetadataLookup | None = None,
        notify: Notifier = log_notifier,
    ):
        self.source = source
        self.settings = settings
        self.scope_id = scope_id
        self.normalizer = normalizer or RowNormalizer(
            Thresholds.from_settings(settings.thresholds),
            timezone=settings.timezone,
            ticket_base_url=settings.ticket_base_url,
        )
        self.listeners = listeners or ListenerRegistry()
        self.metadata_lookup = metadata_lookup
        self.notify = notify
        self.exporter = CsvExporter(source, self.normalizer, row_cap=settings.export_row_cap)
        self.state = DrilldownState.closed(settings.page_size)
        self._sequencers = {False: RequestSequencer(), True: RequestSequencer()}
        self._escape: Subscription | None = None

    @property
    def view_model(self) -> DrilldownViewModel:
        return compute_view_model(self.state)

    @property
    def is_open(self) -> bool:
        return self.state.phase is not DrilldownPhase.CLOSED

    # ------------------ Lifecycle ------------------
    async def open(self, dashboard_id: str, *, only_first_sla: bool = False) -> DrilldownViewModel:
        mtype = MILESTONE_BY_NAME.get(dashboard_id)
        sort = SortState(mtype.field_name if mtype else CASE_ID_FIELD, ASC)
        state = DrilldownState.closed(self.settings.page_size)
        state.phase = DrilldownPhase.OPENING
        state.dashboard_id = dashboard_id
        state.scope_id = self.scope_id
        state.sort = sort
        state.only_first_sla = only_first_sla
        state.columns = build_columns(self.settings.column_spec, self.metadata_lookup, sort.field)
        self.state = state
        if self._escape is None:
            self._escape = self.listeners.attach("keydown", self._on_key)
        await self._reload()
        return self.view_model

    def close(self) -> None:
        if self._escape is not None:
            self._escape.release()
            self._escape = None
        for seq in self._sequencers.values():
            seq.invalidate()
        self.state = DrilldownState.closed(self.settings.page_size)

    def _on_key(self, key) -> None:
        if key == ESCAPE_KEY and self.is_open:
            self.close()

    # ------------------ Fetching ------------------
    def _settle(self) -> None:
        if self.state.phase in (DrilldownPhase.OPENING, DrilldownPhase.LOADING_MORE):
            if not (self.state.primary.loading or self.state.stopped.loading):
                self.state.phase = DrilldownPhase.OPEN

    async def _fetch(self, stopped: bool, offset: int) -> bool:
        state = self.state
        part = state.partition(stopped)
        token = self._sequencers[stopped].issue()
        columns = list(state.columns)
        request = state.filters().page_request(
            query_fields(columns),
            offset=offset,
            limit=part.cursor.page_size,
            is_stopped=stopped,
        )
        part.loading = True
        part.loading_offset = offset
        try:
            raw = await self.source.fetch_case_page(request)
        except Exception as exc:
            if token.is_stale:
                return False
            part.loading = False
            part.loading_offset = None
            self._settle()
            self.notify("Error", str(exc))
            return False
        if token.is_stale:
            logger.debug("Discarding stale page (stopped=%s, offset=%s)", stopped, offset)
            return False
        part.loading = False
        part.loading_offset = None
        rows = self.normalizer.normalize(raw, columns)
        part.cursor.record_page(offset, len(raw))
        base = part.rows if offset > 0 else []
        part.rows = sort_rows(base + rows, state.sort.field, state.sort.direction)
        self._settle()
        return True

    async def _reload(self) -> None:
        await asyncio.gather(self._fetch(False, 0), self._fetch(True, 0))

    async def load_more(self, *, stopped: bool = False) -> bool:
        part = self.state.partition(stopped)
        if self.state.phase is not DrilldownPhase.OPEN or part.loading or not part.cursor.has_more:
            return False
        self.state.phase = DrilldownPhase.LOADING_MORE
        return await self._fetch(stopped, part.cursor.next_offset)

    async def on_scroll(self, scroll_height: float, scroll_top: float, client_height: float) -> bool:
        """Infinite scroll: load the next page when close to the bottom."""
        remaining = scroll_height - scroll_top - client_height
        if remaining >= SCROLL_LOAD_THRESHOLD_PX:
            return False
        return await self.load_more()

    # ------------------ Filters & Sorting ------------------
    async def set_search(self, term: str) -> None:
        self.state.search_term = term or ""
        await self._reload()

    async def toggle_priority(self, priority: str) -> None:
        current = self.state.priority_filter
        if priority in current:
            self.state.priority_filter = tuple(p for p in current if p != priority)
        else:
            self.state.priority_filter = (*current, priority)
        await self._reload()

    async def toggle_has_jira(self) -> None:
        self.state.has_jira = not self.state.has_jira
        await self._reload()

    async def set_only_first_sla(self, enabled: bool) -> None:
        self.state.only_first_sla = bool(enabled)
        await self._reload()

    async def sort_by(self, field: str) -> None:
        column = next((c for c in self.state.columns if c.field_name == field), None)
        if column is None or not column.is_sortable:
            return
        sort = self.state.sort.toggle(field)
        self.state.sort = sort
        for part in (self.state.primary, self.state.stopped):
            part.rows = sort_rows(part.rows, sort.field, sort.direction)
        await self._reload()

    async def set_column_spec(self, spec: str) -> None:
        columns = build_columns(spec, self.metadata_lookup, self.state.sort.field)
        self.state.columns = columns
        for part in (self.state.primary, self.state.stopped):
            part.rows = self.normalizer.rebuild_cells(part.rows, columns)
        await self._reload()

    def resize_column(self, field: str, start_x: float) -> ColumnResizeGesture | None:
        column = next((c for c in self.state.columns if c.field_name == field), None)
        if column is None:
            return None
        return ColumnResizeGesture(self.listeners, column, start_x)

    # ------------------ Export ------------------
    def open_export_config(self) -> None:
        self.state.export_fields = selectable_fields(self.state.columns)
        self.state.is_export_open = True

    def close_export_config(self) -> None:
        self.state.is_export_open = False

    def toggle_export_field(self, api_name: str, selected: bool) -> None:
        self.state.export_fields = toggle_field(self.state.export_fields, api_name, selected)

    async def export_csv(self, selected_fields: Sequence[str] | None = None) -> str | None:
        if selected_fields is None:
            selected_fields = [f.api_name for f in self.state.export_fields if f.selected]
        self.close_export_config()
        try:
            return await self.exporter.export(self.state.filters(), selected_fields)
        except Exception as exc:
            self.notify("Export Failed", str(exc))
            return None
