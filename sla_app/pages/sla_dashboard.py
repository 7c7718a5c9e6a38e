"""SLA milestone counters page with drill-down case table and CSV export."""

from __future__ import annotations

import asyncio
import logging

import streamlit as st

from sla_app.app import register_page
from sla_app.core.config import EXPORT_FILENAME, PRIORITY_ORDER, configure_logging, load_settings
from sla_app.core.dashboard import DashboardController
from sla_app.features.drilldown import DrilldownSession
from sla_app.visual.gauges import gauge_chart
from sla_app.visual.tables import render_case_table, ticket_frame

logger = logging.getLogger(__name__)


def _toast(title: str, message: str) -> None:
    logger.warning("%s: %s", title, message)
    st.toast(f"{title}: {message}")


def _controller(source, settings) -> DashboardController:
    controller = st.session_state.get("sla_dashboard")
    if controller is None:
        controller = DashboardController(
            source,
            settings,
            scope_id=st.session_state.get("sla_account_id"),
            notify=_toast,
        )
        st.session_state["sla_dashboard"] = controller
    return controller


def _session(source, settings) -> DrilldownSession:
    session = st.session_state.get("sla_drilldown")
    if session is None:
        session = DrilldownSession(
            source,
            settings,
            scope_id=st.session_state.get("sla_account_id"),
            notify=_toast,
        )
        st.session_state["sla_drilldown"] = session
    return session


def _render_drilldown(session: DrilldownSession) -> None:
    vm = session.view_model
    if not vm.is_open:
        return
    st.markdown("---")
    head_left, head_right = st.columns([4, 1])
    head_left.subheader(vm.title)
    if head_right.button("Close", key="drilldown-close"):
        session.close()
        st.rerun()

    search = st.text_input("Search", value=session.state.search_term, placeholder=vm.search_placeholder)
    if search != session.state.search_term:
        asyncio.run(session.set_search(search))
        st.rerun()

    filter_cols = st.columns(len(PRIORITY_ORDER) + 1)
    for col, priority in zip(filter_cols, PRIORITY_ORDER):
        variant = "primary" if vm.priority_variants[priority] == "brand" else "secondary"
        if col.button(priority, key=f"prio-{priority}", type=variant):
            asyncio.run(session.toggle_priority(priority))
            st.rerun()
    jira_variant = "primary" if vm.has_jira_variant == "brand" else "secondary"
    if filter_cols[-1].button("Has Jira", key="has-jira", type=jira_variant):
        asyncio.run(session.toggle_has_jira())
        st.rerun()

    sortable = [h for h in vm.headers if h.is_sortable]
    labels = {h.field_name: h.label for h in sortable}
    current = session.state.sort.field
    sort_left, sort_right = st.columns([3, 1])
    choice = sort_left.selectbox(
        "Sort by",
        list(labels),
        index=list(labels).index(current) if current in labels else 0,
        format_func=lambda f: labels[f],
    )
    if choice != current:
        asyncio.run(session.sort_by(choice))
        st.rerun()
    direction = "Ascending" if session.state.sort.direction == "asc" else "Descending"
    if sort_right.button(direction, key="sort-direction"):
        asyncio.run(session.sort_by(current))
        st.rerun()

    if vm.is_loading:
        st.info("Loading cases...")
    render_case_table(vm.rows, vm.headers)
    if vm.has_more and st.button("Load more", key="load-more"):
        asyncio.run(session.load_more())
        st.rerun()

    with_tickets = [row for row in vm.rows if row.has_tickets]
    if with_tickets:
        with st.expander(f"Jira tickets ({len(with_tickets)} case(s))"):
            for row in with_tickets:
                st.caption(str(row.record.get("CaseNumber", row.key)))
                st.dataframe(
                    ticket_frame(row),
                    hide_index=True,
                    column_config={"Ticket": st.column_config.LinkColumn("Ticket", display_text=r"browse/(.*)$")},
                )

    if vm.stopped_rows:
        with st.expander(f"Waiting on customer ({len(vm.stopped_rows)})"):
            render_case_table(vm.stopped_rows, vm.headers)

    if not vm.is_export_open:
        session.open_export_config()
        vm = session.view_model
    options = [f.api_name for f in vm.export_fields]
    labels_by_name = {f.api_name: f.label for f in vm.export_fields}
    chosen = st.multiselect(
        "Export fields",
        options,
        default=[f.api_name for f in vm.export_fields if f.selected],
        format_func=lambda n: labels_by_name.get(n, n),
    )
    if st.button("Prepare CSV export", key="prepare-export"):
        st.session_state["sla_export_csv"] = asyncio.run(session.export_csv(chosen))
    csv_text = st.session_state.get("sla_export_csv")
    if csv_text:
        st.download_button(
            "Download CSV",
            data=csv_text.encode("utf-8"),
            file_name=EXPORT_FILENAME,
            mime="text/csv",
        )


@register_page("SLA Milestones")
def sla_dashboard_page():
    st.title("SLA Milestones")
    st.caption("Open support case milestones by type and remaining time.")
    source = st.session_state.get("sla_source")
    if source is None:
        st.warning("Initialize connection on Setup page first.")
        return
    settings = load_settings()
    configure_logging(settings.verbose_logging)
    controller = _controller(source, settings)
    session = _session(source, settings)

    priority_mode = st.sidebar.toggle("Count first SLA per case only", value=controller.priority_mode)
    if priority_mode != controller.priority_mode:
        controller.set_priority_mode(priority_mode)

    @st.fragment(run_every=settings.polling_interval)
    def counters():
        asyncio.run(controller.refresh())
        items = controller.counter_items()
        cols = st.columns(len(items))
        for col, item in zip(cols, items):
            with col:
                st.altair_chart(gauge_chart(item), use_container_width=False)
                st.caption(item.tooltip)
                if item.is_alerting:
                    st.error(f"{item.short_label}: red-zone milestones")
                if item.stopped_count:
                    st.caption(f"Waiting: {item.stopped_count}")
                if st.button(f"Open {item.short_label}", key=f"open-{item.id}"):
                    asyncio.run(session.open(item.id, only_first_sla=controller.priority_mode))
                    st.rerun()

    counters()
    _render_drilldown(session)
