"""Streamlit entry point: page registry and sidebar navigation."""

from __future__ import annotations

from collections.abc import Iterable

import streamlit as st

DASHBOARD_PAGE = "SLA Milestones"
SETUP_PAGE = "Setup / Connection"
SOURCE_KEY = "sla_source"

PAGES = {}


def register_page(label):
    def decorator(func):
        PAGES[label] = func
        return func

    return decorator


def ordered_pages(labels: Iterable[str], has_source: bool) -> tuple[list[str], int]:
    """Dashboard first, setup second, the rest alphabetically.

    Until a data source is connected the setup page is preselected.
    """
    labels = list(labels)
    leading = [name for name in (DASHBOARD_PAGE, SETUP_PAGE) if name in labels]
    pages = leading + sorted(name for name in labels if name not in leading)
    index = pages.index(SETUP_PAGE) if SETUP_PAGE in pages and not has_source else 0
    return pages, index


def main():
    st.sidebar.title("SLA Milestone Dashboard")
    if not PAGES:
        st.write("No pages registered yet.")
        return
    pages, index = ordered_pages(PAGES, SOURCE_KEY in st.session_state)
    page = st.sidebar.selectbox("Page", pages, index=index)
    PAGES[page]()


if __name__ == "__main__":
    main()
