"""Convenience launcher for the Streamlit app.

Usage:
  streamlit run run_dashboard.py

Automatically imports every module in ``sla_app/pages`` so each page
decorated with ``@register_page`` registers itself without manual edits here.
"""

import logging
from importlib import import_module
from pathlib import Path

import streamlit as st

from sla_app.app import main

st.set_page_config(layout="wide")
logger = logging.getLogger("sla_app.launcher")


def _auto_init_source():
    """Initialize the SLA data service client from Streamlit secrets if available."""
    if "sla_source" in st.session_state:
        return

    sla_secrets = st.secrets.get("sla", {})
    base_url = sla_secrets.get("SLA_SERVICE_URL") or st.secrets.get("SLA_SERVICE_URL")
    token = sla_secrets.get("SLA_API_TOKEN") or st.secrets.get("SLA_API_TOKEN")
    account_id = sla_secrets.get("SLA_ACCOUNT_ID") or st.secrets.get("SLA_ACCOUNT_ID")

    if base_url:
        try:
            from sla_app.core.client import SlaServiceClient

            st.session_state["sla_source"] = SlaServiceClient(base_url, token)
            st.session_state["sla_service_url"] = base_url
            st.session_state["sla_account_id"] = account_id
        except Exception as e:
            st.sidebar.error(f"SLA service initialization failed: {e}")
            st.session_state.pop("sla_source", None)
    else:
        st.sidebar.warning("SLA service secrets not found. Please use the Setup page.")


_auto_init_source()

PAGES_DIR = Path(__file__).parent / "sla_app" / "pages"
for py in sorted(PAGES_DIR.glob("[!_]*.py")):
    mod_name = f"sla_app.pages.{py.stem}"
    try:
        import_module(mod_name)
    except Exception as e:
        logger.error("Failed importing page %s: %s", mod_name, e)

if __name__ == "__main__":
    main()
