"""Connection setup page: collect data service settings and initialize the client."""

from __future__ import annotations

import streamlit as st

from sla_app.app import register_page
from sla_app.core.client import SlaServiceClient


@register_page("Setup / Connection")
def setup_page():
    st.title("SLA Service Connection Setup")
    st.caption("Enter the SLA data service endpoint (use secrets manager in production).")

    sla_secrets = st.secrets.get("sla", {})
    secret_url = sla_secrets.get("SLA_SERVICE_URL") or st.secrets.get("SLA_SERVICE_URL")
    secret_token = sla_secrets.get("SLA_API_TOKEN") or st.secrets.get("SLA_API_TOKEN")

    base_url = st.text_input(
        "Service URL",
        value=st.session_state.get("sla_service_url") or secret_url or "",
    )
    token = st.text_input("API Token", type="password", value=secret_token or "")
    account_id = st.text_input(
        "Account Id (optional)",
        value=st.session_state.get("sla_account_id") or "",
    )
    timeout = st.number_input("Request timeout (seconds)", min_value=5, max_value=300, value=30)
    init_btn = st.button("Initialize Connection", type="primary")

    if init_btn:
        if not base_url:
            st.error("Service URL is required.")
            return
        try:
            st.session_state["sla_source"] = SlaServiceClient(base_url, token or None, timeout=float(timeout))
            st.session_state["sla_service_url"] = base_url
            st.session_state["sla_account_id"] = account_id or None
            st.session_state.pop("sla_dashboard", None)
            st.session_state.pop("sla_drilldown", None)
            st.success("Connection initialized.")
        except Exception as e:  # pragma: no cover
            st.error(f"Failed to initialize SLA client: {e}")

    if "sla_source" in st.session_state:
        st.info(f"Connected to {st.session_state.get('sla_service_url')}")
