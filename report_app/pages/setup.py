"""Connection setup page: load configuration and initialize the ReportService."""

from __future__ import annotations

from pathlib import Path

import streamlit as st

from report_app.app import register_page
from report_app.core.service import ReportService
from report_app.core.settings import ConfigError, dump_config, load_config


def init_service(files: list[str], overrides: dict[str, str]) -> ReportService:
    """Build a service from config ``files`` with non-empty ``overrides`` applied."""
    cfg = load_config(files)
    for key, value in overrides.items():
        if value:
            setattr(cfg, key, int(value) if key == "project_number" else value)
    return ReportService(cfg)


@register_page("Setup / Connection")
def setup_page():
    st.title("GitHub Project Setup")
    st.caption("Point at your report configuration; secrets override its GitHub values.")

    gh_secrets = st.secrets.get("github", {})
    config_path = st.text_input(
        "Configuration file or directory",
        value=st.session_state.get("config_path") or gh_secrets.get("CONFIG_PATH", ""),
    )
    owner = st.text_input("Organization", value=gh_secrets.get("OWNER", ""))
    project_number = st.text_input("Project number", value=str(gh_secrets.get("PROJECT_NUMBER", "")))
    token = st.text_input("Token", type="password", value=gh_secrets.get("GH_TOKEN", ""))
    init_btn = st.button("Initialize", type="primary")

    if init_btn:
        files = [config_path] if config_path.strip() else []
        if files and not Path(config_path).exists():
            st.error(f"Configuration not found: {config_path}")
            return
        try:
            service = init_service(
                files,
                {"owner": owner.strip(), "project_number": project_number.strip(), "token": token.strip()},
            )
        except (ConfigError, ValueError) as exc:
            st.error(f"Invalid configuration: {exc}")
            return
        st.session_state["config_path"] = config_path
        st.session_state["report_service"] = service
        st.session_state.pop("report_items", None)
        st.success("Configuration loaded.")

    service: ReportService | None = st.session_state.get("report_service")
    if service is not None:
        st.info("ReportService ready.")
        with st.expander("Effective configuration"):
            st.code(dump_config(service.config), language="yaml")
