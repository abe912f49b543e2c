"""Convenience launcher for the Streamlit report browser.

Usage:
  streamlit run run_dashboard.py

Automatically imports every module in ``report_app/pages`` so each page
decorated with ``@register_page`` registers itself without manual edits here.
"""

from importlib import import_module
from pathlib import Path

import streamlit as st

from report_app.app import main

st.set_page_config(layout="wide")


def _auto_init_report_service():
    """Initialize the report service from Streamlit secrets if available."""
    if "report_service" in st.session_state:
        return

    gh_secrets = st.secrets.get("github", {})
    config_path = gh_secrets.get("CONFIG_PATH") or st.secrets.get("CONFIG_PATH")
    if not config_path:
        st.sidebar.warning("No configuration in secrets. Please use the Setup page.")
        return

    from report_app.core.settings import ConfigError
    from report_app.pages.setup import init_service

    overrides = {
        "owner": str(gh_secrets.get("OWNER") or ""),
        "project_number": str(gh_secrets.get("PROJECT_NUMBER") or ""),
        "token": str(gh_secrets.get("GH_TOKEN") or st.secrets.get("GH_TOKEN") or ""),
    }
    try:
        st.session_state["report_service"] = init_service([config_path], overrides)
        st.session_state["config_path"] = config_path
        st.sidebar.success("Configuration loaded from secrets.")
    except (ConfigError, ValueError) as e:
        st.sidebar.error(f"Configuration from secrets is invalid: {e}")


_auto_init_report_service()

PAGES_DIR = Path(__file__).parent / "report_app" / "pages"
for py in sorted(PAGES_DIR.glob("[!_]*.py")):
    mod_name = f"report_app.pages.{py.stem}"
    try:
        import_module(mod_name)
    except ImportError as e:  # pragma: no cover
        print(f"Failed importing page {mod_name}: {e}")

if __name__ == "__main__":
    main()
