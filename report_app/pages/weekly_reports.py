"""Weekly reports page.

Loads project items (from GitHub or a cache file), builds the weekly windows
and shows each report's sections, labels, and rendered markdown. Nothing is
archived from here.
"""

from __future__ import annotations

from datetime import datetime

import pytz
import streamlit as st

from report_app.app import register_page
from report_app.core.service import ReportService
from report_app.visual.charts import label_chart, weekly_totals_chart
from report_app.visual.progress import ProgressReporter
from report_app.visual.tables import render_item_table


@register_page("Weekly Reports")
def weekly_reports_page():
    st.title("Weekly Reports")
    service: ReportService | None = st.session_state.get("report_service")
    if service is None:
        st.warning("Initialize the configuration on the Setup page first.")
        return

    cache_file = st.text_input("Cache file (optional)", value=st.session_state.get("cache_file", ""))
    refresh = st.button("Load Items", type="primary")
    if refresh:
        reporter = ProgressReporter("Loading project items")
        try:
            if not cache_file:
                service.api.clear_cache()
            items = service.load_items(cache_file or None, progress=reporter.callback)
        except (OSError, RuntimeError, ValueError) as exc:
            reporter.error(f"Failed to load items: {exc}")
            return
        st.session_state["cache_file"] = cache_file
        st.session_state["report_items"] = items
        reporter.complete(f"Loaded {len(items)} item(s).")

    items = st.session_state.get("report_items")
    if not items:
        st.info("No items loaded yet.")
        return

    reports = service.build_reports(items, datetime.now(tz=pytz.UTC))
    if not reports:
        st.info("No completed items in any closed week.")
        return

    totals = weekly_totals_chart(reports)
    if totals is not None:
        st.altair_chart(totals, use_container_width=True)

    labels = [f"{r.window.start:%Y-%m-%d} .. {r.window.last_day:%Y-%m-%d} ({len(r.window.items)})" for r in reports]
    choice = st.selectbox("Week", range(len(reports)), format_func=lambda i: labels[i])
    report = reports[choice]

    st.markdown("---")
    for bucket in report.classification.buckets():
        if bucket.hidden:
            continue
        st.subheader(f"{bucket.name} ({len(bucket.items)})")
        render_item_table(bucket.items)

    chart = label_chart(report.window.items)
    if chart is not None:
        st.subheader("By Label")
        st.altair_chart(chart, use_container_width=True)

    markdown = service.render(report)
    with st.expander("Rendered markdown"):
        st.code(markdown, language="markdown")
    st.download_button(
        "Download Report",
        data=markdown.encode("utf-8"),
        file_name=report.filename,
        mime="text/markdown",
    )
