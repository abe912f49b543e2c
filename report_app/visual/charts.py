"""Chart builders (Altair) for weekly reports."""

from __future__ import annotations

import altair as alt
import pandas as pd

from report_app.analytics.labels import label_frame


def label_chart(items, *, top_n: int | None = None) -> alt.Chart | None:
    """Horizontal bar chart of label counts, most frequent first."""
    df = label_frame(items)
    if df.empty:
        return None
    df = df.sort_values(["count", "label"], ascending=[False, True])
    if top_n:
        df = df.head(top_n)
    return (
        alt.Chart(df)
        .mark_bar(color="#1f77b4")
        .encode(
            x=alt.X("count:Q", title="Items"),
            y=alt.Y("label:N", sort="-x", title="Label"),
            tooltip=[
                alt.Tooltip("label:N", title="Label"),
                alt.Tooltip("count:Q", title="Items"),
            ],
        )
        .properties(height=max(120, 24 * len(df)))
    )


def weekly_totals_chart(reports) -> alt.Chart | None:
    """Bar chart of completed items per weekly window."""
    rows = [
        {"week_start": pd.Timestamp(r.window.start), "items": len(r.window.items)}
        for r in reports
    ]
    if not rows:
        return None
    df = pd.DataFrame(rows)
    return (
        alt.Chart(df)
        .mark_bar(color="#2ca02c")
        .encode(
            x=alt.X("week_start:T", title="Week starting"),
            y=alt.Y("items:Q", title="Completed items"),
            tooltip=[
                alt.Tooltip("week_start:T", title="Week starting"),
                alt.Tooltip("items:Q", title="Items"),
            ],
        )
        .properties(height=220)
    )
