"""Reusable table helpers for Streamlit rendering."""

from __future__ import annotations

import pandas as pd
import streamlit as st

from report_app.core.config import ITEM_TABLE_COLUMNS, SETTINGS
from report_app.core.mappers import items_to_dataframe


def add_item_link(df: pd.DataFrame, url_col: str = "url", label: str = "Item"):
    if df.empty or url_col not in df.columns:
        return df, {}
    out = df.copy()
    out[label] = out[url_col].fillna("").astype(str)
    cfg = {
        label: st.column_config.LinkColumn(
            label,
            display_text=r"/(\d+)$",
            help="Open on GitHub",
            width="small",
        )
    }
    return out, cfg


def prepare_item_table(items) -> tuple[pd.DataFrame, list[str], dict[str, object]]:
    df = items_to_dataframe(items)
    if df.empty:
        return df, [], {}
    table, cfg = add_item_link(df)
    display_cols = [col for col in ITEM_TABLE_COLUMNS if col in table.columns]
    return table, display_cols, cfg


def render_item_table(items, limit: int | None = None):
    table, cols, cfg = prepare_item_table(items)
    if table.empty:
        st.caption("No items.")
        return
    st.dataframe(table[cols].head(limit or SETTINGS.max_table_rows), hide_index=True, column_config=cfg)
