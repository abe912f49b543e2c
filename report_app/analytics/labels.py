"""Label frequency aggregation."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable

import pandas as pd

from report_app.core.models import Item


def count_labels(items: Iterable[Item]) -> dict[str, int]:
    """Count raw label strings across ``items``.

    Labels are not normalized, so ``"Bug"`` and ``"bug"`` count separately.
    The mapping is unordered; sort the keys for stable output.
    """
    counts: Counter[str] = Counter()
    for item in items:
        counts.update(item.labels)
    return dict(counts)


def label_frame(items: Iterable[Item]) -> pd.DataFrame:
    counts = count_labels(items)
    if not counts:
        return pd.DataFrame(columns=["label", "count"])
    df = pd.DataFrame(sorted(counts.items()), columns=["label", "count"])
    df["count"] = df["count"].astype(int)
    return df
