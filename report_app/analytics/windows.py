"""Split completed items into contiguous weekly windows.

Windows are 7 days long and end at 00:00 UTC on the anchor weekday. They are
built backward from ``now``: the first window is the most recent completed
week, and windows keep going back until every candidate item is placed.
An item completed exactly at a window's ``start`` belongs to that (older)
window; ``end`` is exclusive.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime, timedelta

import pytz

from report_app.core.config import WEEK_DAYS, WEEKDAYS
from report_app.core.models import Item, WeeklyWindow

logger = logging.getLogger(__name__)

SUNDAY = WEEKDAYS["sunday"]
WEEK = timedelta(days=WEEK_DAYS)


def as_utc(value: datetime) -> datetime:
    """Return ``value`` in UTC; naive datetimes are taken to be UTC already."""
    if value.tzinfo is None:
        return pytz.UTC.localize(value)
    return value.astimezone(pytz.UTC)


def closest_anchor(now: datetime, anchor_weekday: int = SUNDAY) -> datetime:
    """Most recent ``anchor_weekday`` at or before ``now``, at 00:00 UTC."""
    now = as_utc(now)
    back = (now.weekday() - anchor_weekday) % 7
    day = now.date() - timedelta(days=back)
    return pytz.UTC.localize(datetime(day.year, day.month, day.day))


def sort_by_done(items: Iterable[Item]) -> list[Item]:
    """Done items ordered by completion time; ties keep their input order."""
    done = [it for it in items if it.done_at is not None]
    return sorted(done, key=lambda it: as_utc(it.done_at))


def split_by_weeks(
    items: Iterable[Item],
    now: datetime,
    *,
    anchor_weekday: int = SUNDAY,
    skip_empty: bool = False,
) -> list[WeeklyWindow]:
    """Group done items into weekly windows, most recent window first.

    Items completed on or after the current anchor boundary belong to the
    week still in progress and are left out. Items that are not done have no
    completion time and never appear. Empty weeks between populated ones are
    kept (so consecutive windows share an edge) unless ``skip_empty`` is set.
    """
    end = closest_anchor(now, anchor_weekday)
    pool = [it for it in sort_by_done(items) if as_utc(it.done_at) < end]
    logger.debug("Windowing %d done item(s) before %s", len(pool), end.isoformat())

    windows: list[WeeklyWindow] = []
    idx = len(pool) - 1
    while idx >= 0:
        start = end - WEEK
        stop = idx
        while idx >= 0 and as_utc(pool[idx].done_at) >= start:
            idx -= 1
        members = tuple(pool[idx + 1 : stop + 1])
        if members or not skip_empty:
            windows.append(WeeklyWindow(start=start, end=end, items=members))
        end = start
    return windows


def window_item_ids(windows: Iterable[WeeklyWindow]) -> list[str]:
    """Identifiers of every item placed in ``windows``, in window order."""
    out: list[str] = []
    for window in windows:
        out.extend(it.id for it in window.items)
    return out
