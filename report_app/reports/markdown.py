"""Markdown rendering of a weekly report."""

from __future__ import annotations

from report_app.analytics.classify import SectionBucket
from report_app.core.config import LABEL_SECTION_TITLE, REPORT_FILENAME_DATE_FORMAT, REPORT_HEADER_DATE_FORMAT
from report_app.core.models import Item, WeeklyWindow
from report_app.core.settings import ReportConfig


def _header_date(value) -> str:
    # %-d is not portable; build the day number by hand.
    return value.strftime(REPORT_HEADER_DATE_FORMAT.replace("%-d", str(value.day)))


def report_filename(window: WeeklyWindow) -> str:
    return (
        f"{window.start.strftime(REPORT_FILENAME_DATE_FORMAT)}-"
        f"{window.last_day.strftime(REPORT_FILENAME_DATE_FORMAT)}.md"
    )


def render_item(item: Item) -> str:
    return f"- {item.title} **[[#{item.number}]({item.url})]** ([{item.repo.slug}]({item.repo.url}))\n"


def render_section(bucket: SectionBucket) -> str:
    if bucket.hidden:
        return ""
    lines = [f"\n## {bucket.name} ({len(bucket.items)})\n\n"]
    lines.extend(render_item(item) for item in bucket.items)
    return "".join(lines)


def render_labels(counts: dict[str, int]) -> str:
    lines = [f"\n## {LABEL_SECTION_TITLE}\n\n"]
    lines.extend(f"- {label} ({counts[label]})\n" for label in sorted(counts))
    return "".join(lines)


def render_report(cfg: ReportConfig, report) -> str:
    """Render a :class:`~report_app.core.service.WeeklyReport` to markdown."""
    blocks: dict[int, str] = {}
    for bucket in report.classification.buckets():
        blocks[bucket.render_order] = render_section(bucket)
    if cfg.label_section.enabled:
        blocks[cfg.label_section.render_order] = render_labels(report.labels)
    if cfg.summary.enabled:
        blocks[cfg.summary.render_order] = f"\n## {cfg.summary.name}\n\n{cfg.summary.body}\n\n"

    window = report.window
    header = (
        f"# Status Report: {_header_date(window.start)} ... {_header_date(window.last_day)}\n\n"
        f"## {cfg.team}\n\n"
    )
    return header + "".join(blocks[key] for key in sorted(blocks))
