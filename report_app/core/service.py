"""ReportService: orchestrates item loading, windowing, classification, and output."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from report_app.analytics.classify import Classification, classify
from report_app.analytics.labels import count_labels
from report_app.analytics.windows import split_by_weeks, window_item_ids
from report_app.reports.markdown import render_report, report_filename

from .config import SETTINGS
from .github_client import GitHubAPI
from .mappers import item_from_dict, item_to_dict, map_item
from .models import Item, WeeklyWindow
from .settings import ReportConfig, require_remote

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int | None, int | None], None]


@dataclass(slots=True)
class WeeklyReport:
    window: WeeklyWindow
    classification: Classification
    labels: dict[str, int]

    @property
    def filename(self) -> str:
        return report_filename(self.window)


class ReportService:
    def __init__(self, config: ReportConfig, api: GitHubAPI | None = None):
        self.config = config
        self._api = api
        self._project_id: str | None = None

    # ------------------ GitHub access ------------------
    @property
    def api(self) -> GitHubAPI:
        if self._api is None:
            require_remote(self.config)
            self._api = GitHubAPI(self.config.token, self.config.url)
        return self._api

    def project_id(self) -> str:
        if self._project_id is None:
            require_remote(self.config)
            self._project_id = self.api.fetch_project_id(self.config.owner, self.config.project_number)
        return self._project_id

    def fetch_items(self, *, progress: ProgressCallback | None = None) -> list[Item]:
        if progress:
            progress(f"Querying project {self.config.owner}#{self.config.project_number}", None, None)
        tuning = self.config.tuning
        raw = self.api.fetch_items(
            self.project_id(),
            issue_count=tuning.issue_count,
            label_count=tuning.label_count,
            field_value_count=tuning.field_value_count,
        )
        return [map_item(r) for r in raw]

    # ------------------ Cache file ------------------
    @staticmethod
    def read_cache(path: str | Path) -> list[Item]:
        data = json.loads(Path(path).read_text(encoding=SETTINGS.cache_encoding))
        return [item_from_dict(entry) for entry in data]

    @staticmethod
    def write_cache(path: str | Path, items: Iterable[Item]) -> None:
        payload = [item_to_dict(it) for it in items]
        Path(path).write_text(json.dumps(payload, indent=4), encoding=SETTINGS.cache_encoding)

    def load_items(
        self,
        cache_file: str | Path | None = None,
        *,
        progress: ProgressCallback | None = None,
    ) -> list[Item]:
        """Read items from ``cache_file`` when it exists, otherwise fetch them.

        Freshly fetched items are written to ``cache_file`` when one is given.
        """
        if cache_file and Path(cache_file).is_file():
            items = self.read_cache(cache_file)
            logger.info("Read %d item(s) from %s", len(items), cache_file)
            return items
        logger.info("Fetching items from GitHub")
        items = self.fetch_items(progress=progress)
        if cache_file:
            self.write_cache(cache_file, items)
            logger.info("Cached %d item(s) to %s", len(items), cache_file)
        return items

    # ------------------ Report pipeline ------------------
    def build_reports(self, items: Sequence[Item], now: datetime) -> list[WeeklyReport]:
        done = [it for it in items if it.is_done]
        windows = split_by_weeks(
            done,
            now,
            anchor_weekday=self.config.report_window.anchor,
            skip_empty=self.config.report_window.skip_empty_weeks,
        )
        logger.info("Built %d weekly window(s) from %d done item(s)", len(windows), len(done))
        return [
            WeeklyReport(
                window=window,
                classification=classify(window.items, self.config.sections, self.config.unclassified),
                labels=count_labels(window.items),
            )
            for window in windows
        ]

    def render(self, report: WeeklyReport) -> str:
        return render_report(self.config, report)

    def write_reports(self, reports: Iterable[WeeklyReport], output_dir: str | Path | None = None) -> list[Path]:
        out_dir = Path(output_dir or self.config.output_directory)
        out_dir.mkdir(parents=True, exist_ok=True)
        written: list[Path] = []
        for report in reports:
            path = out_dir / report.filename
            path.write_text(self.render(report), encoding=SETTINGS.report_encoding)
            logger.debug("Wrote %s (%d item(s))", path, len(report.window.items))
            written.append(path)
        return written

    # ------------------ Archiving ------------------
    @staticmethod
    def archive_ids(reports: Iterable[WeeklyReport]) -> list[str]:
        return window_item_ids(r.window for r in reports)

    def archive(self, reports: Iterable[WeeklyReport]) -> int:
        """Archive every item contained in ``reports``; returns the count."""
        ids = self.archive_ids(reports)
        if not ids:
            return 0
        project_id = self.project_id()
        for item_id in ids:
            self.api.archive_item(project_id, item_id)
            logger.debug("Archived %s", item_id)
        logger.info("Archived %d item(s)", len(ids))
        return len(ids)
