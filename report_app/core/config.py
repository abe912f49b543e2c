"""Central constants and defaults shared by the report pipeline."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

# =============================================================================
# GitHub Connection Settings
# =============================================================================
GITHUB_GRAPHQL_URL = "https://api.github.com/graphql"
GITHUB_TOKEN_ENV = "GH_TOKEN"
REQUEST_TIMEOUT_SECONDS: float = 30.0
CLIENT_CACHE_TTL_SECONDS: float = 300.0

# =============================================================================
# Project Item Fields
# These are the project field names the report logic reads.
# =============================================================================
STATUS_FIELD = "Status"
TITLE_FIELD = "Title"
DONE_STATUS = "done"

# =============================================================================
# Report Window Configuration
# =============================================================================
WEEK_DAYS: int = 7
DEFAULT_ANCHOR_WEEKDAY = "sunday"

# Python's datetime.weekday() numbering (Monday == 0)
WEEKDAYS: dict[str, int] = {
    "monday": 0,
    "tuesday": 1,
    "wednesday": 2,
    "thursday": 3,
    "friday": 4,
    "saturday": 5,
    "sunday": 6,
}
# Short aliases accepted in configuration (lowercase keys)
WEEKDAY_ALIASES: dict[str, str] = {
    "mon": "monday",
    "tue": "tuesday",
    "tues": "tuesday",
    "wed": "wednesday",
    "thu": "thursday",
    "thur": "thursday",
    "thurs": "thursday",
    "fri": "friday",
    "sat": "saturday",
    "sun": "sunday",
}

# =============================================================================
# Rendering
# =============================================================================
LABEL_SECTION_TITLE = "By Label"
REPORT_HEADER_DATE_FORMAT = "%b %-d, %Y"
REPORT_FILENAME_DATE_FORMAT = "%Y.%m.%d"

# Columns shown in item tables (dashboard and DataFrame exports)
ITEM_TABLE_COLUMNS: Sequence[str] = (
    "Item",
    "title",
    "kind",
    "repo",
    "branch",
    "labels",
    "done_at",
)


@dataclass(slots=True)
class AppSettings:
    max_table_rows: int = 1000
    cache_encoding: str = "utf-8"
    report_encoding: str = "utf-8"


SETTINGS = AppSettings()
