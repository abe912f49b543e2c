"""Domain data models for project items, their field values, and weekly windows."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from types import MappingProxyType

from .config import DONE_STATUS, STATUS_FIELD, TITLE_FIELD


class ItemKind(str, Enum):
    ISSUE = "ISSUE"
    PULL_REQUEST = "PR"
    DRAFT_ISSUE = "DRAFT_ISSUE"


# ----------------------------------------------------------------------------
# Field values: one dataclass per variant, joined in the ``Field`` alias.
# ----------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class EmptyField:
    name: str = ""
    updated_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class TextField:
    name: str
    text: str
    updated_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class DateField:
    name: str
    date: date
    updated_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class NumberField:
    name: str
    number: float
    updated_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class IterationField:
    name: str
    iteration_id: str
    title: str
    start_date: date
    duration: timedelta
    updated_at: datetime | None = None


Field = EmptyField | TextField | DateField | NumberField | IterationField


@dataclass(frozen=True, slots=True)
class RepoRef:
    name: str = ""
    slug: str = ""  # "org/name"
    url: str = ""
    branch: str = ""  # base branch, pull requests only


def _freeze_fields(fields: Mapping[str, Field] | None) -> Mapping[str, Field]:
    return MappingProxyType(dict(fields or {}))


@dataclass(frozen=True, slots=True)
class Item:
    """A normalized project item (issue, pull request, or draft issue).

    ``updated_at`` is the closing (or last update) instant reported upstream.
    It only counts as a completion time when the item is done; see
    :attr:`done_at`.
    """

    id: str
    kind: ItemKind = ItemKind.DRAFT_ISSUE
    number: int = 0
    url: str = ""
    repo: RepoRef = field(default_factory=RepoRef)
    labels: tuple[str, ...] = ()
    fields: Mapping[str, Field] = field(default_factory=dict, hash=False)
    updated_at: datetime | None = None
    archived: bool = False

    def __post_init__(self):
        object.__setattr__(self, "labels", tuple(self.labels))
        object.__setattr__(self, "fields", _freeze_fields(self.fields))

    @property
    def title(self) -> str:
        value = self.fields.get(TITLE_FIELD)
        if isinstance(value, TextField):
            return value.text
        return ""

    @property
    def is_done(self) -> bool:
        status = self.fields.get(STATUS_FIELD)
        return isinstance(status, TextField) and status.text.lower() == DONE_STATUS

    @property
    def done_at(self) -> datetime | None:
        """Completion instant, or None when the item is not done."""
        if not self.is_done:
            return None
        return self.updated_at


@dataclass(frozen=True, slots=True)
class WeeklyWindow:
    start: datetime  # inclusive
    end: datetime  # exclusive
    items: tuple[Item, ...] = ()

    @property
    def last_day(self) -> date:
        return (self.end - timedelta(days=1)).date()
