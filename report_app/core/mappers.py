"""Mapping raw GitHub project item JSON into Item instances (and back for caching)."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime, timedelta
from typing import Any

import pandas as pd

from .config import STATUS_FIELD
from .models import (
    DateField,
    EmptyField,
    Field,
    Item,
    ItemKind,
    IterationField,
    NumberField,
    RepoRef,
    TextField,
)

CONTENT_KINDS: dict[str, ItemKind] = {
    "Issue": ItemKind.ISSUE,
    "PullRequest": ItemKind.PULL_REQUEST,
    "DraftIssue": ItemKind.DRAFT_ISSUE,
}


def parse_dt(val) -> datetime | None:
    if not val:
        return None
    ts = pd.to_datetime(val, utc=True, errors="coerce")
    if ts is None or pd.isna(ts):
        return None
    return ts.to_pydatetime()


def parse_date(val) -> date | None:
    ts = parse_dt(val)
    return ts.date() if ts is not None else None


def _field_name(node: dict[str, Any]) -> str | None:
    name = (node.get("field") or {}).get("name")
    if isinstance(name, str) and name.strip():
        return name
    return None


def map_field(node: dict[str, Any]) -> Field:
    """Convert one ``fieldValues`` node; anything unusable becomes EmptyField."""
    if not isinstance(node, dict):
        return EmptyField()
    name = _field_name(node)
    if name is None:
        return EmptyField()
    updated = parse_dt((node.get("field") or {}).get("updatedAt"))

    if "startDate" in node or "iterationId" in node:
        start = parse_date(node.get("startDate"))
        if start is None:
            return EmptyField(name=name, updated_at=updated)
        try:
            days = int(node.get("duration") or 0)
        except (TypeError, ValueError):
            days = 0
        return IterationField(
            name=name,
            iteration_id=str(node.get("iterationId") or ""),
            title=str(node.get("title") or ""),
            start_date=start,
            duration=timedelta(days=days),
            updated_at=updated,
        )
    if "date" in node:
        value = parse_date(node.get("date"))
        if value is None:
            return EmptyField(name=name, updated_at=updated)
        return DateField(name=name, date=value, updated_at=updated)
    if "number" in node:
        try:
            return NumberField(name=name, number=float(node["number"]), updated_at=updated)
        except (TypeError, ValueError):
            return EmptyField(name=name, updated_at=updated)
    # Text fields carry ``text``; single-select fields carry the option ``name``.
    for key in ("text", "name"):
        value = node.get(key)
        if isinstance(value, str):
            return TextField(name=name, text=value, updated_at=updated)
    return EmptyField(name=name, updated_at=updated)


def _extract_labels(nodes: list[Any]) -> list[str]:
    labels: list[str] = []
    for node in nodes:
        if not isinstance(node, dict):
            continue
        for lbl in (node.get("labels") or {}).get("nodes") or []:
            name = (lbl or {}).get("name")
            if isinstance(name, str) and name:
                labels.append(name)
    return labels


def map_item(raw: dict[str, Any]) -> Item:
    content = raw.get("content") or {}
    kind = CONTENT_KINDS.get(content.get("__typename") or "", ItemKind.DRAFT_ISSUE)
    nodes = (raw.get("fieldValues") or {}).get("nodes") or []

    fields: dict[str, Field] = {}
    for node in nodes:
        value = map_field(node)
        if not isinstance(value, EmptyField):
            fields[value.name] = value

    repo = RepoRef()
    if kind is not ItemKind.DRAFT_ISSUE:
        repository = content.get("repository") or {}
        repo = RepoRef(
            name=repository.get("name") or "",
            slug=repository.get("nameWithOwner") or "",
            url=repository.get("url") or "",
            branch=(content.get("baseRefName") or "") if kind is ItemKind.PULL_REQUEST else "",
        )

    updated = (
        parse_dt(content.get("closedAt"))
        or parse_dt(content.get("mergedAt"))
        or parse_dt(content.get("updatedAt"))
    )

    return Item(
        id=raw.get("id") or "",
        kind=kind,
        number=int(content.get("number") or 0),
        url=content.get("url") or "",
        repo=repo,
        labels=tuple(_extract_labels(nodes)),
        fields=fields,
        updated_at=updated,
        archived=bool(raw.get("isArchived")),
    )


# ------------------ Cache (de)serialization ------------------
def _field_to_dict(value: Field) -> dict[str, Any]:
    base = {
        "name": value.name,
        "updated_at": value.updated_at.isoformat() if value.updated_at else None,
    }
    if isinstance(value, TextField):
        return {**base, "type": "text", "text": value.text}
    if isinstance(value, DateField):
        return {**base, "type": "date", "date": value.date.isoformat()}
    if isinstance(value, NumberField):
        return {**base, "type": "number", "number": value.number}
    if isinstance(value, IterationField):
        return {
            **base,
            "type": "iteration",
            "iteration_id": value.iteration_id,
            "title": value.title,
            "start_date": value.start_date.isoformat(),
            "duration_days": value.duration.days,
        }
    return {**base, "type": "empty"}


def _field_from_dict(data: dict[str, Any]) -> Field:
    name = data.get("name") or ""
    updated = parse_dt(data.get("updated_at"))
    kind = data.get("type")
    if kind == "text":
        return TextField(name=name, text=str(data.get("text") or ""), updated_at=updated)
    if kind == "date":
        value = parse_date(data.get("date"))
        if value is not None:
            return DateField(name=name, date=value, updated_at=updated)
    if kind == "number":
        return NumberField(name=name, number=float(data.get("number") or 0.0), updated_at=updated)
    if kind == "iteration":
        start = parse_date(data.get("start_date"))
        if start is not None:
            return IterationField(
                name=name,
                iteration_id=str(data.get("iteration_id") or ""),
                title=str(data.get("title") or ""),
                start_date=start,
                duration=timedelta(days=int(data.get("duration_days") or 0)),
                updated_at=updated,
            )
    return EmptyField(name=name, updated_at=updated)


def item_to_dict(item: Item) -> dict[str, Any]:
    return {
        "id": item.id,
        "kind": item.kind.value,
        "number": item.number,
        "url": item.url,
        "repo": {
            "name": item.repo.name,
            "slug": item.repo.slug,
            "url": item.repo.url,
            "branch": item.repo.branch,
        },
        "labels": list(item.labels),
        "fields": {name: _field_to_dict(value) for name, value in item.fields.items()},
        "updated_at": item.updated_at.isoformat() if item.updated_at else None,
        "archived": item.archived,
    }


def item_from_dict(data: dict[str, Any]) -> Item:
    repo = data.get("repo") or {}
    try:
        kind = ItemKind(data.get("kind"))
    except ValueError:
        kind = ItemKind.DRAFT_ISSUE
    fields = {}
    for name, value in (data.get("fields") or {}).items():
        parsed = _field_from_dict({**value, "name": value.get("name") or name})
        if not isinstance(parsed, EmptyField):
            fields[name] = parsed
    return Item(
        id=data.get("id") or "",
        kind=kind,
        number=int(data.get("number") or 0),
        url=data.get("url") or "",
        repo=RepoRef(
            name=repo.get("name") or "",
            slug=repo.get("slug") or "",
            url=repo.get("url") or "",
            branch=repo.get("branch") or "",
        ),
        labels=tuple(data.get("labels") or ()),
        fields=fields,
        updated_at=parse_dt(data.get("updated_at")),
        archived=bool(data.get("archived")),
    )


def items_to_dataframe(items: Iterable[Item]) -> pd.DataFrame:
    rows = []
    for i in items:
        rows.append(
            {
                "id": i.id,
                "number": i.number,
                "url": i.url,
                "title": i.title,
                "kind": i.kind.value,
                "repo": i.repo.slug,
                "repo_url": i.repo.url,
                "branch": i.repo.branch,
                "labels": ", ".join(sorted(set(i.labels), key=lambda s: s.lower())),
                "status": i.fields[STATUS_FIELD].text if isinstance(i.fields.get(STATUS_FIELD), TextField) else None,
                "done_at": i.done_at,
            }
        )
    df = pd.DataFrame(rows)
    if "done_at" in df.columns:
        df["done_at"] = pd.to_datetime(df["done_at"], utc=True, errors="coerce")
    return df
