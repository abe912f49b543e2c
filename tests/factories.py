"""Item builders shared by the test modules."""

from __future__ import annotations

from datetime import UTC, datetime

from report_app.core.models import Item, ItemKind, RepoRef, TextField


def make_item(
    item_id: str,
    *,
    done: datetime | str | None = None,
    status: str | None = None,
    title: str = "",
    labels=(),
    kind: ItemKind = ItemKind.ISSUE,
    slug: str = "org/repo",
    branch: str = "",
    number: int = 1,
) -> Item:
    """Build an item; ``done`` sets the Status to Done and the completion time."""
    if isinstance(done, str):
        done = datetime.fromisoformat(done).replace(tzinfo=UTC)
    fields = {}
    if done is not None and status is None:
        status = "Done"
    if status is not None:
        fields["Status"] = TextField(name="Status", text=status)
    if title:
        fields["Title"] = TextField(name="Title", text=title)
    name = slug.partition("/")[2]
    repo = RepoRef(
        name=name,
        slug=slug,
        url=f"https://github.com/{slug}" if slug else "",
        branch=branch,
    )
    return Item(
        id=item_id,
        kind=kind,
        number=number,
        url=f"https://github.com/{slug}/issues/{number}",
        repo=repo,
        labels=tuple(labels),
        fields=fields,
        updated_at=done,
    )
