"""Route items into report sections with ordered, first-match-wins rules."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field

from report_app.core.models import Item
from report_app.core.settings import MatchSpec, SectionConfig, UnclassifiedConfig

from .matching import matches_any_label, matches_any_prefix, matches_branch


def _partition(items: Iterable[Item], predicate: Callable[[Item], bool]) -> tuple[list[Item], list[Item]]:
    matched: list[Item] = []
    remaining: list[Item] = []
    for item in items:
        (matched if predicate(item) else remaining).append(item)
    return matched, remaining


def extract_by_labels(items: Iterable[Item], labels: Sequence[str]) -> tuple[list[Item], list[Item]]:
    return _partition(items, lambda it: matches_any_label(it, labels))


def extract_by_prefixes(items: Iterable[Item], prefixes: Sequence[str]) -> tuple[list[Item], list[Item]]:
    return _partition(items, lambda it: matches_any_prefix(it, prefixes))


def extract_by_branch(items: Iterable[Item], org: str, repo: str, branch: str) -> tuple[list[Item], list[Item]]:
    return _partition(items, lambda it: matches_branch(it, org, repo, branch))


def extract(items: Iterable[Item], match: MatchSpec) -> tuple[list[Item], list[Item]]:
    """Split ``items`` into those claimed by ``match`` and the rest.

    Families run in a fixed order (labels, prefixes, then each branch rule)
    and each one only sees what the previous ones left, so an item is claimed
    at most once. Input order is preserved within each family.
    """
    matched, remaining = extract_by_labels(items, match.labels)
    by_prefix, remaining = extract_by_prefixes(remaining, match.prefixes)
    matched.extend(by_prefix)
    for rule in match.branches:
        by_branch, remaining = extract_by_branch(remaining, rule.org, rule.repo, rule.branch)
        matched.extend(by_branch)
    return matched, remaining


@dataclass(slots=True)
class SectionBucket:
    name: str
    render_order: int
    omit_if_empty: bool
    items: list[Item] = field(default_factory=list)

    @property
    def hidden(self) -> bool:
        return self.omit_if_empty and not self.items


@dataclass(slots=True)
class Classification:
    sections: list[SectionBucket]
    unclassified: SectionBucket

    def buckets(self) -> list[SectionBucket]:
        """User sections in matching order, then the unclassified bucket."""
        return [*self.sections, self.unclassified]

    def by_render_order(self) -> dict[int, list[Item]]:
        return {b.render_order: list(b.items) for b in self.buckets()}

    def all_items(self) -> list[Item]:
        return [item for b in self.buckets() for item in b.items]


def classify(
    items: Iterable[Item],
    sections: Sequence[SectionConfig],
    unclassified: UnclassifiedConfig | None = None,
) -> Classification:
    """Classify ``items`` into ``sections`` in their listed order.

    Render order plays no part here; the sequence of ``sections`` alone
    decides precedence. Whatever no section claims lands in the unclassified
    bucket.
    """
    unclassified = unclassified or UnclassifiedConfig()
    remaining = list(items)
    buckets: list[SectionBucket] = []
    for section in sections:
        matched, remaining = extract(remaining, section.match)
        buckets.append(
            SectionBucket(
                name=section.name,
                render_order=section.render_order,
                omit_if_empty=section.omit_if_empty,
                items=matched,
            )
        )
    rest = SectionBucket(
        name=unclassified.name,
        render_order=unclassified.render_order,
        omit_if_empty=unclassified.omit_if_empty,
        items=remaining,
    )
    return Classification(sections=buckets, unclassified=rest)
