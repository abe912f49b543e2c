"""Item matchers for section rules (labels, title prefixes, repo/branch).

All patterns use shell-style globs (``*``, ``?``, ``[...]``) compared
case-insensitively. Both the pattern and the compared value are trimmed of
surrounding whitespace first.
"""

from __future__ import annotations

from fnmatch import fnmatchcase

from report_app.core.models import Item

WILDCARD = "*"


def _norm(text: str | None) -> str:
    return (text or "").strip().casefold()


def _glob(value: str, pattern: str) -> bool:
    return fnmatchcase(_norm(value), _norm(pattern))


def check_glob(pattern: str) -> None:
    """Raise ValueError when ``pattern`` holds an unterminated ``[`` class.

    ``fnmatch`` silently treats a dangling bracket as a literal, which hides
    typos in configured rules.
    """
    i = 0
    n = len(pattern)
    while i < n:
        if pattern[i] != "[":
            i += 1
            continue
        j = i + 1
        if j < n and pattern[j] == "!":
            j += 1
        if j < n and pattern[j] == "]":
            j += 1
        while j < n and pattern[j] != "]":
            j += 1
        if j >= n:
            raise ValueError(f"unterminated character class in glob {pattern!r}")
        i = j + 1


def matches_label(item: Item, pattern: str) -> bool:
    """True when any label of ``item`` matches ``pattern``.

    A bare ``*`` matches every item, including items without labels.
    """
    pattern = _norm(pattern)
    if pattern == WILDCARD:
        return True
    return any(_glob(label, pattern) for label in item.labels)


def matches_prefix(item: Item, pattern: str) -> bool:
    """True when ``pattern`` is a glob prefix of the item title."""
    pattern = _norm(pattern)
    if not pattern.endswith(WILDCARD):
        pattern += WILDCARD
    return _glob(item.title, pattern)


def matches_branch(item: Item, org: str, repo: str, branch_pattern: str) -> bool:
    """True when the item's ``org/repo`` slug and branch both match.

    Items without a repository slug or without a branch (issues, drafts) never
    match.
    """
    slug = item.repo.slug.strip()
    branch = item.repo.branch.strip()
    if not slug or not branch:
        return False
    slug_pattern = f"{_norm(org)}/{_norm(repo)}"
    return _glob(slug, slug_pattern) and _glob(branch, branch_pattern)


def matches_any_label(item: Item, patterns) -> bool:
    return any(matches_label(item, p) for p in patterns)


def matches_any_prefix(item: Item, patterns) -> bool:
    return any(matches_prefix(item, p) for p in patterns)
