"""GitHub GraphQL client wrapper (Projects v2 lookup, item paging, archiving)."""

from __future__ import annotations

import hashlib
import json
import logging
import time
from typing import Any

import requests

from .config import CLIENT_CACHE_TTL_SECONDS, GITHUB_GRAPHQL_URL, REQUEST_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)

PROJECT_ID_QUERY = """
query($owner: String!, $number: Int!) {
  organization(login: $owner) {
    projectV2(number: $number) { id }
  }
}
"""

FIELD_COMMON = "field { ... on ProjectV2FieldCommon { name updatedAt } }"

PROJECT_ITEMS_QUERY = f"""
query($projectId: ID!, $count: Int!, $after: String, $labelCount: Int!, $fieldValuesCount: Int!) {{
  node(id: $projectId) {{
    ... on ProjectV2 {{
      items(first: $count, after: $after) {{
        pageInfo {{ hasNextPage endCursor }}
        nodes {{
          id
          isArchived
          fieldValues(first: $fieldValuesCount) {{
            nodes {{
              ... on ProjectV2ItemFieldTextValue {{ text {FIELD_COMMON} }}
              ... on ProjectV2ItemFieldSingleSelectValue {{ name {FIELD_COMMON} }}
              ... on ProjectV2ItemFieldDateValue {{ date {FIELD_COMMON} }}
              ... on ProjectV2ItemFieldNumberValue {{ number {FIELD_COMMON} }}
              ... on ProjectV2ItemFieldIterationValue {{
                iterationId title startDate duration {FIELD_COMMON}
              }}
              ... on ProjectV2ItemFieldLabelValue {{ labels(first: $labelCount) {{ nodes {{ name }} }} }}
            }}
          }}
          content {{
            __typename
            ... on DraftIssue {{ updatedAt }}
            ... on Issue {{
              updatedAt closedAt number url
              repository {{ name nameWithOwner url }}
            }}
            ... on PullRequest {{
              updatedAt closedAt mergedAt number url baseRefName
              repository {{ name nameWithOwner url }}
            }}
          }}
        }}
      }}
    }}
  }}
}}
"""

ARCHIVE_MUTATION = """
mutation($projectId: ID!, $itemId: ID!) {
  archiveProjectV2Item(input: {projectId: $projectId, itemId: $itemId}) { clientMutationId }
}
"""

UNARCHIVE_MUTATION = """
mutation($projectId: ID!, $itemId: ID!) {
  unarchiveProjectV2Item(input: {projectId: $projectId, itemId: $itemId}) { clientMutationId }
}
"""


class GitHubAPI:
    def __init__(self, token: str, url: str = GITHUB_GRAPHQL_URL, *, session: requests.Session | None = None):
        self.url = url
        self.session = session or requests.Session()
        self.session.headers.update({"Authorization": f"Bearer {token}"})
        # Simple in-memory cache: {(hash): (timestamp, data)}
        self._cache: dict[str, tuple[float, list]] = {}
        self._cache_ttl = CLIENT_CACHE_TTL_SECONDS

    def clear_cache(self) -> None:
        """Reset the in-memory item cache."""
        cache = getattr(self, "_cache", None)
        if isinstance(cache, dict):
            cache.clear()

    def _cache_key(self, project_id: str, counts: dict[str, int]) -> str:
        payload = {"project_id": project_id, **counts}
        return hashlib.sha256(json.dumps(payload, sort_keys=True).encode()).hexdigest()

    def query(self, document: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        """Run a GraphQL document and return its ``data`` member."""
        logger.debug("GraphQL request variables=%s\n%s", variables, document)
        resp = self.session.post(
            self.url,
            json={"query": document, "variables": variables or {}},
            timeout=REQUEST_TIMEOUT_SECONDS,
        )
        if resp.status_code >= 400:
            raise RuntimeError(f"GitHub GraphQL request failed {resp.status_code}: {resp.text[:200]}")
        payload = resp.json()
        errors = payload.get("errors")
        if errors:
            messages = "; ".join(str(e.get("message", e)) for e in errors if e)
            raise RuntimeError(f"GitHub GraphQL errors: {messages}")
        return payload.get("data") or {}

    def fetch_project_id(self, owner: str, number: int) -> str:
        data = self.query(PROJECT_ID_QUERY, {"owner": owner, "number": int(number)})
        project = ((data.get("organization") or {}).get("projectV2")) or {}
        project_id = project.get("id")
        if not project_id:
            raise RuntimeError(f"Project {owner}#{number} not found")
        return project_id

    def fetch_items(
        self,
        project_id: str,
        *,
        issue_count: int = 100,
        label_count: int = 20,
        field_value_count: int = 20,
    ) -> list[dict[str, Any]]:
        """Return every raw item node of the project, following page cursors."""
        counts = {
            "count": issue_count,
            "labelCount": label_count,
            "fieldValuesCount": field_value_count,
        }
        key = self._cache_key(project_id, counts)
        now = time.time()
        cached = self._cache.get(key)
        if cached and (now - cached[0]) < self._cache_ttl:
            return cached[1]

        out: list[dict[str, Any]] = []
        after = None
        while True:
            data = self.query(PROJECT_ITEMS_QUERY, {"projectId": project_id, "after": after, **counts})
            items = ((data.get("node") or {}).get("items")) or {}
            out.extend(items.get("nodes") or [])
            page = items.get("pageInfo") or {}
            after = page.get("endCursor")
            if not page.get("hasNextPage") or not after:
                break
        logger.info("Fetched %d project item(s)", len(out))
        self._cache[key] = (now, out)
        return out

    def archive_item(self, project_id: str, item_id: str) -> None:
        self.query(ARCHIVE_MUTATION, {"projectId": project_id, "itemId": item_id})

    def unarchive_item(self, project_id: str, item_id: str) -> None:
        self.query(UNARCHIVE_MUTATION, {"projectId": project_id, "itemId": item_id})
