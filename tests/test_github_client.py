import pytest

from report_app.core.github_client import ARCHIVE_MUTATION, PROJECT_ITEMS_QUERY, UNARCHIVE_MUTATION, GitHubAPI


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code
        self.text = str(payload)

    def json(self):
        return self._payload


class FakeSession:
    def __init__(self, responses):
        self.headers = {}
        self.responses = list(responses)
        self.calls = []

    def post(self, url, json=None, timeout=None):
        self.calls.append((url, json))
        return self.responses.pop(0)


def _page(ids, cursor=None):
    return FakeResponse(
        {
            "data": {
                "node": {
                    "items": {
                        "pageInfo": {"hasNextPage": cursor is not None, "endCursor": cursor},
                        "nodes": [{"id": i} for i in ids],
                    }
                }
            }
        }
    )


def test_token_sent_as_bearer():
    session = FakeSession([])
    GitHubAPI("abc", session=session)
    assert session.headers["Authorization"] == "Bearer abc"


def test_fetch_project_id():
    session = FakeSession([FakeResponse({"data": {"organization": {"projectV2": {"id": "PVT_1"}}}})])
    assert GitHubAPI("t", session=session).fetch_project_id("org", "3") == "PVT_1"
    assert session.calls[0][1]["variables"] == {"owner": "org", "number": 3}


def test_missing_project_raises():
    session = FakeSession([FakeResponse({"data": {"organization": {"projectV2": None}}})])
    with pytest.raises(RuntimeError, match="not found"):
        GitHubAPI("t", session=session).fetch_project_id("org", 3)


def test_fetch_items_follows_cursors_and_caches():
    session = FakeSession([_page(["a", "b"], cursor="c1"), _page(["c"])])
    api = GitHubAPI("t", session=session)
    nodes = api.fetch_items("PVT_1", issue_count=2, label_count=5, field_value_count=7)
    assert [n["id"] for n in nodes] == ["a", "b", "c"]
    first, second = (call[1] for call in session.calls)
    assert first["query"] == PROJECT_ITEMS_QUERY
    assert first["variables"] == {
        "projectId": "PVT_1",
        "after": None,
        "count": 2,
        "labelCount": 5,
        "fieldValuesCount": 7,
    }
    assert second["variables"]["after"] == "c1"

    assert api.fetch_items("PVT_1", issue_count=2, label_count=5, field_value_count=7) == nodes
    assert len(session.calls) == 2
    api.clear_cache()
    session.responses.append(_page(["z"]))
    assert [n["id"] for n in api.fetch_items("PVT_1", issue_count=2, label_count=5, field_value_count=7)] == ["z"]


def test_http_error_raises():
    session = FakeSession([FakeResponse({"message": "Bad credentials"}, status_code=401)])
    with pytest.raises(RuntimeError, match="401"):
        GitHubAPI("t", session=session).query("query { viewer { login } }")


def test_graphql_errors_raise():
    session = FakeSession([FakeResponse({"data": None, "errors": [{"message": "Could not resolve"}]})])
    with pytest.raises(RuntimeError, match="Could not resolve"):
        GitHubAPI("t", session=session).query("query { viewer { login } }")


def test_archive_item_sends_mutation():
    session = FakeSession([FakeResponse({"data": {"archiveProjectV2Item": {"clientMutationId": None}}})])
    GitHubAPI("t", session=session).archive_item("PVT_1", "ITEM_1")
    _, body = session.calls[0]
    assert body["query"] == ARCHIVE_MUTATION
    assert body["variables"] == {"projectId": "PVT_1", "itemId": "ITEM_1"}


def test_unarchive_item_sends_mutation():
    session = FakeSession([FakeResponse({"data": {"unarchiveProjectV2Item": {"clientMutationId": None}}})])
    GitHubAPI("t", session=session).unarchive_item("PVT_1", "ITEM_1")
    _, body = session.calls[0]
    assert body["query"] == UNARCHIVE_MUTATION
    assert body["variables"]["itemId"] == "ITEM_1"
