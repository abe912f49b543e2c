import pytest
from factories import make_item

from report_app.analytics.classify import classify, extract
from report_app.core.models import ItemKind
from report_app.core.settings import BranchRule, MatchSpec, SectionConfig, UnclassifiedConfig


def _sample_items():
    return [
        make_item("pr24", kind=ItemKind.PULL_REQUEST, title="Update Something", branch="main", number=24),
        make_item("issue88", title="An example item title.", labels=["deployment"], number=88),
        make_item("issue89", title="Another item", labels=["deployment", "dogs"], number=89),
        make_item("pr23", kind=ItemKind.PULL_REQUEST, title="Update Something else", branch="main", number=23),
    ]


def _ids(items):
    return [it.id for it in items]


@pytest.mark.parametrize(
    ("match", "expect_mine", "expect_left"),
    [
        (MatchSpec(labels=("dogs", "deployment")), ["issue88", "issue89"], ["pr24", "pr23"]),
        (MatchSpec(prefixes=("Update Something",)), ["pr24", "pr23"], ["issue88", "issue89"]),
        (MatchSpec(prefixes=("Up*",)), ["pr24", "pr23"], ["issue88", "issue89"]),
        (MatchSpec(branches=(BranchRule("*", "*", "*"),)), ["pr24", "pr23"], ["issue88", "issue89"]),
        (MatchSpec(branches=(BranchRule("no-match", "*", "*"),)), [], ["pr24", "issue88", "issue89", "pr23"]),
        (MatchSpec(), [], ["pr24", "issue88", "issue89", "pr23"]),
    ],
)
def test_extract(match, expect_mine, expect_left):
    mine, left = extract(_sample_items(), match)
    assert _ids(mine) == expect_mine
    assert _ids(left) == expect_left


def test_extract_label_star_takes_everything():
    mine, left = extract(_sample_items(), MatchSpec(labels=("*",)))
    assert len(mine) == 4
    assert left == []


def test_first_family_wins_within_section():
    item = make_item("x", title="Update docs", labels=["deployment"])
    match = MatchSpec(labels=("deployment",), prefixes=("Update",))
    mine, left = extract([item], match)
    assert _ids(mine) == ["x"]
    assert left == []


def test_extract_orders_by_family_then_input():
    items = [
        make_item("p", title="Fix: thing"),
        make_item("l", labels=["bug"]),
        make_item("b", kind=ItemKind.PULL_REQUEST, branch="dev"),
    ]
    match = MatchSpec(labels=("bug",), prefixes=("Fix:",), branches=(BranchRule("org", "repo", "dev"),))
    mine, left = extract(items, match)
    assert _ids(mine) == ["l", "p", "b"]
    assert left == []


def test_classify_sections_in_listed_order_not_render_order():
    items = [make_item("a", labels=["deployment"], title="Update A")]
    sections = [
        SectionConfig(name="Prefixes", render_order=50, match=MatchSpec(prefixes=("Update",))),
        SectionConfig(name="Labels", render_order=1, match=MatchSpec(labels=("deployment",))),
    ]
    result = classify(items, sections)
    assert _ids(result.sections[0].items) == ["a"]
    assert result.sections[1].items == []
    assert result.unclassified.items == []


def test_classify_partition_is_complete():
    items = _sample_items() + [make_item("loner", title="Nothing matches")]
    sections = [
        SectionConfig(name="Deploys", render_order=1, match=MatchSpec(labels=("deployment",))),
        SectionConfig(name="Main", render_order=2, match=MatchSpec(branches=(BranchRule("org", "repo", "main"),))),
    ]
    result = classify(items, sections, UnclassifiedConfig(name="Other", render_order=99))
    placed = result.all_items()
    assert sorted(_ids(placed)) == sorted(_ids(items))
    assert len(placed) == len(set(_ids(placed)))
    assert _ids(result.unclassified.items) == ["loner"]
    assert result.unclassified.name == "Other"


def test_by_render_order_view():
    sections = [
        SectionConfig(name="Deploys", render_order=10, match=MatchSpec(labels=("deployment",))),
    ]
    view = classify(_sample_items(), sections, UnclassifiedConfig(render_order=1000)).by_render_order()
    assert set(view) == {10, 1000}
    assert _ids(view[10]) == ["issue88", "issue89"]
    assert _ids(view[1000]) == ["pr24", "pr23"]


def test_hidden_only_when_omitted_and_empty():
    result = classify([], [SectionConfig(name="S", omit_if_empty=True)], UnclassifiedConfig(omit_if_empty=False))
    assert result.sections[0].hidden
    assert not result.unclassified.hidden


def test_classify_does_not_need_done_items():
    item = make_item("todo", status="Todo", labels=["deployment"])
    result = classify([item], [SectionConfig(name="D", match=MatchSpec(labels=("deployment",)))])
    assert _ids(result.sections[0].items) == ["todo"]
