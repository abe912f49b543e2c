import pytest
import yaml

from report_app.core.config import GITHUB_GRAPHQL_URL, WEEKDAYS
from report_app.core.settings import (
    BranchRule,
    ConfigError,
    ReportConfig,
    ReportWindowConfig,
    dump_config,
    load_config,
    parse_config,
    require_remote,
)


def _write(tmp_path, name, text):
    path = tmp_path / name
    path.write_text(text)
    return path


def _sample_config():
    return """
owner: my-org
project_number: "7"
team: Platform
token: ${TEST_TOKEN}
report_window:
  anchor_weekday: Mon
  skip_empty_weeks: "yes"
sections:
  - name: Deployments
    render_order: 10
    omit_if_empty: true
    match_on:
      labels: [ deployment ]
      prefixes: [ "Release *" ]
      branches:
        - org: my-org
          repo: "*"
          branch: main
  - name: Docs
    render_order: 20
    match_on:
      prefixes: docs
"""


def test_defaults_without_files():
    cfg = load_config(env={})
    assert cfg.url == GITHUB_GRAPHQL_URL
    assert cfg.owner == ""
    assert cfg.project_number is None
    assert cfg.token == ""
    assert cfg.sections == ()
    assert cfg.unclassified.name == "Unclassified Items"
    assert cfg.unclassified.render_order == 1000
    assert cfg.unclassified.omit_if_empty
    assert cfg.tuning.issue_count == 100
    assert cfg.report_window.anchor == WEEKDAYS["sunday"]
    assert not cfg.report_window.skip_empty_weeks


def test_user_file_merges_over_defaults(tmp_path):
    path = _write(tmp_path, "report.yml", _sample_config())
    cfg = load_config([path], env={"TEST_TOKEN": "s3cret"})
    assert cfg.owner == "my-org"
    assert cfg.project_number == 7
    assert cfg.token == "s3cret"
    assert cfg.report_window.anchor_weekday == "monday"
    assert cfg.report_window.skip_empty_weeks
    assert cfg.tuning.label_count == 20
    deploy, docs = cfg.sections
    assert deploy.omit_if_empty
    assert deploy.match.labels == ("deployment",)
    assert deploy.match.branches == (BranchRule("my-org", "*", "main"),)
    assert docs.match.prefixes == ("docs",)
    assert not docs.omit_if_empty


def test_later_files_win_and_directories_expand(tmp_path):
    _write(tmp_path, "a.yml", "team: First\noutput_directory: out\n")
    _write(tmp_path, "b.yaml", "team: Second\n")
    _write(tmp_path, "notes.txt", "team: Ignored\n")
    cfg = load_config([tmp_path], env={})
    assert cfg.team == "Second"
    assert cfg.output_directory == "out"


def test_missing_env_var_expands_to_empty(tmp_path):
    path = _write(tmp_path, "c.yml", "token: ${NOT_SET_ANYWHERE}\n")
    assert load_config([path], env={}).token == ""


def test_missing_file_is_an_error(tmp_path):
    with pytest.raises(ConfigError):
        load_config([tmp_path / "absent.yml"], env={})


@pytest.mark.parametrize(
    "raw",
    [
        {"owner": "x", "bogus": 1},
        {"sections": [{"render_order": 1}]},
        {"sections": [{"name": "S", "match_on": {"labels": ["[abc"]}}]},
        {"sections": [{"name": "S", "match_on": {"branches": [{"org": "o", "repo": "r"}]}}]},
        {"sections": [{"name": "S", "match_on": {"branches": [{"org": "o", "repo": "r", "branch": "rel/[0-9"}]}}]},
        {"sections": [{"name": "S", "unknown": True}]},
        {"sections": [{"name": "A", "render_order": 5}, {"name": "B", "render_order": 5}]},
        {"sections": [{"name": "A", "render_order": 1000}]},
        {"label_section": {"enabled": True, "render_order": 0}, "summary": {"enabled": True}},
        {"tuning": {"issue_count": 0}},
        {"tuning": {"label_count": "many"}},
        {"report_window": {"anchor_weekday": "someday"}},
        {"report_window": {"skip_empty_weeks": "maybe"}},
        {"sections": "not a list"},
    ],
)
def test_invalid_configuration_rejected(raw):
    with pytest.raises(ConfigError):
        parse_config(raw)


def test_disabled_blocks_do_not_reserve_render_order():
    cfg = parse_config({"sections": [{"name": "A", "render_order": 100}], "summary": {"render_order": 100}})
    assert cfg.sections[0].render_order == 100


def test_require_remote_lists_missing_keys():
    cfg = parse_config({"owner": "o"})
    with pytest.raises(ConfigError, match="project_number, token"):
        require_remote(cfg)
    require_remote(parse_config({"owner": "o", "project_number": 3, "token": "t"}))


def test_dump_config_redacts_token(tmp_path):
    path = _write(tmp_path, "report.yml", _sample_config())
    text = dump_config(load_config([path], env={"TEST_TOKEN": "s3cret"}))
    assert "s3cret" not in text
    data = yaml.safe_load(text)
    assert data["token"] == "<redacted>"
    assert data["sections"][0]["match_on"]["labels"] == ["deployment"]
    assert data["sections"][0]["match_on"]["branches"][0] == {"org": "my-org", "repo": "*", "branch": "main"}


def test_window_anchor_accepts_aliases_when_built_directly():
    assert ReportWindowConfig(anchor_weekday="sun").anchor == WEEKDAYS["sunday"]
    assert ReportWindowConfig(anchor_weekday="Mon").anchor == WEEKDAYS["monday"]
    with pytest.raises(ConfigError):
        ReportWindowConfig(anchor_weekday="someday").anchor


def test_config_has_no_debug_field():
    assert "debug" not in ReportConfig.__dataclass_fields__
    assert "debug" not in yaml.safe_load(dump_config(parse_config({})))
