"""Load, merge, and validate the YAML report configuration.

Defaults ship in ``report_app/default.yml``. User files (or directories of
``*.yml`` / ``*.yaml`` files) are merged over them in the order given, with
``${VAR}`` references expanded from the environment. Any problem is raised as
:class:`ConfigError` before a single item is processed.
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import yaml

from report_app.analytics.matching import check_glob

from .config import DEFAULT_ANCHOR_WEEKDAY, GITHUB_GRAPHQL_URL, WEEKDAY_ALIASES, WEEKDAYS

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "default.yml"
CONFIG_SUFFIXES = (".yml", ".yaml")
REDACTED = "<redacted>"

_ENV_REF = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


class ConfigError(ValueError):
    """Invalid or incomplete configuration."""


# =============================================================================
# Typed configuration
# =============================================================================
@dataclass(frozen=True, slots=True)
class BranchRule:
    org: str
    repo: str
    branch: str


@dataclass(frozen=True, slots=True)
class MatchSpec:
    labels: tuple[str, ...] = ()
    prefixes: tuple[str, ...] = ()
    branches: tuple[BranchRule, ...] = ()


@dataclass(frozen=True, slots=True)
class SectionConfig:
    name: str
    render_order: int = 0
    omit_if_empty: bool = False
    match: MatchSpec = field(default_factory=MatchSpec)


@dataclass(frozen=True, slots=True)
class UnclassifiedConfig:
    name: str = "Unclassified Items"
    render_order: int = 1000
    omit_if_empty: bool = True


@dataclass(frozen=True, slots=True)
class LabelSectionConfig:
    enabled: bool = False
    render_order: int = 100


@dataclass(frozen=True, slots=True)
class SummaryConfig:
    enabled: bool = False
    name: str = "Summary"
    body: str = ""
    render_order: int = 0


@dataclass(frozen=True, slots=True)
class TuningConfig:
    issue_count: int = 100
    label_count: int = 20
    field_value_count: int = 20


@dataclass(frozen=True, slots=True)
class ReportWindowConfig:
    anchor_weekday: str = DEFAULT_ANCHOR_WEEKDAY
    skip_empty_weeks: bool = False

    @property
    def anchor(self) -> int:
        return WEEKDAYS[normalize_weekday(self.anchor_weekday)]


@dataclass(slots=True)
class ReportConfig:
    url: str = GITHUB_GRAPHQL_URL
    owner: str = ""
    project_number: int | None = None
    team: str = ""
    token: str = ""
    output_directory: str = "."
    tuning: TuningConfig = field(default_factory=TuningConfig)
    report_window: ReportWindowConfig = field(default_factory=ReportWindowConfig)
    label_section: LabelSectionConfig = field(default_factory=LabelSectionConfig)
    summary: SummaryConfig = field(default_factory=SummaryConfig)
    unclassified: UnclassifiedConfig = field(default_factory=UnclassifiedConfig)
    sections: tuple[SectionConfig, ...] = ()


# =============================================================================
# Raw document handling
# =============================================================================
def _deep_merge(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    out = dict(base)
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(out.get(key), Mapping):
            out[key] = _deep_merge(dict(out[key]), value)
        else:
            out[key] = value
    return out


def _expand_env(node: Any, env: Mapping[str, str]) -> Any:
    if isinstance(node, str):
        return _ENV_REF.sub(lambda m: env.get(m.group(1), ""), node)
    if isinstance(node, list):
        return [_expand_env(v, env) for v in node]
    if isinstance(node, dict):
        return {k: _expand_env(v, env) for k, v in node.items()}
    return node


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"{path}: invalid YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: top level must be a mapping")
    return data


def _expand_paths(files: Iterable[str | Path]) -> list[Path]:
    out: list[Path] = []
    for entry in files:
        path = Path(entry)
        if path.is_dir():
            out.extend(sorted(p for p in path.iterdir() if p.suffix in CONFIG_SUFFIXES))
        elif path.is_file():
            out.append(path)
        else:
            raise ConfigError(f"configuration file not found: {path}")
    return out


def load_raw(files: Iterable[str | Path] = (), *, env: Mapping[str, str] | None = None) -> dict[str, Any]:
    """Merge the defaults with ``files`` and expand environment references."""
    merged = _read_yaml(DEFAULT_CONFIG_PATH)
    for path in _expand_paths(files):
        logger.debug("Merging configuration from %s", path)
        merged = _deep_merge(merged, _read_yaml(path))
    return _expand_env(merged, os.environ if env is None else env)


# =============================================================================
# Parsing helpers (weakly typed: YAML strings such as "10" or "true" coerce)
# =============================================================================
def _take(node: Any, allowed: Iterable[str], where: str) -> dict[str, Any]:
    if node is None:
        return {}
    if not isinstance(node, Mapping):
        raise ConfigError(f"{where}: expected a mapping, got {type(node).__name__}")
    unknown = sorted(set(node) - set(allowed))
    if unknown:
        raise ConfigError(f"{where}: unknown key(s): {', '.join(map(str, unknown))}")
    return dict(node)


def _as_str(value: Any, default: str = "") -> str:
    if value is None:
        return default
    return str(value).strip()


def _as_int(value: Any, where: str, default: int | None = None) -> int | None:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise ConfigError(f"{where}: expected an integer, got {value!r}")
    try:
        return int(str(value).strip())
    except ValueError as exc:
        raise ConfigError(f"{where}: expected an integer, got {value!r}") from exc


def _as_bool(value: Any, where: str, default: bool = False) -> bool:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in {"true", "yes", "on", "1"}:
        return True
    if text in {"false", "no", "off", "0"}:
        return False
    raise ConfigError(f"{where}: expected a boolean, got {value!r}")


def _as_str_list(value: Any, where: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        raise ConfigError(f"{where}: expected a list")
    return tuple(str(v).strip() for v in value if v is not None and str(v).strip())


def normalize_weekday(value: Any) -> str:
    text = _as_str(value, DEFAULT_ANCHOR_WEEKDAY).lower() or DEFAULT_ANCHOR_WEEKDAY
    text = WEEKDAY_ALIASES.get(text, text)
    if text not in WEEKDAYS:
        raise ConfigError(f"report_window.anchor_weekday: unknown weekday {value!r}")
    return text


# =============================================================================
# Section parsing and validation
# =============================================================================
def _parse_branch(node: Any, where: str) -> BranchRule:
    raw = _take(node, ("org", "repo", "branch"), where)
    values = {}
    for key in ("org", "repo", "branch"):
        text = _as_str(raw.get(key))
        if not text:
            raise ConfigError(f"{where}: missing required field '{key}'")
        try:
            check_glob(text)
        except ValueError as exc:
            raise ConfigError(f"{where}: invalid {key} pattern: {exc}") from exc
        values[key] = text
    return BranchRule(**values)


def _parse_match(node: Any, where: str) -> MatchSpec:
    raw = _take(node, ("labels", "prefixes", "branches"), where)
    labels = _as_str_list(raw.get("labels"), f"{where}.labels")
    prefixes = _as_str_list(raw.get("prefixes"), f"{where}.prefixes")
    for kind, patterns in (("label", labels), ("prefix", prefixes)):
        for pattern in patterns:
            try:
                check_glob(pattern)
            except ValueError as exc:
                raise ConfigError(f"{where}: invalid {kind} pattern: {exc}") from exc
    branches_raw = raw.get("branches") or []
    if not isinstance(branches_raw, list):
        raise ConfigError(f"{where}.branches: expected a list")
    branches = tuple(
        _parse_branch(b, f"{where}.branches[{idx}]") for idx, b in enumerate(branches_raw) if b is not None
    )
    return MatchSpec(labels=labels, prefixes=prefixes, branches=branches)


def parse_section(node: Any, where: str = "sections[0]") -> SectionConfig:
    raw = _take(node, ("name", "render_order", "omit_if_empty", "match_on"), where)
    name = _as_str(raw.get("name"))
    if not name:
        raise ConfigError(f"{where}: missing required field 'name'")
    return SectionConfig(
        name=name,
        render_order=_as_int(raw.get("render_order"), f"{where}.render_order", 0),
        omit_if_empty=_as_bool(raw.get("omit_if_empty"), f"{where}.omit_if_empty"),
        match=_parse_match(raw.get("match_on"), f"{where}.match_on"),
    )


def _check_render_orders(cfg: ReportConfig) -> None:
    owners: dict[int, str] = {}
    entries = [(s.render_order, f"section '{s.name}'") for s in cfg.sections]
    entries.append((cfg.unclassified.render_order, "unclassified"))
    if cfg.label_section.enabled:
        entries.append((cfg.label_section.render_order, "label_section"))
    if cfg.summary.enabled:
        entries.append((cfg.summary.render_order, "summary"))
    for order, owner in entries:
        if order in owners:
            raise ConfigError(f"render_order {order} is used by both {owners[order]} and {owner}")
        owners[order] = owner


# =============================================================================
# Public API
# =============================================================================
TOP_LEVEL_KEYS = (
    "url",
    "owner",
    "project_number",
    "team",
    "token",
    "output_directory",
    "tuning",
    "report_window",
    "label_section",
    "summary",
    "unclassified",
    "sections",
)


def parse_config(raw: Mapping[str, Any]) -> ReportConfig:
    """Build a validated :class:`ReportConfig` from a merged raw document."""
    top = _take(raw, TOP_LEVEL_KEYS, "config")

    tuning_raw = _take(top.get("tuning"), ("issue_count", "label_count", "field_value_count"), "tuning")
    defaults = TuningConfig()
    tuning = TuningConfig(
        **{
            key: _as_int(tuning_raw.get(key), f"tuning.{key}", getattr(defaults, key))
            for key in ("issue_count", "label_count", "field_value_count")
        }
    )
    for key, value in asdict(tuning).items():
        if value <= 0:
            raise ConfigError(f"tuning.{key}: must be positive, got {value}")

    window_raw = _take(top.get("report_window"), ("anchor_weekday", "skip_empty_weeks"), "report_window")
    report_window = ReportWindowConfig(
        anchor_weekday=normalize_weekday(window_raw.get("anchor_weekday")),
        skip_empty_weeks=_as_bool(window_raw.get("skip_empty_weeks"), "report_window.skip_empty_weeks"),
    )

    label_raw = _take(top.get("label_section"), ("enabled", "render_order"), "label_section")
    label_section = LabelSectionConfig(
        enabled=_as_bool(label_raw.get("enabled"), "label_section.enabled"),
        render_order=_as_int(label_raw.get("render_order"), "label_section.render_order", 100),
    )

    summary_raw = _take(top.get("summary"), ("enabled", "name", "body", "render_order"), "summary")
    summary = SummaryConfig(
        enabled=_as_bool(summary_raw.get("enabled"), "summary.enabled"),
        name=_as_str(summary_raw.get("name"), "Summary") or "Summary",
        body=_as_str(summary_raw.get("body")),
        render_order=_as_int(summary_raw.get("render_order"), "summary.render_order", 0),
    )

    unclassified_raw = _take(top.get("unclassified"), ("name", "render_order", "omit_if_empty"), "unclassified")
    unclassified = UnclassifiedConfig(
        name=_as_str(unclassified_raw.get("name"), "Unclassified Items") or "Unclassified Items",
        render_order=_as_int(unclassified_raw.get("render_order"), "unclassified.render_order", 1000),
        omit_if_empty=_as_bool(unclassified_raw.get("omit_if_empty"), "unclassified.omit_if_empty", True),
    )

    sections_raw = top.get("sections") or []
    if not isinstance(sections_raw, list):
        raise ConfigError("sections: expected a list")
    sections = tuple(
        parse_section(node, f"sections[{idx}]") for idx, node in enumerate(sections_raw) if node is not None
    )

    cfg = ReportConfig(
        url=_as_str(top.get("url"), GITHUB_GRAPHQL_URL) or GITHUB_GRAPHQL_URL,
        owner=_as_str(top.get("owner")),
        project_number=_as_int(top.get("project_number"), "project_number"),
        team=_as_str(top.get("team")),
        token=_as_str(top.get("token")),
        output_directory=_as_str(top.get("output_directory"), ".") or ".",
        tuning=tuning,
        report_window=report_window,
        label_section=label_section,
        summary=summary,
        unclassified=unclassified,
        sections=sections,
    )
    _check_render_orders(cfg)
    return cfg


def load_config(files: Iterable[str | Path] = (), *, env: Mapping[str, str] | None = None) -> ReportConfig:
    return parse_config(load_raw(files, env=env))


def require_remote(cfg: ReportConfig) -> None:
    """Ensure the settings needed to talk to GitHub are present."""
    missing = [
        key
        for key, value in (
            ("owner", cfg.owner),
            ("project_number", cfg.project_number),
            ("token", cfg.token),
        )
        if not value
    ]
    if missing:
        raise ConfigError(f"missing required configuration: {', '.join(missing)}")


def _plain(node: Any) -> Any:
    if isinstance(node, (list, tuple)):
        return [_plain(v) for v in node]
    if isinstance(node, dict):
        return {k: _plain(v) for k, v in node.items()}
    return node


def dump_config(cfg: ReportConfig) -> str:
    """Render ``cfg`` as YAML with the token redacted."""
    data = _plain(asdict(cfg))
    if data.get("token"):
        data["token"] = REDACTED
    for section in data.get("sections", []):
        section["match_on"] = section.pop("match")
    return yaml.safe_dump(data, sort_keys=False)
