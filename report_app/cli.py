"""Command line entry point: generate weekly reports and archive reported items."""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime

import pytz

from report_app.core.service import ReportService
from report_app.core.settings import ConfigError, dump_config, load_config, require_remote

logger = logging.getLogger("report_app")


def _parse_now(value: str) -> datetime:
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid ISO timestamp: {value!r}") from exc
    if parsed.tzinfo is None:
        parsed = pytz.UTC.localize(parsed)
    return parsed


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="status-reports",
        description="A weekly status report generator and GitHub project manager.",
    )
    p.add_argument("--debug", action="store_true", help="Run in debug mode.")
    p.add_argument("-s", "--show", action="store_true", help="Show the configuration and exit.")
    p.add_argument(
        "-f",
        "--file",
        dest="files",
        action="append",
        default=[],
        help="Configuration file or directory (repeatable; later files win).",
    )
    p.add_argument("--dry-run", action="store_true", help="When set, items are not archived.")
    p.add_argument("--cache-file", default="", help="Use a local cache file of project items.")
    p.add_argument(
        "--now",
        type=_parse_now,
        default=None,
        help="Reference time (ISO 8601, UTC when no offset is given). Defaults to the current time.",
    )
    return p


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        cfg = load_config(args.files)
        if args.show:
            print(dump_config(cfg))
            return 0

        if not args.dry_run:
            # Archiving needs GitHub; fail before any report is written.
            require_remote(cfg)
        service = ReportService(cfg)
        items = service.load_items(args.cache_file or None)
        now = args.now or datetime.now(tz=pytz.UTC)
        reports = service.build_reports(items, now)
        written = service.write_reports(reports)
        logger.info("Wrote %d report(s) to %s", len(written), cfg.output_directory)

        if args.dry_run:
            logger.info("Dry run: %d item(s) left unarchived", len(service.archive_ids(reports)))
        else:
            service.archive(reports)
    except ConfigError as exc:
        print(f"configuration error: {exc}", file=sys.stderr)
        return 1
    except (OSError, RuntimeError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
