"""Command-line interface for importing surveys and querying analytics.

Provides subcommands: `import`, `analyze-tech`, `analytics`, `career`,
`roles` and `levels`. Each command is implemented as a `cmd_*` function that
accepts an argparse namespace. Query commands read MongoDB unless
`--from-file` points at a survey export, which is analysed in memory.
"""
from __future__ import annotations

import argparse
import json
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from salary_analytics.analytics.service import AnalyticsService
from salary_analytics.config import get_settings
from salary_analytics.ingest.load_records import load_records_to_mongo
from salary_analytics.ingest.survey import (
    analyze_tech_stacks,
    normalize_survey_ddf,
    read_survey_json,
    records_from_frame,
    survey_to_ddf,
)
from salary_analytics.logging_config import configure_logging
from salary_analytics.store import FrameRecordStore, MongoRecordStore, RecordStore

log = logging.getLogger(__name__)


# --------------------------------------------------
# Helpers
# --------------------------------------------------
def _frame_store_from_file(path: Path) -> FrameRecordStore:
    """Normalize a survey export and wrap the valid records in a FrameRecordStore."""
    pdf = normalize_survey_ddf(survey_to_ddf(read_survey_json(path))).compute()
    records, bad = records_from_frame(pdf)
    if bad:
        log.warning("%d survey rows failed validation and were skipped", bad)
    return FrameRecordStore.from_records(records)


@contextmanager
def _open_service(args: argparse.Namespace) -> Iterator[AnalyticsService]:
    """Yield a service over MongoDB, or over `--from-file`; closes the Mongo client on exit."""
    settings = get_settings()
    mongo_store: MongoRecordStore | None = None
    store: RecordStore
    if getattr(args, "from_file", None):
        store = _frame_store_from_file(Path(args.from_file))
    else:
        store = mongo_store = MongoRecordStore.from_settings(settings)
    try:
        with AnalyticsService.from_settings(settings, store) as service:
            yield service
    finally:
        if mongo_store is not None:
            mongo_store.close()


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False, default=str))


# --------------------------------------------------
# IMPORT
# --------------------------------------------------
def cmd_import(args: argparse.Namespace) -> None:
    """Import a survey export into `salary_entries`.

    Args:
        args: argparse namespace with `path` and `top`.
    """
    path = Path(args.path)
    log.info("Starting import from file: %s", path)

    pdf = read_survey_json(path)
    log.info("Analyzing tech stacks in the data...\n%s", analyze_tech_stacks(pdf, args.top).render())

    ddf = normalize_survey_ddf(survey_to_ddf(pdf))
    written, bad = load_records_to_mongo(ddf, get_settings())
    log.info("Import completed: written=%d skipped=%d", written, bad)


def cmd_analyze_tech(args: argparse.Namespace) -> None:
    """Print the tech-stack report of a survey export without importing it."""
    report = analyze_tech_stacks(read_survey_json(Path(args.path)), args.top)
    print(report.render())


# --------------------------------------------------
# QUERIES
# --------------------------------------------------
def cmd_analytics(args: argparse.Namespace) -> None:
    with _open_service(args) as service:
        snapshot = service.get_general_analytics(args.level, args.role, args.currency)
    _print_json(snapshot.model_dump(mode="json", by_alias=True))


def cmd_career(args: argparse.Namespace) -> None:
    with _open_service(args) as service:
        snapshot = service.get_career_analytics()
    _print_json(snapshot.model_dump(mode="json", by_alias=True))


def cmd_roles(args: argparse.Namespace) -> None:
    with _open_service(args) as service:
        _print_json(service.get_available_roles())


def cmd_levels(args: argparse.Namespace) -> None:
    with _open_service(args) as service:
        _print_json(service.get_available_levels())


# --------------------------------------------------
# CLI
# --------------------------------------------------
def build_parser() -> argparse.ArgumentParser:
    """Build and return the top-level argument parser for the CLI."""
    p = argparse.ArgumentParser(prog="salary-analytics")
    p.add_argument("--verbose", "-v", action="store_true", help="enable debug logging")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_import = sub.add_parser("import", help="import a survey JSON export into MongoDB")
    p_import.add_argument("path")
    p_import.add_argument("--top", type=int, default=20)
    p_import.set_defaults(func=cmd_import)

    p_tech = sub.add_parser("analyze-tech", help="report technologies found in a survey export")
    p_tech.add_argument("path")
    p_tech.add_argument("--top", type=int, default=20)
    p_tech.set_defaults(func=cmd_analyze_tech)

    p_analytics = sub.add_parser("analytics", help="general salary analytics")
    p_analytics.add_argument("--level", default="")
    p_analytics.add_argument("--role", default="")
    p_analytics.add_argument("--currency", default="")
    p_analytics.add_argument("--from-file", default=None)
    p_analytics.set_defaults(func=cmd_analytics)

    for name, func, help_text in (
        ("career", cmd_career, "job-change and raise statistics"),
        ("roles", cmd_roles, "roles present in the data"),
        ("levels", cmd_levels, "seniority levels present in the data"),
    ):
        p_query = sub.add_parser(name, help=help_text)
        p_query.add_argument("--from-file", default=None)
        p_query.set_defaults(func=func)

    return p


def main(argv: list[str] | None = None) -> None:
    """CLI entry point: parse args, configure logging and dispatch commands."""
    args = build_parser().parse_args(argv)
    configure_logging(level=logging.DEBUG if args.verbose else logging.INFO)
    args.func(args)


if __name__ == "__main__":
    main()
