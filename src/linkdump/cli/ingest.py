"""CLI for ingesting link dumps into the store."""

from __future__ import annotations

import argparse
import sys

from linkdump.config.loaders import load_run_config
from linkdump.config.logging import setup_logging
from linkdump.config.settings import get_settings
from linkdump.db.session import open_store
from linkdump.errors import SchemaVersionMismatch
from linkdump.services.ingest_service import IngestService, IngestSummary

EXIT_FAILURES = 1
EXIT_SCHEMA = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Ingest markdown link dumps")
    parser.add_argument("paths", nargs="*", help="Markdown files or directories of them")
    parser.add_argument("--config", default=None, help="Run config (yaml/json)")
    parser.add_argument("--database-url", default=None, help="Override DATABASE_URL")
    return parser


def print_summary(summary: IngestSummary) -> None:
    for document in summary.documents:
        print(
            f"{document.source}: inserted={document.inserted} updated={document.updated} "
            f"unchanged={document.unchanged} skipped={document.skipped}"
        )
    for warning in summary.warnings:
        print(f"warning: {warning}")
    for failure in summary.failures:
        print(f"error: {failure}")
    print(
        f"Ingested {len(summary.documents)} documents: inserted={summary.inserted} "
        f"updated={summary.updated} unchanged={summary.unchanged} "
        f"skipped={summary.skipped} failed={len(summary.failures)}"
    )


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    setup_logging(settings.log_level)
    config = load_run_config(args.config)

    paths = args.paths or config.inputs
    if not paths:
        parser.error("no input paths given")
    database_url = args.database_url or config.database_url or settings.resolved_database_url()

    try:
        with open_store(database_url) as session:
            summary = IngestService().ingest_paths(session, paths)
    except SchemaVersionMismatch as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_SCHEMA

    print_summary(summary)
    return 0 if summary.ok else EXIT_FAILURES


if __name__ == "__main__":
    raise SystemExit(main())
