"""CLI for generating markdown documents from read links."""

from __future__ import annotations

import argparse
import sys

from linkdump.config.loaders import load_run_config
from linkdump.config.logging import setup_logging
from linkdump.config.settings import get_settings
from linkdump.db.session import open_store
from linkdump.errors import SchemaVersionMismatch
from linkdump.services.generate_service import GenerateService
from linkdump.services.selection import Selection

EXIT_FAILURES = 1
EXIT_SCHEMA = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Generate markdown documents for read links")
    parser.add_argument("--output", default=None, help="Directory to write documents into")
    parser.add_argument(
        "--selection",
        choices=[item.value for item in Selection],
        default=None,
        help="Which read links to render (default: unpublished)",
    )
    parser.add_argument("--tag", default=None, help="Tag for --selection tag")
    parser.add_argument(
        "--force",
        action="store_true",
        help="Re-stamp published_at on links that were already published",
    )
    parser.add_argument("--config", default=None, help="Run config (yaml/json)")
    parser.add_argument("--database-url", default=None, help="Override DATABASE_URL")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    setup_logging(settings.log_level)
    config = load_run_config(args.config)

    output = args.output or config.output
    if output is None:
        parser.error("--output is required")
    selection = Selection(args.selection) if args.selection else config.selection
    tag = args.tag or config.tag
    if selection is Selection.tag and not tag:
        parser.error("--selection tag requires --tag")
    force = args.force or config.force
    database_url = args.database_url or config.database_url or settings.resolved_database_url()

    try:
        with open_store(database_url) as session:
            result = GenerateService(settings).generate(
                session, output, selection=selection, tag=tag, force=force
            )
    except SchemaVersionMismatch as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_SCHEMA

    for skipped in result.skipped:
        print(f"skipped: {skipped}")
    for failure in result.failures:
        print(f"error: {failure}")
    print(
        f"Wrote {len(result.written)} documents to {output}, "
        f"marked {result.published} published"
    )
    return 0 if result.ok else EXIT_FAILURES


if __name__ == "__main__":
    raise SystemExit(main())
