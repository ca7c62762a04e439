"""CLI listing every tag in the store."""

from __future__ import annotations

import argparse
import sys

from linkdump.config.logging import setup_logging
from linkdump.config.settings import get_settings
from linkdump.db.session import open_store
from linkdump.errors import SchemaVersionMismatch
from linkdump.services.query_service import all_tags


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Print every distinct tag, sorted")
    parser.add_argument("--database-url", default=None, help="Override DATABASE_URL")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    setup_logging(settings.log_level)

    try:
        with open_store(args.database_url or settings.resolved_database_url()) as session:
            tags = all_tags(session)
    except SchemaVersionMismatch as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    for tag in tags:
        print(tag)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
