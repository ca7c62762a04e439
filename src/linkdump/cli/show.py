"""CLI for inspecting stored links."""

from __future__ import annotations

import argparse
import sys
from datetime import datetime

from linkdump.config.logging import setup_logging
from linkdump.config.settings import get_settings
from linkdump.db.models import Link
from linkdump.db.session import open_store
from linkdump.errors import SchemaVersionMismatch
from linkdump.parsers.via import parse_via
from linkdump.services.query_service import list_links

MODES = ("list", "metadata", "attributions")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Show stored links matching a URL glob")
    parser.add_argument("pattern", nargs="?", default="*", help="URL glob, e.g. '*github.com*'")
    parser.add_argument("--mode", choices=MODES, default="list")
    parser.add_argument("--tag", default=None, help="Only links with a tag matching this glob")
    parser.add_argument("--database-url", default=None, help="Override DATABASE_URL")
    return parser


def _stamp(value: datetime | None) -> str:
    return value.isoformat() if value else "-"


def format_link(link: Link, mode: str) -> str:
    if mode == "attributions":
        if not link.via:
            return f"{link.url}\tvia -"
        via = parse_via(link.via)
        return f"{link.url}\tvia {via.kind}: {via.content}"
    if mode == "metadata":
        lines = [
            link.url,
            f"  title: {link.title or '-'}",
            f"  tags: {', '.join(sorted(link.tag_set)) or '-'}",
            f"  via: {link.via or '-'}",
            f"  found_at: {_stamp(link.found_at)}",
            f"  read_at: {_stamp(link.read_at)}",
            f"  published_at: {_stamp(link.published_at)}",
            f"  from_filename: {link.from_filename or '-'}",
        ]
        lines.extend(f"  note: {note}" for note in link.note_lines)
        return "\n".join(lines)
    return f"{link.url}\t{link.title or ''}".rstrip()


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    setup_logging(settings.log_level)
    database_url = args.database_url or settings.resolved_database_url()

    try:
        with open_store(database_url) as session:
            links = list_links(session, args.pattern, tag=args.tag)
            for link in links:
                print(format_link(link, args.mode))
    except SchemaVersionMismatch as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    if not links:
        print("No links found", file=sys.stderr)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
