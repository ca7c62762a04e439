from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from linkdump.db.models import Link, join_tags, split_tags
from linkdump.errors import ConstraintViolation, IOFailure, LinkdumpError, StoreError
from linkdump.parsers.markdown import LinkDump, ParseWarning
from linkdump.services.friend_service import resolve_friend
from linkdump.services.merge import LinkState, MergeOutcome, collapse_duplicates, merge_link
from linkdump.utils.clock import utc_now

logger = logging.getLogger(__name__)

MARKDOWN_SUFFIX = ".md"
_UNIQUE_FAILED = re.compile(r"UNIQUE constraint failed: (?P<key>[\w.]+)")


@dataclass
class DocumentResult:
    source: str
    inserted: int = 0
    updated: int = 0
    unchanged: int = 0
    skipped: int = 0
    warnings: list[ParseWarning] = field(default_factory=list)

    def count(self, outcome: MergeOutcome) -> None:
        setattr(self, outcome.value, getattr(self, outcome.value) + 1)


@dataclass
class IngestSummary:
    documents: list[DocumentResult] = field(default_factory=list)
    failures: list[LinkdumpError] = field(default_factory=list)

    @property
    def inserted(self) -> int:
        return sum(doc.inserted for doc in self.documents)

    @property
    def updated(self) -> int:
        return sum(doc.updated for doc in self.documents)

    @property
    def unchanged(self) -> int:
        return sum(doc.unchanged for doc in self.documents)

    @property
    def skipped(self) -> int:
        return sum(doc.skipped for doc in self.documents)

    @property
    def warnings(self) -> list[ParseWarning]:
        return [warning for doc in self.documents for warning in doc.warnings]

    @property
    def ok(self) -> bool:
        return not self.failures


def link_state(row: Link) -> LinkState:
    return LinkState(
        url=row.url,
        title=row.title,
        tags=split_tags(row.tags),
        via=row.via,
        notes=row.notes,
        found_at=row.found_at,
        read_at=row.read_at,
        published_at=row.published_at,
        from_filename=row.from_filename,
    )


def _apply_state(row: Link, state: LinkState, fields: Iterable[str]) -> None:
    for name in fields:
        value = getattr(state, name)
        if name == "tags":
            value = join_tags(value)
        setattr(row, name, value)


def constraint_key(exc: IntegrityError) -> str | None:
    """``table.column`` named by the driver's unique-constraint message, if any."""
    match = _UNIQUE_FAILED.search(str(exc.orig))
    return match.group("key") if match else None


def find_markdown_files(paths: Iterable[str | Path]) -> tuple[list[Path], list[IOFailure]]:
    """Expand CLI paths: files are taken as given, directories are searched for *.md."""
    files: list[Path] = []
    missing: list[IOFailure] = []
    for raw in paths:
        path = Path(raw).expanduser()
        if path.is_dir():
            files.extend(sorted(p for p in path.rglob(f"*{MARKDOWN_SUFFIX}") if p.is_file()))
        elif path.exists():
            files.append(path)
        else:
            missing.append(IOFailure(path, "no such file or directory"))
    return files, missing


class IngestService:
    def __init__(self, clock: Callable[[], datetime] = utc_now) -> None:
        self._clock = clock

    def _lookup(self, session: Session, url: str) -> Link | None:
        return session.execute(select(Link).where(Link.url == url)).scalar_one_or_none()

    def ingest_text(self, session: Session, text: str, source: str | None) -> DocumentResult:
        """Merge one document into the store as a single transaction."""
        label = source or "<text>"
        result = DocumentResult(source=label)
        links, warnings = LinkDump(text, filename=source).parse()
        links = collapse_duplicates(links)
        result.warnings = warnings
        result.skipped = len(warnings)
        now = self._clock()

        current_url = None
        try:
            for parsed in links:
                current_url = parsed.url
                row = self._lookup(session, parsed.url)
                existing = link_state(row) if row is not None else None
                merged = merge_link(existing, parsed, source=source, now=now)
                result.count(merged.outcome)
                if merged.outcome is MergeOutcome.inserted:
                    row = Link(url=parsed.url)
                    _apply_state(
                        row,
                        merged.state,
                        ("title", "tags", "via", "notes", "found_at", "read_at", "from_filename"),
                    )
                    session.add(row)
                elif merged.outcome is MergeOutcome.updated:
                    _apply_state(row, merged.state, merged.changed)
                resolve_friend(session, parsed.via)
                session.flush()
            current_url = None
            session.commit()
        except IntegrityError as exc:
            session.rollback()
            key = constraint_key(exc) or "links.url"
            value = current_url if key == "links.url" else None
            raise ConstraintViolation(key, value or "") from exc
        except Exception:
            session.rollback()
            raise

        logger.info(
            "Ingested %s: inserted=%s updated=%s unchanged=%s skipped=%s",
            label,
            result.inserted,
            result.updated,
            result.unchanged,
            result.skipped,
        )
        return result

    def ingest_file(self, session: Session, path: str | Path) -> DocumentResult:
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise IOFailure(path, str(exc)) from exc
        return self.ingest_text(session, text, source=str(path))

    def ingest_paths(self, session: Session, paths: Iterable[str | Path]) -> IngestSummary:
        files, missing = find_markdown_files(paths)
        summary = IngestSummary(failures=list(missing))
        for failure in missing:
            logger.error("Cannot read %s", failure)

        for path in files:
            try:
                summary.documents.append(self.ingest_file(session, path))
            except (IOFailure, ConstraintViolation) as exc:
                logger.error("Skipped %s: %s", path, exc)
                summary.failures.append(exc)
            except SQLAlchemyError as exc:
                logger.error("Storage error while ingesting %s: %s", path, exc)
                summary.failures.append(StoreError(path, str(exc)))
        return summary
