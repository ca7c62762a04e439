from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable

from sqlalchemy.orm import Session

from linkdump.config.settings import Settings
from linkdump.db.models import Link
from linkdump.errors import IOFailure, RenderIncompleteLink
from linkdump.render.frontmatter import render_link
from linkdump.services.friend_service import friend_for_link
from linkdump.services.selection import Selection, selection_query
from linkdump.utils.clock import later_of, utc_now

logger = logging.getLogger(__name__)


@dataclass
class GenerateResult:
    written: list[Path] = field(default_factory=list)
    skipped: list[RenderIncompleteLink] = field(default_factory=list)
    failures: list[IOFailure] = field(default_factory=list)
    published: int = 0

    @property
    def ok(self) -> bool:
        return not self.failures


def write_document(path: Path, text: str) -> None:
    """Write through a temp file in the same directory so readers never see half a file."""
    fd, tmp_name = tempfile.mkstemp(prefix=".linkdump-", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


class GenerateService:
    def __init__(self, settings: Settings, clock: Callable[[], datetime] = utc_now) -> None:
        self._settings = settings
        self._clock = clock

    def select(self, session: Session, selection: Selection, tag: str | None = None) -> list[Link]:
        return list(session.execute(selection_query(selection, tag)).scalars())

    def generate(
        self,
        session: Session,
        output_dir: str | Path,
        selection: Selection = Selection.unpublished,
        tag: str | None = None,
        force: bool = False,
    ) -> GenerateResult:
        output_dir = Path(output_dir)
        result = GenerateResult()
        links = self.select(session, selection, tag)
        now = self._clock()
        to_stamp: list[tuple[Link, datetime]] = []

        try:
            output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            result.failures.append(IOFailure(output_dir, str(exc)))
            logger.error("Cannot create output directory %s: %s", output_dir, exc)
            return result

        for link in links:
            restamp = force or link.published_at is None
            stamp = later_of(now, link.read_at) if restamp else link.published_at
            try:
                document = render_link(
                    link,
                    published_at=stamp,
                    settings=self._settings,
                    friend=friend_for_link(session, link.via),
                )
            except RenderIncompleteLink as exc:
                logger.warning("Skipping link %s: %s", link.id, exc)
                result.skipped.append(exc)
                continue

            path = output_dir / document.filename
            try:
                write_document(path, document.text)
            except OSError as exc:
                logger.error("Failed to write %s: %s", path, exc)
                result.failures.append(IOFailure(path, str(exc)))
                continue
            result.written.append(path)
            if restamp:
                to_stamp.append((link, stamp))

        if result.failures:
            session.rollback()
            logger.error(
                "%s of %s documents failed to write; not marking any link published",
                len(result.failures),
                len(links),
            )
            return result

        for link, stamp in to_stamp:
            link.published_at = stamp
        session.commit()
        result.published = len(to_stamp)
        logger.info(
            "Generated %s documents in %s, %s newly published",
            len(result.written),
            output_dir,
            result.published,
        )
        return result
