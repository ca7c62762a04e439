from __future__ import annotations

from fnmatch import fnmatchcase

from sqlalchemy import select
from sqlalchemy.orm import Session

from linkdump.db.models import Link, split_tags


def list_links(session: Session, pattern: str = "*", tag: str | None = None) -> list[Link]:
    """Links whose URL matches ``pattern`` and, if given, carrying a tag matching ``tag``.

    Both are shell-style globs, matched case-sensitively for URLs and against
    the lower-cased tag set for tags.
    """
    stmt = select(Link).order_by(Link.found_at.asc(), Link.id.asc())
    tag_glob = tag.lower() if tag else None
    matched: list[Link] = []
    for link in session.execute(stmt).scalars():
        if not fnmatchcase(link.url, pattern or "*"):
            continue
        if tag_glob and not any(fnmatchcase(name, tag_glob) for name in split_tags(link.tags)):
            continue
        matched.append(link)
    return matched


def all_tags(session: Session) -> list[str]:
    tags: set[str] = set()
    for raw in session.execute(select(Link.tags)).scalars():
        tags.update(split_tags(raw))
    return sorted(tags)
