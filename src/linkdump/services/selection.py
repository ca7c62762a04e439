from __future__ import annotations

from enum import Enum

from sqlalchemy import Select, literal, select

from linkdump.db.models import Link


class Selection(str, Enum):
    unpublished = "unpublished"
    read = "read"
    tag = "tag"


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def selection_query(selection: Selection, tag: str | None = None) -> Select:
    """Links eligible for generation. Only read links are ever selected."""
    stmt = select(Link).where(Link.read_at.is_not(None))
    if selection is Selection.unpublished:
        stmt = stmt.where(Link.published_at.is_(None))
    elif selection is Selection.tag:
        needle = (tag or "").strip().lower()
        if not needle:
            raise ValueError("tag selection requires a tag")
        wrapped = literal(",") + Link.tags + literal(",")
        stmt = stmt.where(wrapped.like(f"%,{_escape_like(needle)},%", escape="\\"))
    return stmt.order_by(Link.found_at.asc(), Link.id.asc())
