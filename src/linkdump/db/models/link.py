from __future__ import annotations

from datetime import datetime
from typing import Iterable

from sqlalchemy import Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from linkdump.db.base import Base
from linkdump.db.types import EpochMillis

TAG_SEPARATOR = ","


def split_tags(raw: str | None) -> frozenset[str]:
    if not raw:
        return frozenset()
    return frozenset(tag.strip() for tag in raw.split(TAG_SEPARATOR) if tag.strip())


def join_tags(tags: Iterable[str]) -> str:
    return TAG_SEPARATOR.join(sorted(set(tags)))


class Link(Base):
    __tablename__ = "links"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    url: Mapped[str] = mapped_column(Text, unique=True)
    title: Mapped[str | None] = mapped_column(Text)
    tags: Mapped[str] = mapped_column(Text, default="", server_default="")
    via: Mapped[str | None] = mapped_column(Text)
    notes: Mapped[str | None] = mapped_column(Text)

    found_at: Mapped[datetime | None] = mapped_column(EpochMillis)
    read_at: Mapped[datetime | None] = mapped_column(EpochMillis, index=True)
    published_at: Mapped[datetime | None] = mapped_column(EpochMillis)

    from_filename: Mapped[str | None] = mapped_column(Text)
    image: Mapped[str | None] = mapped_column(Text)

    @property
    def tag_set(self) -> frozenset[str]:
        return split_tags(self.tags)

    @property
    def note_lines(self) -> list[str]:
        if not self.notes:
            return []
        return self.notes.split("\n")

    def __repr__(self) -> str:
        return f"Link(id={self.id!r}, url={self.url!r})"
