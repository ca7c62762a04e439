from __future__ import annotations

import hashlib
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import yaml

from linkdump.config.settings import Settings
from linkdump.db.models import Friend, Link
from linkdump.errors import RenderIncompleteLink
from linkdump.parsers.markdown import is_fence
from linkdump.parsers.via import parse_via
from linkdump.utils.urls import fallback_title, is_absolute_url, slugify, url_parts

FRONTMATTER_FENCE = "---"
DATE_FORMAT = "%Y-%m-%d"
SLUG_MAX_LENGTH = 100
URL_DIGEST_LENGTH = 10


@dataclass(frozen=True)
class RenderedDocument:
    url: str
    filename: str
    frontmatter: dict[str, Any]
    body: str

    @property
    def text(self) -> str:
        header = yaml.safe_dump(
            self.frontmatter, sort_keys=False, allow_unicode=True, default_flow_style=False
        )
        document = f"{FRONTMATTER_FENCE}\n{header}{FRONTMATTER_FENCE}\n"
        if self.body:
            document += f"\n{self.body}\n"
        return document


def document_filename(url: str) -> str:
    """Capped slug of the URL plus a digest of the exact URL, so distinct URLs never share a file."""
    digest = hashlib.sha1(url.encode("utf-8")).hexdigest()[:URL_DIGEST_LENGTH]
    return f"{slugify(url, max_length=SLUG_MAX_LENGTH)}-{digest}.md"


def _format_date(value: datetime | None) -> str | None:
    return value.strftime(DATE_FORMAT) if value else None


def _via_block(via_text: str | None, friend: Friend | None) -> dict[str, Any] | None:
    if not via_text:
        return None
    via = parse_via(via_text)
    block: dict[str, Any] = {"type": via.kind, "content": via.content}
    friend_url = (friend.url if friend is not None else None) or via.friend_url
    if friend_url:
        block["url"] = friend_url
    return block


def render_body(notes: str | None) -> str:
    """One paragraph per stored note line; fenced code stays together, indentation intact."""
    if not notes:
        return ""
    blocks: list[str] = []
    code: list[str] | None = None
    for line in notes.split("\n"):
        if code is not None:
            code.append(line)
            if is_fence(line):
                blocks.append("\n".join(code))
                code = None
        elif is_fence(line):
            code = [line]
        elif line.strip():
            blocks.append(line)
    if code is not None:
        blocks.append("\n".join(code))
    return "\n\n".join(blocks)


def render_link(
    link: Link,
    *,
    published_at: datetime | None,
    settings: Settings,
    friend: Friend | None = None,
) -> RenderedDocument:
    """Build the frontmatter and body for one stored link.

    ``published_at`` is the stamp the link will carry once the batch is
    committed; it drives the ``date`` field unless the settings ask for
    ``found_at``.
    """
    if not link.url or not link.url.strip():
        raise RenderIncompleteLink(link.url or "", "link has no URL")
    if not is_absolute_url(link.url):
        raise RenderIncompleteLink(link.url, "URL has no scheme or host")

    display_title = link.title or fallback_title(link.url)
    if settings.date_source == "found_at":
        date = link.found_at or published_at
    else:
        date = published_at or link.found_at

    frontmatter: dict[str, Any] = {
        "title": f"{settings.title_prefix}{display_title}",
        "slug": slugify(display_title, max_length=SLUG_MAX_LENGTH),
        "date": _format_date(date),
        "taxonomies": {"tags": sorted(link.tag_set)},
        "extra": {
            "title": link.title,
            "url": url_parts(link.url),
            "via": _via_block(link.via, friend),
            "found_at": _format_date(link.found_at),
            "read_at": _format_date(link.read_at),
            "published_at": _format_date(published_at),
            "from_filename": link.from_filename,
            "image": link.image,
        },
    }
    return RenderedDocument(
        url=link.url,
        filename=document_filename(link.url),
        frontmatter=frontmatter,
        body=render_body(link.notes),
    )
