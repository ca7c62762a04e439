"""Line scanner for markdown link dumps.

A link dump is a bulleted list of links, each optionally followed by nested
annotation bullets::

    * [Foo](http://x.test "Foo")
        - via: @someone
        - tags: a, b
        - notes:
            - first note line
            - second note line

The scanner walks the text once, tracking indentation, and emits tagged
events (``Bullet``, ``NoteLine``, ``TagLine``, ``ViaLine``, ``ParseWarning``).
The assembler groups those events into ``ParsedLink`` records.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterator, Union

from linkdump.utils.urls import is_absolute_url

TAB_WIDTH = 4
# Bullets indented less than this are top-level links.
NESTED_INDENT = 2

_BULLET = re.compile(r"^(?P<indent> *)(?P<marker>[-*+])(?: +(?P<body>.*))?$")
_LABEL = re.compile(r"^(?P<key>[A-Za-z_]+)\s*:\s*(?P<rest>.*)$")
_LEADING_MARKER = re.compile(r"^[-*+]\s+")
_FENCE = re.compile(r"^(?:```|~~~)")
_THEMATIC_BREAK = re.compile(r"^ {0,3}(?P<char>[-*_])(?: *(?P=char)){2,}$")
_PLAIN_LINK = re.compile(
    r"^(?:(?P<title>.*?\S)\s*(?::|\s-|\s–)\s+)?"
    r"<?(?P<url>[A-Za-z][A-Za-z0-9+.\-]*://\S+?)>?$"
)

_LABEL_KINDS = {
    "notes": "notes",
    "note": "notes",
    "tags": "tags",
    "tag": "tags",
    "via": "via",
}


@dataclass
class ParsedLink:
    url: str
    title: str | None = None
    notes: list[str] = field(default_factory=list)
    tags: set[str] = field(default_factory=set)
    via: str | None = None
    line: int = 0

    @property
    def has_annotations(self) -> bool:
        return bool(self.notes or self.tags)


@dataclass(frozen=True)
class ParseWarning:
    line: int
    reason: str
    text: str
    filename: str | None = None

    def __str__(self) -> str:
        where = f"{self.filename}:{self.line}" if self.filename else f"line {self.line}"
        return f"{where}: {self.reason}: {self.text}"


@dataclass(frozen=True)
class Bullet:
    line: int
    url: str
    title: str | None


@dataclass(frozen=True)
class NoteLine:
    line: int
    text: str


@dataclass(frozen=True)
class TagLine:
    line: int
    tags: tuple[str, ...]


@dataclass(frozen=True)
class ViaLine:
    line: int
    text: str


Event = Union[Bullet, NoteLine, TagLine, ViaLine, ParseWarning]


def split_tag_text(text: str) -> tuple[str, ...]:
    seen: dict[str, None] = {}
    for item in text.split(","):
        tag = item.strip().lower()
        if tag:
            seen[tag] = None
    return tuple(seen)


def _closing_index(text: str, start: int, opener: str, closer: str) -> int | None:
    depth = 0
    escaped = False
    for index in range(start, len(text)):
        ch = text[index]
        if escaped:
            escaped = False
            continue
        if ch == "\\":
            escaped = True
        elif ch == opener:
            depth += 1
        elif ch == closer:
            depth -= 1
            if depth == 0:
                return index
    return None


def _parse_destination(destination: str) -> str:
    destination = destination.strip()
    if destination.startswith("<"):
        end = destination.find(">")
        return destination[1:end] if end != -1 else destination[1:]
    return destination.split(maxsplit=1)[0] if destination else ""


def _parse_anchor(body: str) -> tuple[str, str | None] | None:
    position = body.find("[")
    while position != -1:
        label_end = _closing_index(body, position, "[", "]")
        if label_end is None:
            return None
        if label_end + 1 < len(body) and body[label_end + 1] == "(":
            dest_end = _closing_index(body, label_end + 1, "(", ")")
            if dest_end is not None:
                url = _parse_destination(body[label_end + 2 : dest_end])
                title = body[position + 1 : label_end].strip() or None
                return url, title
        position = body.find("[", label_end + 1)
    return None


def parse_link_text(body: str) -> tuple[str, str | None] | str:
    """Return ``(url, title)`` for a top-level bullet, or a reason string."""
    parsed = _parse_anchor(body)
    if parsed is None:
        match = _PLAIN_LINK.match(body.strip())
        if match is None:
            return "no link found"
        parsed = (match.group("url"), match.group("title"))
    url, title = parsed
    if not is_absolute_url(url):
        return "unparsable URL"
    return url, (title.strip() if title else None) or None


def is_fence(line: str) -> bool:
    return bool(_FENCE.match(line.strip()))


def _scan(text: str, filename: str | None = None) -> Iterator[Event]:
    link_open = False
    skipping = False
    block: str | None = None
    block_indent = 0
    # Indent of the first line inside a notes block; code lines keep anything deeper.
    note_indent = 0
    fenced = False

    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.expandtabs(TAB_WIDTH).rstrip()
        indent = len(line) - len(line.lstrip(" "))

        if fenced:
            if not line.strip():
                yield NoteLine(line=lineno, text="")
                continue
            if indent > block_indent:
                yield NoteLine(line=lineno, text=line[min(indent, note_indent) :])
                fenced = not is_fence(line)
                continue
            fenced = False

        if not line.strip():
            continue
        bullet = _BULLET.match(line)

        if indent < NESTED_INDENT:
            block = None
            if bullet is None or _THEMATIC_BREAK.match(line):
                link_open = skipping = False
                continue
            body = (bullet.group("body") or "").strip()
            parsed = parse_link_text(body)
            if isinstance(parsed, str):
                link_open, skipping = False, True
                yield ParseWarning(line=lineno, reason=parsed, text=body, filename=filename)
                continue
            link_open, skipping = True, False
            yield Bullet(line=lineno, url=parsed[0], title=parsed[1])
            continue

        if skipping or not link_open:
            continue

        content = (bullet.group("body") or "").strip() if bullet else line.strip()
        if block is not None and indent > block_indent:
            if block == "notes":
                if note_indent <= block_indent:
                    note_indent = indent
                if is_fence(line):
                    fenced = True
                    yield NoteLine(line=lineno, text=line[min(indent, note_indent) :])
                elif content:
                    yield NoteLine(line=lineno, text=content)
            elif block == "tags":
                tags = split_tag_text(content)
                if tags:
                    yield TagLine(line=lineno, tags=tags)
            continue

        if bullet is None:
            continue

        block_indent = note_indent = indent
        label = _LABEL.match(content)
        block = _LABEL_KINDS.get(label.group("key").lower()) if label else None
        # Unknown labels still open a block so their children are skipped.
        if block is None:
            block = "ignored"
            continue
        rest = label.group("rest").strip()
        if block == "via":
            if rest:
                yield ViaLine(line=lineno, text=rest)
        elif block == "tags":
            tags = split_tag_text(rest)
            if tags:
                yield TagLine(line=lineno, tags=tags)
        elif rest:
            yield NoteLine(line=lineno, text=_LEADING_MARKER.sub("", rest))


def _assemble(events: Iterator[Event]) -> Iterator[ParsedLink | ParseWarning]:
    current: ParsedLink | None = None
    for event in events:
        if isinstance(event, (Bullet, ParseWarning)):
            if current is not None:
                yield current
                current = None
            if isinstance(event, ParseWarning):
                yield event
            else:
                current = ParsedLink(url=event.url, title=event.title, line=event.line)
        elif current is None:
            continue
        elif isinstance(event, NoteLine):
            current.notes.append(event.text)
        elif isinstance(event, TagLine):
            current.tags.update(event.tags)
        elif isinstance(event, ViaLine):
            current.via = event.text
    if current is not None:
        yield current


class LinkDump:
    """A link-dump document. Iterating it re-scans the text from the top."""

    def __init__(self, text: str, filename: str | None = None) -> None:
        self.text = text
        self.filename = filename

    def _items(self) -> Iterator[ParsedLink | ParseWarning]:
        return _assemble(_scan(self.text, self.filename))

    def __iter__(self) -> Iterator[ParsedLink]:
        for item in self._items():
            if isinstance(item, ParsedLink):
                yield item

    @property
    def warnings(self) -> list[ParseWarning]:
        return [item for item in self._items() if isinstance(item, ParseWarning)]

    def parse(self) -> tuple[list[ParsedLink], list[ParseWarning]]:
        links: list[ParsedLink] = []
        warnings: list[ParseWarning] = []
        for item in self._items():
            if isinstance(item, ParseWarning):
                warnings.append(item)
            else:
                links.append(item)
        return links, warnings


def parse_links(text: str) -> list[ParsedLink]:
    return list(LinkDump(text))
