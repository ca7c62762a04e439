"""Field-level merge of a parsed link into what the store already knows.

Everything here is pure: ``merge_link`` takes the stored state (or ``None``
for a URL never seen before) and a ``ParsedLink`` and returns the merged
state plus the names of the fields that changed. Applying that to a row is
the ingest service's job.

Policy, per field:

    title          filled only while the stored title is absent
    tags           union of stored and parsed tags, never shrinks
    notes          parsed notes win when non-empty and different
    via            parsed attribution wins when non-empty and different
    from_filename  always the document being ingested
    found_at       set once, on insert (or on a legacy row that lacks it)
    read_at        set once, when the merged link first has notes or tags

``published_at`` and ``image`` are never touched by ingestion.

A URL listed more than once in one document is first collapsed into a single
parsed link (``collapse_duplicates``) so a document merges the same way no
matter how many times it is ingested.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Iterable

from linkdump.parsers.markdown import ParsedLink
from linkdump.utils.clock import later_of

NOTE_SEPARATOR = "\n"


class MergeOutcome(str, Enum):
    inserted = "inserted"
    updated = "updated"
    unchanged = "unchanged"


@dataclass(frozen=True)
class LinkState:
    url: str
    title: str | None = None
    tags: frozenset[str] = field(default_factory=frozenset)
    via: str | None = None
    notes: str | None = None
    found_at: datetime | None = None
    read_at: datetime | None = None
    published_at: datetime | None = None
    from_filename: str | None = None

    @property
    def has_annotations(self) -> bool:
        return bool(self.notes or self.tags)


@dataclass(frozen=True)
class MergeResult:
    outcome: MergeOutcome
    state: LinkState
    changed: tuple[str, ...] = ()


def _fill_if_absent(stored: Any, parsed: Any) -> Any:
    return parsed if not stored and parsed else stored


def _union(stored: frozenset[str], parsed: frozenset[str]) -> frozenset[str]:
    return stored | parsed


def _replace_if_present(stored: Any, parsed: Any) -> Any:
    return parsed if parsed else stored


def _always(stored: Any, parsed: Any) -> Any:
    return parsed


FIELD_POLICIES: dict[str, Callable[[Any, Any], Any]] = {
    "title": _fill_if_absent,
    "tags": _union,
    "notes": _replace_if_present,
    "via": _replace_if_present,
    "from_filename": _always,
}


def collapse_duplicates(links: Iterable[ParsedLink]) -> list[ParsedLink]:
    """Fold repeated URLs into their first occurrence.

    Tags are unioned, notes concatenated in document order, the first title
    and the last attribution kept.
    """
    by_url: dict[str, ParsedLink] = {}
    for link in links:
        first = by_url.get(link.url)
        if first is None:
            by_url[link.url] = ParsedLink(
                url=link.url,
                title=link.title,
                notes=list(link.notes),
                tags=set(link.tags),
                via=link.via,
                line=link.line,
            )
            continue
        first.title = first.title or link.title
        first.notes.extend(link.notes)
        first.tags.update(link.tags)
        first.via = link.via or first.via
    return list(by_url.values())


def parsed_state(parsed: ParsedLink, source: str | None) -> LinkState:
    notes = NOTE_SEPARATOR.join(parsed.notes) if parsed.notes else None
    return LinkState(
        url=parsed.url,
        title=parsed.title or None,
        tags=frozenset(parsed.tags),
        via=parsed.via or None,
        notes=notes,
        from_filename=source,
    )


def merge_link(
    existing: LinkState | None,
    parsed: ParsedLink,
    *,
    source: str | None,
    now: datetime,
) -> MergeResult:
    incoming = parsed_state(parsed, source)

    if existing is None:
        state = replace(
            incoming,
            found_at=now,
            read_at=now if incoming.has_annotations else None,
        )
        return MergeResult(outcome=MergeOutcome.inserted, state=state)

    updates = {
        name: policy(getattr(existing, name), getattr(incoming, name))
        for name, policy in FIELD_POLICIES.items()
    }
    merged = replace(existing, **updates)
    if merged.found_at is None:
        merged = replace(merged, found_at=now)
    if merged.read_at is None and merged.has_annotations:
        merged = replace(merged, read_at=later_of(now, merged.found_at))

    changed = tuple(
        name
        for name in (*FIELD_POLICIES, "found_at", "read_at")
        if getattr(merged, name) != getattr(existing, name)
    )
    if not changed:
        return MergeResult(outcome=MergeOutcome.unchanged, state=existing)
    return MergeResult(outcome=MergeOutcome.updated, state=merged, changed=changed)
