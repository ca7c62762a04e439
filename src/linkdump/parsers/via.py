from __future__ import annotations

from dataclasses import dataclass

from linkdump.utils.urls import is_absolute_url

FRIEND = "friend"
LINK = "link"
FREEFORM = "freeform"


@dataclass(frozen=True)
class Via:
    kind: str
    content: str
    friend_name: str | None = None
    friend_url: str | None = None


def parse_via(text: str) -> Via:
    """Classify a ``via:`` annotation.

    ``@name`` (optionally followed by the friend's URL) is a friend,
    an absolute URL is a link, anything else is kept as free text.
    """
    text = text.strip()
    if text.startswith("@"):
        name, _, rest = text[1:].partition(" ")
        url = rest.strip().strip("()<>").strip()
        return Via(
            kind=FRIEND,
            content=text,
            friend_name=name.strip() or None,
            friend_url=url if is_absolute_url(url) else None,
        )
    if is_absolute_url(text):
        return Via(kind=LINK, content=text)
    return Via(kind=FREEFORM, content=text)
