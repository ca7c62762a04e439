from __future__ import annotations

import re
from typing import Any
from urllib.parse import parse_qsl, urlparse

_SLUG_STRIP = re.compile(r"[^a-z0-9]+")


def extract_domain(url: str) -> str:
    parsed = urlparse(url)
    host = (parsed.hostname or "").lower()
    if host.startswith("www."):
        host = host[4:]
    return host


def is_absolute_url(url: str | None) -> bool:
    if not url:
        return False
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return bool(parsed.scheme and parsed.netloc)


def fallback_title(url: str) -> str:
    """Readable stand-in title for a link that never got one: host plus path."""
    parsed = urlparse(url)
    path = parsed.path.rstrip("/")
    return f"{extract_domain(url)}{path}" or url


def slugify(value: str, max_length: int | None = None) -> str:
    slug = _SLUG_STRIP.sub("-", (value or "").strip().lower())
    slug = re.sub(r"-+", "-", slug).strip("-")
    if max_length is not None:
        slug = slug[:max_length].rstrip("-")
    return slug or "link"


def url_parts(url: str) -> dict[str, Any]:
    parsed = urlparse(url)
    return {
        "url": url,
        "host": parsed.hostname or "",
        "path": parsed.path,
        "path_segments": [segment for segment in parsed.path.split("/") if segment],
        "query": dict(parse_qsl(parsed.query)),
    }
