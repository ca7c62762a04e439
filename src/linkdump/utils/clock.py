from __future__ import annotations

from datetime import datetime, timezone


def utc_now() -> datetime:
    # Stored timestamps keep millisecond precision; match it here so values
    # compare equal after a round trip through the database.
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def later_of(now: datetime, floor: datetime | None) -> datetime:
    if floor is not None and floor > now:
        return floor
    return now
