from __future__ import annotations

from datetime import datetime, timedelta, timezone

from sqlalchemy import BigInteger
from sqlalchemy.types import TypeDecorator

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MILLISECOND = timedelta(milliseconds=1)


class EpochMillis(TypeDecorator):
    """UTC datetime stored as integer milliseconds since the epoch.

    Naive datetimes are taken to be UTC. Values always load as aware UTC
    datetimes.
    """

    impl = BigInteger
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return (value - _EPOCH) // _MILLISECOND

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return _EPOCH + timedelta(milliseconds=int(value))
