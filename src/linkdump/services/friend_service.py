from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from linkdump.db.models import Friend
from linkdump.errors import ConstraintViolation
from linkdump.parsers.via import FRIEND, parse_via

logger = logging.getLogger(__name__)


def get_friend(session: Session, name: str) -> Friend | None:
    return session.execute(select(Friend).where(Friend.name == name)).scalar_one_or_none()


def create_friend(session: Session, name: str, url: str | None = None) -> Friend:
    if get_friend(session, name) is not None:
        raise ConstraintViolation("friends.name", name)
    row = Friend(name=name, url=url or "")
    session.add(row)
    try:
        session.flush()
    except IntegrityError as exc:
        raise ConstraintViolation("friends.name", name) from exc
    return row


def resolve_friend(session: Session, via_text: str | None) -> Friend | None:
    """Get or create the friend a ``via: @name`` annotation points at.

    Existing friends are never overwritten; only an empty stored URL is
    filled in.
    """
    if not via_text:
        return None
    via = parse_via(via_text)
    if via.kind != FRIEND or not via.friend_name:
        return None
    friend = get_friend(session, via.friend_name)
    if friend is None:
        return create_friend(session, via.friend_name, via.friend_url)
    if via.friend_url and friend.url != via.friend_url:
        if friend.url:
            logger.warning(
                "Friend %s already has url %s; ignoring %s",
                friend.name,
                friend.url,
                via.friend_url,
            )
        else:
            friend.url = via.friend_url
    return friend


def friend_for_link(session: Session, via_text: str | None) -> Friend | None:
    if not via_text:
        return None
    via = parse_via(via_text)
    if via.kind != FRIEND or not via.friend_name:
        return None
    return get_friend(session, via.friend_name)


def list_friends(session: Session) -> list[Friend]:
    return list(session.execute(select(Friend).order_by(Friend.name)).scalars())
