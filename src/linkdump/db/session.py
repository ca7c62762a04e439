from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from sqlalchemy import Engine, create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker

from linkdump.db.migrate import apply_migrations

logger = logging.getLogger(__name__)


def create_store_engine(database_url: str) -> Engine:
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite" and url.database not in (None, "", ":memory:"):
        Path(url.database).expanduser().parent.mkdir(parents=True, exist_ok=True)
    return create_engine(url)


@contextmanager
def open_store(database_url: str) -> Iterator[Session]:
    """Open the link store for the length of one invocation.

    Pending migrations are applied first; a store newer than this program
    raises SchemaVersionMismatch before anything is written. The session and
    engine are released on every exit path.
    """
    engine = create_store_engine(database_url)
    try:
        version = apply_migrations(engine)
        logger.debug("Opened store %s at schema version %s", engine.url, version)
        session_factory = sessionmaker(autoflush=False, autocommit=False, bind=engine)
        with session_factory() as session:
            yield session
    finally:
        engine.dispose()
