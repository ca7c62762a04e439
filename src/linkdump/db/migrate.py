"""Numbered schema migrations.

Migration modules live in ``linkdump.db.migrations`` and are named
``vNNNN_<slug>``. Each one is written like an alembic revision file
(``revision``, ``down_revision``, ``upgrade()``) and runs against the alembic
``op`` proxy, but ordering and bookkeeping use the single-row
``database_version`` table instead of ``alembic_version``.
"""

from __future__ import annotations

import importlib
import logging
import pkgutil
import re
from dataclasses import dataclass
from types import ModuleType

from alembic.migration import MigrationContext
from alembic.operations import Operations
from sqlalchemy import Connection, Engine, inspect, select, update

from linkdump.db.models import DatabaseVersion
from linkdump.errors import SchemaVersionMismatch

logger = logging.getLogger(__name__)

MIGRATIONS_PACKAGE = "linkdump.db.migrations"
VERSION_ROW_ID = 0

_MODULE_NAME = re.compile(r"^v(?P<number>\d{4})_\w+$")


@dataclass(frozen=True)
class Migration:
    version: int
    name: str
    module: ModuleType

    def upgrade(self, connection: Connection) -> None:
        context = MigrationContext.configure(connection)
        with Operations.context(context):
            self.module.upgrade()


def discover_migrations(package: str = MIGRATIONS_PACKAGE) -> list[Migration]:
    root = importlib.import_module(package)
    migrations: list[Migration] = []
    for info in pkgutil.iter_modules(root.__path__):
        match = _MODULE_NAME.match(info.name)
        if not match:
            continue
        module = importlib.import_module(f"{package}.{info.name}")
        version = int(module.revision)
        if version != int(match.group("number")):
            raise RuntimeError(
                f"Migration {info.name} declares revision {module.revision}"
            )
        migrations.append(Migration(version=version, name=info.name, module=module))
    migrations.sort(key=lambda m: m.version)
    numbers = [m.version for m in migrations]
    if numbers != list(range(1, len(numbers) + 1)):
        raise RuntimeError(f"Migration numbers must be contiguous from 1, got {numbers}")
    return migrations


def read_database_version(connection: Connection) -> int:
    if not inspect(connection).has_table(DatabaseVersion.__tablename__):
        return 0
    stmt = select(DatabaseVersion.version).where(DatabaseVersion.id == VERSION_ROW_ID)
    return connection.execute(stmt).scalar_one_or_none() or 0


def _write_database_version(connection: Connection, version: int) -> None:
    table = DatabaseVersion.__table__
    result = connection.execute(
        update(table).where(table.c.id == VERSION_ROW_ID).values(version=version)
    )
    if result.rowcount == 0:
        connection.execute(table.insert().values(id=VERSION_ROW_ID, version=version))


def apply_migrations(engine: Engine, migrations: list[Migration] | None = None) -> int:
    if migrations is None:
        migrations = discover_migrations()
    supported = migrations[-1].version if migrations else 0

    with engine.connect() as connection:
        current = read_database_version(connection)
    if current > supported:
        raise SchemaVersionMismatch(found=current, supported=supported)

    for migration in migrations:
        if migration.version <= current:
            continue
        with engine.begin() as connection:
            migration.upgrade(connection)
            _write_database_version(connection, migration.version)
        logger.info("Applied migration %s", migration.name)
        current = migration.version
    return current
