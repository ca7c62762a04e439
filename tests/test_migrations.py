import pytest
from sqlalchemy import inspect, text

from linkdump.db.migrate import apply_migrations, discover_migrations, read_database_version
from linkdump.db.session import create_store_engine, open_store
from linkdump.errors import SchemaVersionMismatch


@pytest.fixture
def engine(database_url):
    engine = create_store_engine(database_url)
    yield engine
    engine.dispose()


def test_discovers_contiguous_numbered_migrations():
    migrations = discover_migrations()
    assert [m.version for m in migrations] == list(range(1, len(migrations) + 1))
    assert migrations[0].name == "v0001_initial"


def test_fresh_store_is_migrated_to_latest(engine):
    latest = discover_migrations()[-1].version

    assert apply_migrations(engine) == latest

    with engine.connect() as connection:
        assert read_database_version(connection) == latest
        columns = {column["name"] for column in inspect(connection).get_columns("links")}
        rows = connection.execute(text("SELECT id, version FROM database_version")).all()
    assert "image" in columns
    assert rows == [(0, latest)]


def test_applying_twice_is_a_no_op(engine):
    first = apply_migrations(engine)
    assert apply_migrations(engine) == first


def test_partial_store_is_brought_forward(engine):
    migrations = discover_migrations()
    apply_migrations(engine, migrations[:1])
    with engine.connect() as connection:
        assert read_database_version(connection) == 1

    assert apply_migrations(engine, migrations) == migrations[-1].version


def test_newer_store_is_refused(engine, database_url):
    apply_migrations(engine)
    with engine.begin() as connection:
        connection.execute(text("UPDATE database_version SET version = 99 WHERE id = 0"))

    with pytest.raises(SchemaVersionMismatch) as excinfo:
        with open_store(database_url):
            pass
    assert excinfo.value.found == 99
    assert "upgrade" in str(excinfo.value)


def test_missing_version_table_reads_as_zero(engine):
    with engine.connect() as connection:
        assert read_database_version(connection) == 0
