import sqlite3

import pytest

from src.adapters.sqlite.migrator import SQLiteMigrator


@pytest.fixture
def temp_db_path(tmp_path):
    return str(tmp_path / "test_db.sqlite")


@pytest.fixture
def migrations_dir():
    # Real directory, so the actual SQL is exercised
    return "migrations"


def _tables(db_path):
    conn = sqlite3.connect(db_path)
    rows = conn.execute("SELECT name FROM sqlite_master WHERE type='table'").fetchall()
    conn.close()
    return {r[0] for r in rows}


def test_migrator_applies_initial(temp_db_path, migrations_dir):
    applied = SQLiteMigrator(temp_db_path, migrations_dir).run_migrations()

    assert "0001_initial.sql" in applied
    assert {
        "_migrations",
        "users",
        "blogs",
        "projects",
        "events",
        "event_participants",
        "comments",
        "likes",
    } <= _tables(temp_db_path)


def test_migrator_is_idempotent(temp_db_path, migrations_dir):
    migrator = SQLiteMigrator(temp_db_path, migrations_dir)

    migrator.run_migrations()
    assert migrator.run_migrations() == []

    conn = sqlite3.connect(temp_db_path)
    cursor = conn.execute("SELECT count(*) FROM _migrations WHERE filename='0001_initial.sql'")
    assert cursor.fetchone()[0] == 1
    conn.close()


def test_failed_migration_is_not_recorded(tmp_path, temp_db_path):
    bad = tmp_path / "bad_migrations"
    bad.mkdir()
    (bad / "0001_broken.sql").write_text("CREATE TABL nope;")

    with pytest.raises(RuntimeError, match="0001_broken.sql"):
        SQLiteMigrator(temp_db_path, bad).run_migrations()

    conn = sqlite3.connect(temp_db_path)
    assert conn.execute("SELECT count(*) FROM _migrations").fetchone()[0] == 0
    conn.close()


def test_schema_enforces_reviewer_status_pairing(temp_db_path, migrations_dir):
    SQLiteMigrator(temp_db_path, migrations_dir).run_migrations()
    conn = sqlite3.connect(temp_db_path)
    conn.execute(
        "INSERT INTO users (id, registration_number, fullname, username, email, password_hash, "
        "created_at, updated_at) VALUES ('u1', 'R1', 'A', 'a', 'a@x.com', 'h', 'now', 'now')"
    )
    with pytest.raises(sqlite3.IntegrityError):
        conn.execute(
            "INSERT INTO blogs (id, author_id, title, body, status, created_at, updated_at) "
            "VALUES ('b1', 'u1', 't', 'b', 'APPROVED', 'now', 'now')"
        )
    conn.close()
