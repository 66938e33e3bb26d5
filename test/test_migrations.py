import sqlite3
from pathlib import Path

import pytest

from conftest import ADMIN, build, seed_basics

from ils.repositories.sqlite_repo import SqliteRepository


def test_migrations_create_schema_and_are_repeatable(tmp_path: Path):
    repo = SqliteRepository(tmp_path / "m.db")
    repo.init_db()
    repo.init_db()

    conn = repo._conn()
    cur = conn.cursor()
    cur.execute("SELECT name FROM sqlite_master WHERE type='table'")
    tables = {r[0] for r in cur.fetchall()}
    cur.execute("SELECT version FROM schema_migrations ORDER BY version")
    versions = [r[0] for r in cur.fetchall()]
    conn.close()

    assert {"customers", "products", "orders", "revenue"} <= tables
    assert versions == [1, 2]


def test_constraints_reject_inconsistent_status(tmp_path: Path):
    repo = SqliteRepository(tmp_path / "c.db")
    repo.init_db()

    conn = repo._conn()
    with pytest.raises(sqlite3.IntegrityError):
        conn.execute(
            "INSERT INTO products (id, name, category, price_cents, stock, status) VALUES ('x', 'x', 'snacks', 100, 0, 'in-stock')"
        )
    with pytest.raises(sqlite3.IntegrityError):
        conn.execute(
            "INSERT INTO products (id, name, category, price_cents, stock, status) VALUES ('y', 'y', 'snacks', 100, -1, 'out-of-stock')"
        )
    conn.close()


def test_migration_failure_restores_db(tmp_path: Path):
    class BrokenMigrationRepo(SqliteRepository):
        def _migration_v2_lookup_indexes(self, cur):
            raise RuntimeError("forced migration failure")

    db = tmp_path / "broken.db"
    repo = SqliteRepository(db)
    repo.init_db()

    conn = repo._conn()
    cur = conn.cursor()
    cur.execute("DELETE FROM schema_migrations WHERE version = 2")
    conn.commit()
    cur.execute("SELECT COALESCE(MAX(version), 0) FROM schema_migrations")
    before = int(cur.fetchone()[0])
    conn.close()

    broken = BrokenMigrationRepo(db)

    with pytest.raises(RuntimeError, match="Original database restored"):
        broken.run_migrations()

    conn = repo._conn()
    cur = conn.cursor()
    cur.execute("SELECT COALESCE(MAX(version), 0) FROM schema_migrations")
    after = int(cur.fetchone()[0])
    conn.close()

    assert after == before


def test_current_schema_takes_no_backup(tmp_path: Path):
    app = build(tmp_path)
    cid, product = seed_basics(app)
    app.orders.place_order(ADMIN, cid, product.id, 1, "paid")

    build(tmp_path)
    build(tmp_path)

    assert list(tmp_path.glob("*.bak")) == []


def test_pending_migration_backs_up_first(tmp_path: Path):
    db = tmp_path / "pending.db"
    repo = SqliteRepository(db)
    repo.init_db()

    conn = repo._conn()
    conn.execute("DELETE FROM schema_migrations WHERE version = 2")
    conn.commit()
    conn.close()

    repo.run_migrations()

    conn = repo._conn()
    versions = [r[0] for r in conn.execute("SELECT version FROM schema_migrations ORDER BY version")]
    conn.close()

    assert versions == [1, 2]
    assert len(list(tmp_path.glob("pending.pre_migration_*.bak"))) == 1
