# tests/test_migrations.py
# -*- coding: utf-8 -*-
"""
Tests de la migration aller/retour et du DDL généré.

Ce fichier couvre :
- objets créés par upgrade (tables, index, vue) et types pré-remplis,
- upgrade rejouable sans doublon,
- downgrade qui ne laisse aucun objet, rejouable, suivi d'un nouvel upgrade,
- DDL des triggers updated_at (PostgreSQL, SQLite), générique, et ordre de suppression.
"""

import pytest
from sqlalchemy import create_engine, text

from cigcounter.persistence import schema
from cigcounter.persistence.migrations import TEARDOWN_TABLES, downgrade, upgrade


@pytest.fixture
def engine(tmp_path):
    eng = create_engine(f"sqlite:///{tmp_path / 'migrations.db'}", future=True)
    yield eng
    eng.dispose()


def sqlite_objects(eng):
    with eng.connect() as conn:
        rows = conn.execute(text(
            "SELECT type, name FROM sqlite_master "
            "WHERE name NOT LIKE 'sqlite_%' ORDER BY type, name"
        ))
        return [(r.type, r.name) for r in rows]


def type_rows(eng):
    with eng.connect() as conn:
        return [tuple(r) for r in conn.execute(text(
            "SELECT type_name, description FROM smoking_types ORDER BY id"
        ))]


# ---------------------------------------------------------------------
# UPGRADE
# ---------------------------------------------------------------------

def test_upgrade_creates_schema(engine):
    upgrade(engine)
    assert sqlite_objects(engine) == [
        ("index", "idx_smoking_logs_discord_id"),
        ("index", "idx_smoking_logs_smoked_at"),
        ("table", "smoking_logs"),
        ("table", "smoking_types"),
        ("table", "users"),
        ("trigger", "update_smoking_logs_updated_at"),
        ("trigger", "update_users_updated_at"),
        ("view", "daily_smoking_summary"),
    ]

def test_upgrade_seeds_exactly_two_types(engine):
    upgrade(engine)
    assert type_rows(engine) == [("traditional", "紙タバコ"), ("iqos", "IQOS")]

def test_upgrade_is_rerunnable(engine):
    upgrade(engine)
    upgrade(engine)
    assert type_rows(engine) == [("traditional", "紙タバコ"), ("iqos", "IQOS")]

def test_view_columns(engine):
    upgrade(engine)
    with engine.connect() as conn:
        cols = conn.execute(text("SELECT * FROM daily_smoking_summary")).keys()
    assert list(cols) == ["discord_id", "username", "smoke_date", "type_name", "total_quantity"]


# ---------------------------------------------------------------------
# DOWNGRADE
# ---------------------------------------------------------------------

def test_downgrade_leaves_nothing(engine):
    upgrade(engine)
    downgrade(engine)
    assert sqlite_objects(engine) == []

def test_downgrade_on_empty_database(engine):
    downgrade(engine)
    downgrade(engine)
    assert sqlite_objects(engine) == []

def test_setup_after_teardown(engine):
    upgrade(engine)
    with engine.begin() as conn:
        conn.execute(text("INSERT INTO users (discord_id, username) VALUES ('1', 'alice')"))
        conn.execute(text(
            "INSERT INTO smoking_logs (discord_id, smoking_type_id, quantity) VALUES ('1', 1, 2)"
        ))
    downgrade(engine)
    upgrade(engine)
    assert type_rows(engine) == [("traditional", "紙タバコ"), ("iqos", "IQOS")]
    with engine.connect() as conn:
        assert conn.execute(text("SELECT COUNT(*) FROM smoking_logs")).scalar() == 0

def test_teardown_table_order():
    assert TEARDOWN_TABLES == ("smoking_logs", "smoking_types", "users")


# ---------------------------------------------------------------------
# DDL GÉNÉRÉ
# ---------------------------------------------------------------------

def test_mutable_tables_are_the_timestamped_ones():
    tables = schema.mutable_tables()
    assert set(tables) == {"users", "smoking_logs"}
    # users avant smoking_logs (dépendance de clé étrangère)
    assert tables.index("users") < tables.index("smoking_logs")

def test_postgres_triggers_are_generated_per_mutable_table():
    stmts = schema.create_trigger_sql("postgresql")
    assert "CREATE OR REPLACE FUNCTION update_updated_at_column()" in stmts[0]
    assert "NEW.updated_at = CURRENT_TIMESTAMP" in stmts[0]
    creates = [s for s in stmts if s.startswith("CREATE TRIGGER")]
    assert len(creates) == 2
    assert any("update_users_updated_at BEFORE UPDATE ON users" in s for s in creates)
    assert any("update_smoking_logs_updated_at BEFORE UPDATE ON smoking_logs" in s for s in creates)

def test_postgres_drop_order():
    assert schema.drop_trigger_sql("postgresql") == [
        "DROP TRIGGER IF EXISTS update_smoking_logs_updated_at ON smoking_logs",
        "DROP TRIGGER IF EXISTS update_users_updated_at ON users",
        "DROP FUNCTION IF EXISTS update_updated_at_column()",
    ]

def test_postgres_drop_skips_missing_tables():
    assert schema.drop_trigger_sql("postgresql", existing_tables={"users"}) == [
        "DROP TRIGGER IF EXISTS update_users_updated_at ON users",
        "DROP FUNCTION IF EXISTS update_updated_at_column()",
    ]

def test_sqlite_triggers_are_generated_per_mutable_table():
    creates = [s for s in schema.create_trigger_sql("sqlite") if s.startswith("CREATE TRIGGER")]
    assert len(creates) == 2
    users = next(s for s in creates if " ON users " in s)
    assert users.startswith("CREATE TRIGGER update_users_updated_at AFTER UPDATE ON users")
    assert "WHEN NEW.updated_at IS OLD.updated_at" in users
    assert "WHERE rowid = NEW.rowid" in users
    assert schema.drop_trigger_sql("sqlite") == [
        "DROP TRIGGER IF EXISTS update_smoking_logs_updated_at",
        "DROP TRIGGER IF EXISTS update_users_updated_at",
    ]

def test_no_triggers_on_other_dialects():
    assert schema.create_trigger_sql("mysql") == []
    assert schema.drop_trigger_sql("mysql") == []

@pytest.mark.parametrize(
    "dialect,prefix",
    [
        ("postgresql", "CREATE OR REPLACE VIEW daily_smoking_summary AS"),
        ("sqlite", "CREATE VIEW IF NOT EXISTS daily_smoking_summary AS"),
    ],
)
def test_view_ddl(dialect, prefix):
    sql = schema.create_view_sql(dialect)
    assert sql.startswith(prefix)
    assert "SUM(sl.quantity) AS total_quantity" in sql
    assert "DATE(sl.smoked_at) AS smoke_date" in sql
