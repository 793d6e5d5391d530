# cigcounter/persistence/schema.py
# -*- coding: utf-8 -*-
"""
Objets SQL qui ne passent pas par les modèles ORM :
- la vue d'agrégat journalier `daily_smoking_summary`,
- la fonction + les triggers (PostgreSQL, SQLite) qui mettent à jour `updated_at`,
- les types de consommation pré-remplis.

Les triggers sont générés à partir des classes qui héritent de TimestampMixin :
une nouvelle table modifiable reçoit son trigger sans rien ajouter ici.
"""

from __future__ import annotations

from typing import List, Tuple

from cigcounter.persistence.models import Base, TimestampMixin

VIEW_NAME = "daily_smoking_summary"
TRIGGER_FUNCTION = "update_updated_at_column"

SEED_SMOKING_TYPES: Tuple[Tuple[str, str], ...] = (
    ("traditional", "紙タバコ"),
    ("iqos", "IQOS"),
)

_VIEW_SELECT = """
SELECT
    sl.discord_id,
    u.username,
    DATE(sl.smoked_at) AS smoke_date,
    st.type_name,
    SUM(sl.quantity) AS total_quantity
FROM smoking_logs sl
JOIN users u ON sl.discord_id = u.discord_id
JOIN smoking_types st ON sl.smoking_type_id = st.id
GROUP BY
    sl.discord_id,
    u.username,
    DATE(sl.smoked_at),
    st.type_name
"""


def mutable_tables() -> List[str]:
    """Tables dont la classe mappée hérite de TimestampMixin, dans l'ordre du metadata."""
    names = {
        m.local_table.name
        for m in Base.registry.mappers
        if issubclass(m.class_, TimestampMixin)
    }
    return [t.name for t in Base.metadata.sorted_tables if t.name in names]


def trigger_name(table: str) -> str:
    return f"update_{table}_updated_at"


def create_view_sql(dialect: str) -> str:
    if dialect == "postgresql":
        return f"CREATE OR REPLACE VIEW {VIEW_NAME} AS{_VIEW_SELECT}"
    return f"CREATE VIEW IF NOT EXISTS {VIEW_NAME} AS{_VIEW_SELECT}"


def drop_view_sql() -> str:
    return f"DROP VIEW IF EXISTS {VIEW_NAME}"


# Même format que le stockage DATETIME de SQLAlchemy (6 décimales), pour que la
# comparaison texte reste chronologique.
_SQLITE_NOW = "strftime('%Y-%m-%d %H:%M:%f', 'now') || '000'"


def _sqlite_trigger(table: str) -> str:
    # AFTER UPDATE : ne touche que les écritures qui n'ont pas fixé updated_at
    # elles-mêmes (le hook ORM le fait déjà). MAX() garde la colonne croissante.
    return (
        f"CREATE TRIGGER {trigger_name(table)} AFTER UPDATE ON {table} "
        f"FOR EACH ROW WHEN NEW.updated_at IS OLD.updated_at "
        f"BEGIN UPDATE {table} SET updated_at = MAX({_SQLITE_NOW}, COALESCE(OLD.updated_at, '')) "
        f"WHERE rowid = NEW.rowid; END"
    )


def create_trigger_sql(dialect: str) -> List[str]:
    """DDL des triggers updated_at (PostgreSQL et SQLite), un par table modifiable."""
    if dialect == "sqlite":
        stmts = []
        for table in mutable_tables():
            stmts.append(f"DROP TRIGGER IF EXISTS {trigger_name(table)}")
            stmts.append(_sqlite_trigger(table))
        return stmts
    if dialect != "postgresql":
        return []
    stmts = [
        f"""
CREATE OR REPLACE FUNCTION {TRIGGER_FUNCTION}()
RETURNS TRIGGER AS $$
BEGIN
    NEW.updated_at = CURRENT_TIMESTAMP;
    RETURN NEW;
END;
$$ language 'plpgsql'
"""
    ]
    for table in mutable_tables():
        stmts.append(f"DROP TRIGGER IF EXISTS {trigger_name(table)} ON {table}")
        stmts.append(
            f"CREATE TRIGGER {trigger_name(table)} BEFORE UPDATE ON {table} "
            f"FOR EACH ROW EXECUTE FUNCTION {TRIGGER_FUNCTION}()"
        )
    return stmts


def drop_trigger_sql(dialect: str, existing_tables=None) -> List[str]:
    """DROP TRIGGER échoue (PostgreSQL) si la table a déjà disparu : on filtre sur `existing_tables`."""
    if dialect == "sqlite":
        return [f"DROP TRIGGER IF EXISTS {trigger_name(table)}" for table in reversed(mutable_tables())]
    if dialect != "postgresql":
        return []
    # ordre inverse de la création, puis la fonction partagée
    stmts = [
        f"DROP TRIGGER IF EXISTS {trigger_name(table)} ON {table}"
        for table in reversed(mutable_tables())
        if existing_tables is None or table in existing_tables
    ]
    stmts.append(f"DROP FUNCTION IF EXISTS {TRIGGER_FUNCTION}()")
    return stmts
