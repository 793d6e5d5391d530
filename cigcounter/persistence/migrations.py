# cigcounter/persistence/migrations.py
# -*- coding: utf-8 -*-
"""
Migration unique du schéma (aller / retour).

upgrade()   : tables + index, types pré-remplis, triggers updated_at, vue.
downgrade() : vue, triggers, fonction partagée, index, puis tables
              (smoking_logs -> smoking_types -> users).

Les deux sont rejouables : upgrade n'insère que les types absents,
downgrade utilise IF EXISTS partout.
"""

from __future__ import annotations

import logging

from sqlalchemy import inspect, insert, select

from cigcounter.persistence.models import Base, SmokingLog, SmokingType, User
from cigcounter.persistence import schema

logger = logging.getLogger(__name__)

TEARDOWN_TABLES = (
    SmokingLog.__tablename__,
    SmokingType.__tablename__,
    User.__tablename__,
)


def _index_names():
    return sorted(
        (idx.name for table in Base.metadata.sorted_tables for idx in table.indexes),
        reverse=True,
    )


def seed_smoking_types(conn) -> int:
    """Insère les types manquants. Retourne le nombre de lignes ajoutées."""
    table = SmokingType.__table__
    present = set(conn.scalars(select(table.c.type_name)))
    rows = [
        {"type_name": name, "description": desc}
        for name, desc in schema.SEED_SMOKING_TYPES
        if name not in present
    ]
    if rows:
        conn.execute(insert(table), rows)
    return len(rows)


def upgrade(bind) -> None:
    dialect = bind.dialect.name
    with bind.begin() as conn:
        Base.metadata.create_all(conn)
        added = seed_smoking_types(conn)
        for stmt in schema.create_trigger_sql(dialect):
            conn.exec_driver_sql(stmt)
        conn.exec_driver_sql(schema.create_view_sql(dialect))
    logger.info("upgrade OK (%s) : %d type(s) ajouté(s)", dialect, added)


def downgrade(bind) -> None:
    dialect = bind.dialect.name
    with bind.begin() as conn:
        conn.exec_driver_sql(schema.drop_view_sql())
        existing = set(inspect(conn).get_table_names())
        for stmt in schema.drop_trigger_sql(dialect, existing):
            conn.exec_driver_sql(stmt)
        for name in _index_names():
            conn.exec_driver_sql(f"DROP INDEX IF EXISTS {name}")
        for table in TEARDOWN_TABLES:
            conn.exec_driver_sql(f"DROP TABLE IF EXISTS {table}")
    logger.info("downgrade OK (%s)", dialect)
