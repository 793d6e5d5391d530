# cigcounter/persistence/db.py
# -*- coding: utf-8 -*-
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from contextlib import contextmanager
import os

from cigcounter.persistence.migrations import upgrade, downgrade

DB_URL = os.getenv("DB_URL") or os.getenv("DATABASE_URL") or "sqlite:///cigcounter.db"
DB_ECHO = os.getenv("DB_ECHO", "").lower() in ("1", "true", "yes")

# DATE(smoked_at) doit donner une date UTC quel que soit le moteur
_connect_args = {"options": "-c timezone=utc"} if DB_URL.startswith("postgresql") else {}

engine = create_engine(DB_URL, echo=DB_ECHO, future=True, pool_pre_ping=True, connect_args=_connect_args)

if engine.dialect.name == "sqlite":
    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_conn, _record):
        # SQLite ignore les clés étrangères sans ce pragma
        cur = dbapi_conn.cursor()
        cur.execute("PRAGMA foreign_keys=ON")
        cur.close()

SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
    expire_on_commit=False,  # important pour éviter DetachedInstanceError
    future=True,
)

@contextmanager
def get_session():
    """Contexte gérant automatiquement commit/rollback."""
    s = SessionLocal()
    try:
        yield s
        s.commit()
    except Exception:
        s.rollback()
        raise
    finally:
        s.close()

def init_db(drop_and_recreate=False):
    """Applique la migration (et la défait d'abord si demandé)."""
    if drop_and_recreate:
        downgrade(engine)
    upgrade(engine)
