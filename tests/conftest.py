# tests/conftest.py
# -*- coding: utf-8 -*-
"""
Fixture commune : repositories branchés sur une base SQLite temporaire.

- crée une base SQLite temporaire (ex: /tmp/pytest-xxxx/test_cigcounter.db)
- définit DB_URL AVANT de (re)charger les modules
- (re)charge db pour régénérer l'engine, puis applique la migration
- (re)charge les repos et le service tally (ils capturent get_session à l'import)

Les modèles ne sont pas rechargés : ils ne dépendent pas de l'environnement.
"""

import importlib
from dataclasses import dataclass

import pytest


@dataclass
class Repos:
    db: object
    users: object
    types: object
    logs: object
    summaries: object


@pytest.fixture
def repos(tmp_path, monkeypatch) -> Repos:
    db_path = tmp_path / "test_cigcounter.db"
    monkeypatch.setenv("DB_URL", f"sqlite:///{db_path}")
    monkeypatch.delenv("DATABASE_URL", raising=False)

    import cigcounter.persistence.db as db
    importlib.reload(db)
    db.init_db(drop_and_recreate=True)

    import cigcounter.persistence.repositories.users_repo as users_repo
    import cigcounter.persistence.repositories.types_repo as types_repo
    import cigcounter.persistence.repositories.logs_repo as logs_repo
    import cigcounter.persistence.repositories.summary_repo as summary_repo
    import cigcounter.services.tally as tally
    for mod in (users_repo, types_repo, logs_repo, summary_repo, tally):
        importlib.reload(mod)

    yield Repos(
        db=db,
        users=users_repo.UserRepository(),
        types=types_repo.SmokingTypeRepository(),
        logs=logs_repo.SmokingLogRepository(),
        summaries=summary_repo.DailySummaryRepository(),
    )
    db.engine.dispose()
