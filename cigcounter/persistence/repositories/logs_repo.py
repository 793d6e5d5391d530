# cigcounter/persistence/repositories/logs_repo.py
# -*- coding: utf-8 -*-
from sqlalchemy import select
from cigcounter.persistence.db import get_session
from cigcounter.persistence.models import SmokingLog
import datetime as dt

UPDATABLE_FIELDS = frozenset({"smoking_type_id", "quantity", "smoked_at"})


class SmokingLogNotFound(ValueError):
    """Aucun log avec cet id."""


def _to_utc(value, end_of_day=False):
    """
    Datetime aware -> UTC ; un datetime naïf est considéré comme déjà en UTC.
    Une date seule (ou "YYYY-MM-DD") donne le début du jour UTC, ou sa fin si end_of_day.
    """
    if isinstance(value, str):
        value = dt.date.fromisoformat(value) if len(value) == 10 else dt.datetime.fromisoformat(value)
    if isinstance(value, dt.date) and not isinstance(value, dt.datetime):
        value = dt.datetime.combine(value, dt.time.max if end_of_day else dt.time.min)
    if not isinstance(value, dt.datetime):
        raise TypeError("Invalid datetime type")
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value.astimezone(dt.timezone.utc)


class SmokingLogRepository:
    def add(self, discord_id: str, smoking_type_id: int, quantity: int, smoked_at=None) -> SmokingLog:
        """
        Enregistre une consommation. La base refuse (IntegrityError) :
        - quantity <= 0,
        - un discord_id ou un smoking_type_id inexistant.
        """
        fields = dict(discord_id=discord_id, smoking_type_id=smoking_type_id, quantity=quantity)
        if smoked_at is not None:
            fields["smoked_at"] = _to_utc(smoked_at)
        with get_session() as s:
            log = SmokingLog(**fields)
            s.add(log); s.flush(); s.refresh(log); s.expunge(log)
            return log

    def update(self, log_id: int, **fields) -> SmokingLog:
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Champs non modifiables: {', '.join(sorted(unknown))}")
        if fields.get("smoked_at") is not None:
            fields["smoked_at"] = _to_utc(fields["smoked_at"])
        with get_session() as s:
            log = s.get(SmokingLog, log_id)
            if not log:
                raise SmokingLogNotFound(f"Log introuvable: {log_id}")
            for k, v in fields.items():
                setattr(log, k, v)
            s.flush(); s.refresh(log); s.expunge(log)
            return log

    def get(self, log_id: int) -> SmokingLog | None:
        with get_session() as s:
            log = s.get(SmokingLog, log_id)
            if not log:
                return None
            s.expunge(log)
            return log

    def list_for_user(self, discord_id: str, start=None, end=None, asc=True):
        """Logs d'un utilisateur, bornes [start, end] incluses sur smoked_at (date, datetime ou ISO)."""
        with get_session() as s:
            stmt = select(SmokingLog).where(SmokingLog.discord_id == discord_id)
            if start is not None:
                stmt = stmt.where(SmokingLog.smoked_at >= _to_utc(start))
            if end is not None:
                stmt = stmt.where(SmokingLog.smoked_at <= _to_utc(end, end_of_day=True))
            order = SmokingLog.smoked_at.asc() if asc else SmokingLog.smoked_at.desc()
            stmt = stmt.order_by(order, SmokingLog.id.asc())
            rows = list(s.scalars(stmt))
            for r in rows:
                s.expunge(r)
            return rows

    def delete(self, log_id: int) -> bool:
        with get_session() as s:
            log = s.get(SmokingLog, log_id)
            if not log:
                return False
            s.delete(log)
            return True
