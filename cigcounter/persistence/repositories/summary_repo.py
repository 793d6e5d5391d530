# cigcounter/persistence/repositories/summary_repo.py
# -*- coding: utf-8 -*-
from dataclasses import dataclass
from sqlalchemy import select, func, text, Date
from cigcounter.persistence.db import get_session
from cigcounter.persistence.models import SmokingLog, SmokingType, User
from cigcounter.persistence.schema import VIEW_NAME
import datetime as dt


@dataclass(frozen=True)
class DailySummary:
    discord_id: str
    username: str
    smoke_date: dt.date
    type_name: str
    total_quantity: int


def _normalize_date(d):
    if isinstance(d, dt.datetime):
        return d.date()
    if isinstance(d, dt.date):
        return d
    if isinstance(d, str):
        return dt.date.fromisoformat(d)
    raise TypeError("Invalid date type")


def _row_to_summary(row) -> DailySummary:
    return DailySummary(
        discord_id=row.discord_id,
        username=row.username,
        # la vue SQLite renvoie la date en texte
        smoke_date=_normalize_date(row.smoke_date),
        type_name=row.type_name,
        total_quantity=int(row.total_quantity),
    )


class DailySummaryRepository:
    """Agrégat journalier (utilisateur, date UTC, type), recalculé à chaque lecture."""

    def query(self, discord_id=None, start=None, end=None, type_name=None) -> list[DailySummary]:
        """
        Une ligne par (utilisateur, jour, type) ayant au moins un log.
        Les bornes start/end sont incluses.
        """
        day = func.date(SmokingLog.smoked_at, type_=Date)
        stmt = (
            select(
                SmokingLog.discord_id,
                User.username,
                day.label("smoke_date"),
                SmokingType.type_name,
                func.sum(SmokingLog.quantity).label("total_quantity"),
            )
            .join(User, SmokingLog.discord_id == User.discord_id)
            .join(SmokingType, SmokingLog.smoking_type_id == SmokingType.id)
        )
        if discord_id is not None:
            stmt = stmt.where(SmokingLog.discord_id == discord_id)
        if start is not None:
            stmt = stmt.where(day >= _normalize_date(start))
        if end is not None:
            stmt = stmt.where(day <= _normalize_date(end))
        if type_name is not None:
            stmt = stmt.where(SmokingType.type_name == type_name)
        stmt = (
            stmt.group_by(SmokingLog.discord_id, User.username, day, SmokingType.type_name)
            .order_by(day.asc(), SmokingLog.discord_id.asc(), SmokingType.type_name.asc())
        )
        with get_session() as s:
            return [_row_to_summary(r) for r in s.execute(stmt)]

    def for_day(self, discord_id: str, day) -> list[DailySummary]:
        d = _normalize_date(day)
        return self.query(discord_id=discord_id, start=d, end=d)

    def from_view(self, discord_id=None) -> list[DailySummary]:
        """Lecture directe de la vue, comme le ferait une couche de reporting."""
        sql = f"SELECT discord_id, username, smoke_date, type_name, total_quantity FROM {VIEW_NAME}"
        params = {}
        if discord_id is not None:
            sql += " WHERE discord_id = :discord_id"
            params["discord_id"] = discord_id
        sql += " ORDER BY smoke_date, discord_id, type_name"
        with get_session() as s:
            return [_row_to_summary(r) for r in s.execute(text(sql), params)]
