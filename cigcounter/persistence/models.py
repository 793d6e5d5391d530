# cigcounter/persistence/models.py
# -*- coding: utf-8 -*-
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy import Integer, String, Text, DateTime, ForeignKey, CheckConstraint, Index, event, func, inspect
import datetime as dt


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class Base(DeclarativeBase):
    pass


class TimestampMixin:
    """Colonnes created_at / updated_at des tables modifiables."""
    created_at: Mapped[dt.datetime | None] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[dt.datetime | None] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )


@event.listens_for(TimestampMixin, "before_update", propagate=True)
def _touch_updated_at(mapper, connection, target):
    """
    Hook unique appliqué à toute classe qui hérite de TimestampMixin :
    - created_at ne bouge jamais après l'insert,
    - updated_at avance strictement à chaque UPDATE.
    """
    if inspect(target).attrs.created_at.history.deleted:
        raise ValueError(f"created_at est immuable ({mapper.local_table.name})")

    now = utcnow()
    previous = target.updated_at
    if previous is not None:
        # SQLite relit des datetimes naïfs (stockés en UTC)
        if previous.tzinfo is None:
            previous = previous.replace(tzinfo=dt.timezone.utc)
        if now <= previous:
            now = previous + dt.timedelta(microseconds=1)
    target.updated_at = now


class User(TimestampMixin, Base):
    __tablename__ = "users"

    discord_id: Mapped[str] = mapped_column(String(20), primary_key=True)
    username: Mapped[str] = mapped_column(String(100), nullable=False)


class SmokingType(Base):
    __tablename__ = "smoking_types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    type_name: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[dt.datetime | None] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )


class SmokingLog(TimestampMixin, Base):
    __tablename__ = "smoking_logs"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="smoking_logs_quantity_check"),
        Index("idx_smoking_logs_discord_id", "discord_id"),
        Index("idx_smoking_logs_smoked_at", "smoked_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    discord_id: Mapped[str | None] = mapped_column(String(20), ForeignKey("users.discord_id"))
    smoking_type_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("smoking_types.id"))
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    smoked_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )
