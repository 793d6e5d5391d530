# cigcounter/persistence/repositories/types_repo.py
# -*- coding: utf-8 -*-
from sqlalchemy import select, func
from cigcounter.persistence.db import get_session
from cigcounter.persistence.models import SmokingType

class SmokingTypeRepository:
    """Données de référence : lecture et ajout uniquement."""

    def list_all(self) -> list[SmokingType]:
        with get_session() as s:
            rows = list(s.scalars(select(SmokingType).order_by(SmokingType.id.asc())))
            for r in rows:
                s.expunge(r)
            return rows

    def get(self, type_id: int) -> SmokingType | None:
        with get_session() as s:
            t = s.get(SmokingType, type_id)
            if not t:
                return None
            s.expunge(t)
            return t

    def exists(self, type_id: int) -> bool:
        with get_session() as s:
            c = s.scalar(select(func.count(SmokingType.id)).where(SmokingType.id == type_id)) or 0
            return c > 0

    def add(self, type_name: str, description: str | None = None) -> SmokingType:
        with get_session() as s:
            t = SmokingType(type_name=type_name, description=description)
            s.add(t)
            s.flush(); s.refresh(t); s.expunge(t)
            return t

    def labels(self) -> dict[str, str]:
        """type_name -> libellé affichable (description, sinon le nom)."""
        return {t.type_name: t.description or t.type_name for t in self.list_all()}
