# cigcounter/persistence/repositories/users_repo.py
# -*- coding: utf-8 -*-
from sqlalchemy import select, func
from cigcounter.persistence.db import get_session
from cigcounter.persistence.models import User

class UserRepository:
    def upsert(self, discord_id: str, username: str) -> User:
        """Crée l'utilisateur, ou met à jour son nom s'il a changé."""
        with get_session() as s:
            u = s.get(User, discord_id)
            if u is None:
                u = User(discord_id=discord_id, username=username)
                s.add(u)
            elif u.username != username:
                u.username = username
            s.flush(); s.refresh(u); s.expunge(u)
            return u

    def get(self, discord_id: str) -> User | None:
        with get_session() as s:
            u = s.get(User, discord_id)
            if not u:
                return None
            s.expunge(u)
            return u

    def exists(self, discord_id: str) -> bool:
        with get_session() as s:
            c = s.scalar(select(func.count()).select_from(User).where(User.discord_id == discord_id)) or 0
            return c > 0

    def delete(self, discord_id: str) -> bool:
        # bloqué par la clé étrangère (IntegrityError) si des logs existent
        with get_session() as s:
            u = s.get(User, discord_id)
            if not u:
                return False
            s.delete(u)
            s.flush()
            return True
