# scripts/seed_local_data.py
# -*- coding: utf-8 -*-
"""
Seed local pour cigcounter : crée des utilisateurs et des logs de consommation réalistes.

Caractéristiques :
- Réentrant côté utilisateurs (upsert par discord_id) ; les logs, eux, s'ajoutent
- Paramétrable via CLI : nb d'utilisateurs, nb de jours, date de fin, gaps aléatoires
- Option (--wipe) pour downgrade + upgrade du schéma (utile en dev)

Utilise :
- cigcounter/persistence/db.py            -> init_db()
- cigcounter/persistence/repositories/... -> UserRepository, SmokingTypeRepository, SmokingLogRepository

Exemples :
    # 3 users, 14 jours jusqu'à aujourd'hui
    python -m scripts.seed_local_data

    # 5 users, 30 jours, quelques trous, reproductible
    python -m scripts.seed_local_data --users 5 --days 30 --gap-rate 0.15 --seed 42

    # Recommencer à zéro
    python -m scripts.seed_local_data --wipe
"""

from __future__ import annotations

import argparse
import datetime as dt
import logging
import os
import random

from cigcounter.persistence.db import init_db
from cigcounter.persistence.repositories.users_repo import UserRepository
from cigcounter.persistence.repositories.types_repo import SmokingTypeRepository
from cigcounter.persistence.repositories.logs_repo import SmokingLogRepository

logger = logging.getLogger("seed")


# -------------------------------------------------------------------
# Utils
# -------------------------------------------------------------------

def clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


def sample_day_times(day: dt.date, n: int):
    """n horaires UTC croissants entre 7h et 23h pour le jour donné."""
    start = dt.datetime.combine(day, dt.time(7, 0), tzinfo=dt.timezone.utc)
    offsets = sorted(random.randint(0, 16 * 60 - 1) for _ in range(n))
    return [start + dt.timedelta(minutes=m) for m in offsets]


def daterange(end: dt.date, days: int):
    """Génère des dates [end - (days-1) .. end] incluses, en ordre croissant."""
    for i in range(days):
        yield end - dt.timedelta(days=(days - 1 - i))


# -------------------------------------------------------------------
# Seeding
# -------------------------------------------------------------------

def seed(*, users: int, days: int, end_date: dt.date, id_prefix: str, gap_rate: float, daily_mean: float) -> int:
    """
    Remplit la base avec `users` utilisateurs, chacun ayant jusqu'à `days` jours de logs,
    avec des trous éventuels (gap_rate). Retourne le nombre de logs créés.
    """
    user_repo = UserRepository()
    log_repo = SmokingLogRepository()
    type_ids = [t.id for t in SmokingTypeRepository().list_all()]

    logger.info("Seeding %d user(s), %d jour(s), fin au %s | gaps ~%d%%",
                users, days, end_date.isoformat(), int(gap_rate * 100))

    total_logs = 0
    for i in range(1, users + 1):
        discord_id = f"{id_prefix}{i:0>6}"[:20]
        u = user_repo.upsert(discord_id, f"user{i}")
        # chaque utilisateur a un type préféré
        favourite = type_ids[(i - 1) % len(type_ids)]
        logger.info("   • User %-20s %s", u.discord_id, u.username)

        for day in daterange(end=end_date, days=days):
            if random.random() < gap_rate:
                continue
            n = max(1, int(round(random.gauss(daily_mean, daily_mean / 3))))
            for when in sample_day_times(day, n):
                type_id = favourite if random.random() < 0.8 else random.choice(type_ids)
                log_repo.add(u.discord_id, type_id, quantity=1, smoked_at=when)
                total_logs += 1

    logger.info("Terminé : %d user(s), %d log(s) créés.", users, total_logs)
    return total_logs


# -------------------------------------------------------------------
# CLI
# -------------------------------------------------------------------

def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Seed local data for cigcounter")
    p.add_argument("--users", type=int, default=3, help="Nombre d'utilisateurs (défaut: 3)")
    p.add_argument("--days", type=int, default=14, help="Nombre de jours (défaut: 14)")
    p.add_argument("--end", type=str, default=None, help="Date de fin (YYYY-MM-DD). Défaut: aujourd'hui (UTC)")
    p.add_argument("--id-prefix", type=str, default="9000", help="Préfixe des discord_id factices (défaut: '9000')")
    p.add_argument("--gap-rate", type=float, default=0.1, help="Probabilité de sauter un jour (0..1, défaut: 0.1)")
    p.add_argument("--daily-mean", type=float, default=8.0, help="Nombre moyen de logs par jour (défaut: 8)")
    p.add_argument("--seed", type=int, default=None, help="Seed du générateur aléatoire pour reproductibilité")
    p.add_argument("--wipe", action="store_true", help="Downgrade + upgrade du schéma avant seeding")
    return p.parse_args()


def main():
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"), format="%(levelname)s %(name)s: %(message)s")
    args = parse_args()

    if args.seed is not None:
        random.seed(args.seed)

    end_date = dt.date.fromisoformat(args.end) if args.end else dt.datetime.now(dt.timezone.utc).date()

    if args.wipe:
        logger.warning("Wipe : downgrade & upgrade du schéma…")

    init_db(drop_and_recreate=bool(args.wipe))

    seed(
        users=max(1, args.users),
        days=max(1, args.days),
        end_date=end_date,
        id_prefix=args.id_prefix,
        gap_rate=clamp(args.gap_rate, 0.0, 0.9),
        daily_mean=clamp(args.daily_mean, 1.0, 60.0),
    )


if __name__ == "__main__":
    main()
