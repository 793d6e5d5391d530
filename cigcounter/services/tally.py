# cigcounter/services/tally.py
# -*- coding: utf-8 -*-
"""
Enregistrement d'une consommation + récapitulatif du jour.

C'est le parcours du bouton "喫煙カウント" : l'utilisateur est créé (ou renommé)
à la volée, le log est écrit, puis on relit l'agrégat du jour pour la réponse.

Usage:
    from cigcounter.services.tally import record_smoke, confirmation_message
    from cigcounter.persistence.repositories.types_repo import SmokingTypeRepository

    res = record_smoke("123456789012345678", "alice", smoking_type_id=1)
    print(confirmation_message(res.today, SmokingTypeRepository().labels()))
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional

from cigcounter.persistence.models import SmokingLog, User
from cigcounter.persistence.repositories.logs_repo import SmokingLogRepository
from cigcounter.persistence.repositories.summary_repo import DailySummary, DailySummaryRepository
from cigcounter.persistence.repositories.types_repo import SmokingTypeRepository
from cigcounter.persistence.repositories.users_repo import UserRepository

CONFIRMATION_HEADER = "記録しました。\n本日の累計本数"


class TallyError(ValueError):
    """Demande d'enregistrement invalide (type inconnu, quantité <= 0...)."""


@dataclass(frozen=True)
class TallyResult:
    user: User
    log: SmokingLog
    today: List[DailySummary]


def record_smoke(
    discord_id: str,
    username: str,
    smoking_type_id: int,
    quantity: int = 1,
    smoked_at=None,
    *,
    users: Optional[UserRepository] = None,
    types: Optional[SmokingTypeRepository] = None,
    logs: Optional[SmokingLogRepository] = None,
    summaries: Optional[DailySummaryRepository] = None,
) -> TallyResult:
    users = users or UserRepository()
    types = types or SmokingTypeRepository()
    logs = logs or SmokingLogRepository()
    summaries = summaries or DailySummaryRepository()

    if quantity <= 0:
        raise TallyError(f"quantité invalide: {quantity} (attendu > 0)")
    if not types.exists(smoking_type_id):
        raise TallyError(f"type de consommation inconnu: {smoking_type_id}")

    user = users.upsert(discord_id, username)
    log = logs.add(user.discord_id, smoking_type_id, quantity, smoked_at=smoked_at)
    # agrégat du jour UTC du log (et non du jour local)
    today = summaries.for_day(user.discord_id, log.smoked_at)
    return TallyResult(user=user, log=log, today=today)


def format_daily_summary(rows: Iterable[DailySummary], labels: Mapping[str, str]) -> str:
    """Une ligne "\\n<libellé>: <n>本" par type."""
    return "".join(
        f"\n{labels.get(r.type_name, r.type_name)}: {r.total_quantity}本"
        for r in rows
    )


def confirmation_message(rows: Iterable[DailySummary], labels: Mapping[str, str]) -> str:
    return CONFIRMATION_HEADER + format_daily_summary(rows, labels)


def totals_by_type(rows: Iterable[DailySummary]) -> Dict[str, int]:
    out: Dict[str, int] = {}
    for r in rows:
        out[r.type_name] = out.get(r.type_name, 0) + r.total_quantity
    return out
