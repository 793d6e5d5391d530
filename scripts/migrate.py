# scripts/migrate.py
# -*- coding: utf-8 -*-
"""
Applique ou défait le schéma sur la base pointée par DB_URL.

Exemples :
    python -m scripts.migrate up
    python -m scripts.migrate down
    python -m scripts.migrate reset     # down puis up
"""

from __future__ import annotations

import argparse
import logging
import os

from cigcounter.persistence.db import engine, init_db
from cigcounter.persistence.migrations import downgrade

logger = logging.getLogger("migrate")


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Migrations du schéma cigcounter")
    p.add_argument("action", choices=["up", "down", "reset"], help="up: création, down: suppression, reset: down + up")
    return p.parse_args()


def main():
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"), format="%(levelname)s %(name)s: %(message)s")
    args = parse_args()
    logger.info("Base : %s", engine.url.render_as_string(hide_password=True))

    if args.action == "up":
        init_db()
    elif args.action == "down":
        downgrade(engine)
    else:
        init_db(drop_and_recreate=True)


if __name__ == "__main__":
    main()
