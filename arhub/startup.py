"""
startup.py — Idempotent startup tasks

Schema is owned by Alembic (alembic upgrade head). This file only seeds
reference data the app cannot run without.

Called by: main.py lifespan
Depends on: database.py (SessionLocal), services/tier_service.py
"""

import logging
import os

from .database import SessionLocal

log = logging.getLogger("arhub.startup")


def run_startup_tasks() -> None:
    """Safe to call on every app boot."""
    if os.environ.get("TESTING"):
        log.info("TESTING mode — skipping startup tasks")
        return

    from .services.tier_service import seed_default_tiers

    db = SessionLocal()
    try:
        seed_default_tiers(db)
    except Exception as e:
        log.warning(f"Startup tier seed skipped: {e}")
        db.rollback()
    finally:
        db.close()
