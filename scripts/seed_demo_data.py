#!/usr/bin/env python3
"""Seed default influence tiers plus a handful of demo analysts and briefings.

    PYTHONPATH=/opt/arhub python scripts/seed_demo_data.py

Idempotent: tiers are only seeded into an empty table, analysts are
skipped when their email already exists.
"""

import argparse
import sys
from datetime import datetime, timedelta, timezone

from arhub.database import SessionLocal
from arhub.logging_config import setup_logging
from arhub.models import Analyst, Briefing, BriefingAnalyst
from arhub.services.tier_service import seed_default_tiers

# (first, last, email, company, influence, days since last completed briefing or None)
DEMO_ANALYSTS = [
    ("Sarah", "Chen", "sarah.chen@gartner.example", "Gartner", "VERY_HIGH", 75),
    ("Marcus", "Webb", "marcus.webb@forrester.example", "Forrester", "VERY_HIGH", 20),
    ("Priya", "Nair", "priya.nair@idc.example", "IDC", "HIGH", 120),
    ("Tom", "Alvarez", "tom.alvarez@redmonk.example", "RedMonk", "HIGH", None),
    ("Hannah", "Kim", "hannah.kim@451research.example", "451 Research", "MEDIUM", 200),
    ("Leo", "Brandt", "leo.brandt@independent.example", "Independent", "LOW", 400),
]


def seed(db, now: datetime) -> dict:
    report = {"tiers": len(seed_default_tiers(db)), "analysts": 0, "briefings": 0}

    for first, last, email, company, influence, days_ago in DEMO_ANALYSTS:
        if db.query(Analyst.id).filter(Analyst.email == email).first():
            continue
        analyst = Analyst(
            first_name=first,
            last_name=last,
            email=email,
            company=company,
            influence=influence,
            status="ACTIVE",
        )
        db.add(analyst)
        db.flush()
        report["analysts"] += 1

        if days_ago is None:
            continue
        held_at = now - timedelta(days=days_ago)
        briefing = Briefing(
            title=f"Briefing with {first} {last}",
            scheduled_at=held_at,
            completed_at=held_at + timedelta(hours=1),
            duration_minutes=60,
            status="COMPLETED",
            attendee_emails=[email],
        )
        db.add(briefing)
        db.flush()
        db.add(BriefingAnalyst(briefing_id=briefing.id, analyst_id=analyst.id, role="PRIMARY"))
        report["briefings"] += 1

    db.commit()
    return report


def main() -> int:
    argparse.ArgumentParser(description="Seed ARHub demo data").parse_args()
    setup_logging()
    db = SessionLocal()
    try:
        report = seed(db, datetime.now(timezone.utc))
    finally:
        db.close()
    print(
        f"Seeded {report['tiers']} tier(s), {report['analysts']} analyst(s), "
        f"{report['briefings']} briefing(s)"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
