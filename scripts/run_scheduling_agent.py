#!/usr/bin/env python3
"""One-shot briefing outreach run (cron entry point).

Open scheduling conversations for every analyst due a briefing:
    PYTHONPATH=/opt/arhub python scripts/run_scheduling_agent.py

Only list who is due, without creating anything:
    PYTHONPATH=/opt/arhub python scripts/run_scheduling_agent.py --dry-run

Exit code 1 if the due set could not be computed.
"""

import argparse
import asyncio
import json
import sys
from datetime import datetime, timezone

from arhub.database import SessionLocal
from arhub.exceptions import BriefingDataUnavailable
from arhub.http_client import close_clients
from arhub.logging_config import setup_logging
from arhub.services.scheduling_service import (
    due_reason,
    find_due_for_outreach,
    initiate_due_outreach,
)


async def run(dry_run: bool) -> dict:
    now = datetime.now(timezone.utc)
    db = SessionLocal()
    try:
        if dry_run:
            due = find_due_for_outreach(db, now)
            return {
                "due": len(due),
                "analysts": [
                    {
                        "analyst_id": d.analyst_id,
                        "name": d.full_name,
                        "tier": d.tier_level,
                        "overdue_days": d.overdue_days,
                        "reason": due_reason(d),
                    }
                    for d in due
                ],
            }
        return await initiate_due_outreach(db, now=now)
    finally:
        db.close()
        await close_clients()


def main() -> int:
    parser = argparse.ArgumentParser(description="Run the briefing scheduling agent once")
    parser.add_argument("--dry-run", action="store_true", help="list due analysts only")
    args = parser.parse_args()

    setup_logging()
    try:
        report = asyncio.run(run(args.dry_run))
    except BriefingDataUnavailable as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    print(json.dumps(report, indent=2, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
