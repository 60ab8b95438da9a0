"""Background scheduler — automated briefing outreach.

Runs on a 5-minute tick loop. Each tick checks what needs to run:
  - Briefing outreach: every SCHEDULING_INTERVAL_HOURS — opens scheduling
    conversations for analysts due a briefing and notifies the workflow

Only started when SCHEDULING_AGENT_ENABLED is set (see main.py lifespan).
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone

from .config import settings
from .database import SessionLocal
from .exceptions import BriefingDataUnavailable

log = logging.getLogger("arhub.scheduler")

TICK_SECONDS = 300
STARTUP_DELAY_SECONDS = 10

_last_outreach_run = datetime.min.replace(tzinfo=timezone.utc)


def _utc(dt):
    """Make a naive datetime UTC-aware (no-op if already aware)."""
    if dt is None:
        return None
    return dt.replace(tzinfo=timezone.utc) if dt.tzinfo is None else dt


# ── Main Scheduler Loop ─────────────────────────────────────────────────


async def start_scheduler():
    """Launch the background scheduler loop. Call once on app startup."""
    log.info(
        f"Background scheduler started — briefing outreach every "
        f"{settings.scheduling_interval_hours}h"
    )

    # Let the app finish booting before the first tick
    await asyncio.sleep(STARTUP_DELAY_SECONDS)

    while True:
        try:
            await _scheduler_tick()
        except Exception as e:
            log.error(f"Scheduler tick error: {e}")
        await asyncio.sleep(TICK_SECONDS)


async def _scheduler_tick(now: datetime | None = None):
    """Check what tasks need to run this tick."""
    global _last_outreach_run

    now = _utc(now or datetime.now(timezone.utc))
    interval = timedelta(hours=settings.scheduling_interval_hours)
    if now - _last_outreach_run < interval:
        log.debug("Scheduler tick: briefing outreach not due yet")
        return

    db = SessionLocal()
    try:
        if await _job_briefing_outreach(db, now):
            _last_outreach_run = now
    finally:
        db.close()


# ── Jobs ────────────────────────────────────────────────────────────────


async def _job_briefing_outreach(db, now: datetime) -> bool:
    """Run one outreach pass. Returns False if the run could not complete."""
    from .services.scheduling_service import initiate_due_outreach

    try:
        result = await initiate_due_outreach(db, now=now)
    except BriefingDataUnavailable as e:
        log.error(f"Briefing outreach skipped — store unavailable: {e}")
        db.rollback()
        return False
    except Exception as e:
        log.error(f"Briefing outreach error: {e}")
        db.rollback()
        return False

    if result["notify_failed"]:
        log.warning(
            f"Briefing outreach: {result['notify_failed']} webhook notification(s) failed"
        )
    return True
