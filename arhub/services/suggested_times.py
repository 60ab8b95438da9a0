"""
suggested_times.py — Candidate meeting slots for briefing outreach

Business Rules:
- Look at the next 5 calendar days after today, in the reference zone
- Skip Saturday and Sunday
- Two slots per business day: morning and afternoon (10:00 / 14:00 by default)
- At most 6 slots, earliest first
- Display format: "Monday, Oct 19, 10:00 AM ET"

Called by: services/scheduling_service.py, routers/scheduling.py
Depends on: config
"""

from datetime import datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from ..config import settings

LOOKAHEAD_DAYS = 5
MAX_SLOTS = 6


def suggested_slot_datetimes(
    now: datetime,
    tz_name: str = "America/New_York",
    morning_hour: int = 10,
    afternoon_hour: int = 14,
) -> list[datetime]:
    """Aware datetimes (in tz_name) for the upcoming weekday slots."""
    tz = ZoneInfo(tz_name)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    today = now.astimezone(tz).date()

    slots = []
    for offset in range(1, LOOKAHEAD_DAYS + 1):
        day = today + timedelta(days=offset)
        if day.weekday() >= 5:
            continue
        for hour in sorted((morning_hour, afternoon_hour)):
            slots.append(datetime.combine(day, time(hour=hour), tzinfo=tz))
    return slots[:MAX_SLOTS]


def format_slot(dt: datetime, tz_label: str = "ET") -> str:
    """'Monday, Oct 19, 2:00 PM ET' (no zero padding on day or hour)."""
    hour = dt.hour % 12 or 12
    return f"{dt:%A}, {dt:%b} {dt.day}, {hour}:{dt:%M %p} {tz_label}"


def generate_suggested_times(now: datetime | None = None) -> list[str]:
    """Formatted slot strings using the configured zone and hours."""
    now = now or datetime.now(timezone.utc)
    slots = suggested_slot_datetimes(
        now,
        tz_name=settings.suggested_times_tz,
        morning_hour=settings.suggested_morning_hour,
        afternoon_hour=settings.suggested_afternoon_hour,
    )
    return [format_slot(s, settings.suggested_times_tz_label) for s in slots]
