"""
briefing_due_service.py — Briefings-due list for the dashboard

Runs the store read and the policy engine, caches the full due list
in-process, then filters, sorts and paginates per request.

Business Rules:
- Cache holds the unfiltered due list for briefings_due_cache_seconds;
  force=True recomputes; clear_cache() drops it (tier saves call it)
- counts_by_tier is computed over the unfiltered list, keyed by level
- Tier filter: a level (HIGH) or positional alias TIER_1..TIER_4
  (VERY_HIGH..LOW); ALL or empty means no filter
- Search: case-insensitive substring of full name, email or company
- Sort: name (store order), overdue (most overdue first), tier (VERY_HIGH first)
- BriefingDataUnavailable propagates and is never cached

Called by: routers/briefings_due.py
Depends on: services/briefing_store.py, services/briefing_policy.py, config
"""

import logging
import math
import threading
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from ..config import settings
from ..models import INFLUENCE_LEVELS
from .briefing_policy import DueBriefing, compute_due_briefings
from .briefing_store import list_active_analysts_with_tiers_and_recent_briefings

log = logging.getLogger("arhub.briefings")

SORT_OPTIONS = ("name", "overdue", "tier")
TIER_ALIASES = {f"TIER_{i}": level for i, level in enumerate(INFLUENCE_LEVELS, start=1)}
MAX_PAGE_SIZE = 200

_cache_lock = threading.Lock()
_cache: dict = {"entries": None, "counts": None, "updated_at": None}


def clear_cache() -> None:
    with _cache_lock:
        _cache.update(entries=None, counts=None, updated_at=None)


def _utc(dt: datetime) -> datetime:
    return dt.replace(tzinfo=timezone.utc) if dt.tzinfo is None else dt


def _counts(entries: list[DueBriefing]) -> dict[str, int]:
    counts = {level: 0 for level in INFLUENCE_LEVELS}
    for e in entries:
        if e.tier_level in counts:
            counts[e.tier_level] += 1
    return counts


def _cached_due_list(db: Session, now: datetime, force: bool):
    """Return (entries, counts, updated_at, was_cached)."""
    ttl = settings.briefings_due_cache_seconds
    with _cache_lock:
        updated_at = _cache["updated_at"]
        if (
            not force
            and updated_at is not None
            and ttl > 0
            and 0 <= (now - updated_at).total_seconds() < ttl
        ):
            return _cache["entries"], _cache["counts"], updated_at, True

    snapshots = list_active_analysts_with_tiers_and_recent_briefings(
        db, now, lookback_days=settings.briefing_lookback_days
    )
    entries = compute_due_briefings(snapshots, now)
    counts = _counts(entries)

    with _cache_lock:
        _cache.update(entries=entries, counts=counts, updated_at=now)
    log.info(f"Computed briefings due: {len(entries)} analyst(s) from {len(snapshots)} active")
    return entries, counts, now, False


def normalize_tier_filter(tier: str) -> str | None:
    """Map a tier filter to a level. None means no filter; ValueError if unknown."""
    value = (tier or "").strip().upper()
    if not value or value == "ALL":
        return None
    value = TIER_ALIASES.get(value, value)
    if value not in INFLUENCE_LEVELS:
        raise ValueError(f"Unknown tier filter '{tier}'")
    return value


def _matches(entry: DueBriefing, needle: str) -> bool:
    haystack = (entry.full_name, entry.email or "", entry.company or "")
    return any(needle in field.lower() for field in haystack)


def _sorted(entries: list[DueBriefing], sort: str) -> list[DueBriefing]:
    if sort == "overdue":
        return sorted(entries, key=lambda e: -e.overdue_days)
    if sort == "tier":
        rank = {level: i for i, level in enumerate(INFLUENCE_LEVELS)}
        return sorted(entries, key=lambda e: (rank.get(e.tier_level, len(rank)), -e.overdue_days))
    return list(entries)


def get_briefings_due(
    db: Session,
    now: datetime | None = None,
    search: str = "",
    tier: str = "",
    sort: str = "name",
    page: int = 1,
    page_size: int = 50,
    force: bool = False,
) -> dict:
    """Filtered, sorted, paginated due list plus tier counts.

    Raises ValueError for a bad tier/sort/page, BriefingDataUnavailable if
    the store read fails.
    """
    if sort not in SORT_OPTIONS:
        raise ValueError(f"sort must be one of: {', '.join(SORT_OPTIONS)}")
    if page < 1:
        raise ValueError("page must be >= 1")
    if not 1 <= page_size <= MAX_PAGE_SIZE:
        raise ValueError(f"page_size must be between 1 and {MAX_PAGE_SIZE}")
    level = normalize_tier_filter(tier)

    now = _utc(now or datetime.now(timezone.utc))
    entries, counts, updated_at, cached = _cached_due_list(db, now, force)

    filtered = entries
    if level:
        filtered = [e for e in filtered if e.tier_level == level]
    needle = (search or "").strip().lower()
    if needle:
        filtered = [e for e in filtered if _matches(e, needle)]
    filtered = _sorted(filtered, sort)

    total = len(filtered)
    start = (page - 1) * page_size
    page_items = filtered[start:start + page_size]

    return {
        "success": True,
        "data": [e.to_dict() for e in page_items],
        "pagination": {
            "page": page,
            "page_size": page_size,
            "total": total,
            "total_pages": math.ceil(total / page_size) if total else 0,
        },
        "filters": {"search": search or "", "tier": tier or "", "sort": sort},
        "counts_by_tier": dict(counts),
        "cached": cached,
        "updated_at": updated_at.isoformat(),
    }
