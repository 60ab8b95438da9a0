"""
briefing_store.py — Build policy-engine snapshots from the database.

One read, few queries: active tiers, active analysts, their most recent
completed briefing, their nearest pending briefing, and whether an
outreach conversation is already open.

Business Rules:
- Only ACTIVE analysts are read; ordered by first name, then last name
- Tier resolution is by influence level (analyst.influence == tier.level);
  an analyst with no matching active tier gets tier=None and the policy
  engine excludes them
- The bulk scan for completed briefings covers the lookback window (at
  least twice the largest active tier frequency). Analysts with nothing in
  the window get a second read over older history, so the window never
  hides a real last briefing
- Briefings are linked through briefing_analysts; analysts with no linked
  briefing fall back to a case-insensitive match on attendee_emails
- CANCELLED briefings never count as last briefing
- Any database error becomes BriefingDataUnavailable (never a partial result)

Called by: services/briefing_due_service.py, services/scheduling_service.py
Depends on: models, services/briefing_policy.py
"""

import logging
from datetime import datetime, timedelta

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..exceptions import BriefingDataUnavailable
from ..models import (
    OPEN_CONVERSATION_STATUSES,
    PENDING_BRIEFING_STATUSES,
    Analyst,
    Briefing,
    BriefingAnalyst,
    InfluenceTier,
    SchedulingConversation,
)
from .briefing_policy import (
    AnalystSnapshot,
    BriefingRef,
    TierPolicy,
    frequency_from_storage,
)

log = logging.getLogger("arhub.briefings")


def effective_lookback_days(tiers: list[InfluenceTier], configured: int | None = None) -> int:
    """Lookback horizon: the configured floor widened to twice the largest tier frequency."""
    widest = max(
        (t.briefing_frequency for t in tiers if t.is_active and t.briefing_frequency),
        default=0,
    )
    return max(configured or 0, 2 * widest, 1)


def _tier_policy(tier: InfluenceTier) -> TierPolicy:
    return TierPolicy(
        name=tier.name,
        level=tier.level,
        frequency=frequency_from_storage(tier.briefing_frequency),
        is_active=bool(tier.is_active),
    )


def _ref(briefing: Briefing) -> BriefingRef:
    return BriefingRef(
        id=briefing.id,
        title=briefing.title,
        status=briefing.status,
        occurred_at=briefing.occurred_at,
    )


def _completed_key(briefing: Briefing) -> datetime:
    return briefing.completed_at or briefing.scheduled_at


def _by_email(briefings: list[Briefing]) -> dict[str, list[Briefing]]:
    """Index briefings by lower-cased attendee email."""
    index: dict[str, list[Briefing]] = {}
    for b in briefings:
        for email in b.attendee_emails or []:
            if email:
                index.setdefault(email.strip().lower(), []).append(b)
    return index


def _completed_since(window_start: datetime):
    return ((Briefing.completed_at.isnot(None)) & (Briefing.completed_at >= window_start)) | (
        (Briefing.completed_at.is_(None)) & (Briefing.scheduled_at >= window_start)
    )


def _load_older_completed(db: Session, window_start: datetime, analysts: list[Analyst]):
    """Completed briefings before the window for analysts the window missed.

    Linked briefings for those analysts, plus unlinked briefings for the
    email fallback. Only runs for the analysts that need it.
    """
    ids = [a.id for a in analysts]
    rows = (
        db.query(Briefing, BriefingAnalyst.analyst_id)
        .join(BriefingAnalyst, BriefingAnalyst.briefing_id == Briefing.id)
        .filter(
            Briefing.status == "COMPLETED",
            BriefingAnalyst.analyst_id.in_(ids),
            ~_completed_since(window_start),
        )
        .all()
    )
    older = {b.id: b for b, _ in rows}
    links = [(b.id, analyst_id) for b, analyst_id in rows]

    if any(a.email for a in analysts):
        unlinked = (
            db.query(Briefing)
            .filter(
                Briefing.status == "COMPLETED",
                ~Briefing.analyst_links.any(),
                ~_completed_since(window_start),
            )
            .all()
        )
        older.update((b.id, b) for b in unlinked)
    return list(older.values()), links


def _load_snapshot_inputs(db: Session, now: datetime, lookback_days: int | None):
    tiers = (
        db.query(InfluenceTier)
        .filter(InfluenceTier.is_active.is_(True))
        .order_by(InfluenceTier.order)
        .all()
    )
    analysts = (
        db.query(Analyst)
        .filter(Analyst.status == "ACTIVE")
        .order_by(Analyst.first_name, Analyst.last_name)
        .all()
    )

    window_start = now - timedelta(days=effective_lookback_days(tiers, lookback_days))

    completed = (
        db.query(Briefing)
        .filter(Briefing.status == "COMPLETED")
        .filter(_completed_since(window_start))
        .all()
    )
    pending = (
        db.query(Briefing)
        .filter(
            Briefing.status.in_(PENDING_BRIEFING_STATUSES),
            Briefing.scheduled_at > now,
        )
        .all()
    )

    briefing_ids = [b.id for b in completed] + [b.id for b in pending]
    links = []
    if briefing_ids:
        links = [
            (row.briefing_id, row.analyst_id)
            for row in db.query(BriefingAnalyst.briefing_id, BriefingAnalyst.analyst_id)
            .filter(BriefingAnalyst.briefing_id.in_(briefing_ids))
            .all()
        ]

    # Nothing completed inside the window: look further back
    completed_ids = {b.id for b in completed}
    seen_ids = {aid for bid, aid in links if bid in completed_ids}
    seen_emails = set(_by_email(completed))
    missed = [
        a for a in analysts
        if a.id not in seen_ids and (a.email or "").strip().lower() not in seen_emails
    ]
    if missed:
        older, older_links = _load_older_completed(db, window_start, missed)
        completed += older
        links += older_links

    open_analyst_ids = {
        row.analyst_id
        for row in db.query(SchedulingConversation.analyst_id)
        .filter(SchedulingConversation.status.in_(OPEN_CONVERSATION_STATUSES))
        .all()
    }
    return tiers, analysts, completed, pending, links, open_analyst_ids


def list_active_analysts_with_tiers_and_recent_briefings(
    db: Session, now: datetime, lookback_days: int | None = None
) -> list[AnalystSnapshot]:
    """Snapshot every active analyst for the due-date policy.

    Raises BriefingDataUnavailable if any part of the read fails.
    """
    try:
        tiers, analysts, completed, pending, links, open_ids = _load_snapshot_inputs(
            db, now, lookback_days
        )
    except SQLAlchemyError as e:
        log.error(f"Briefing snapshot read failed: {e}")
        raise BriefingDataUnavailable("Failed to load analysts, tiers or briefings", cause=e) from e

    tiers_by_level = {t.level: _tier_policy(t) for t in tiers}

    completed_by_id = {b.id: b for b in completed}
    pending_by_id = {b.id: b for b in pending}
    completed_by_analyst: dict[int, list[Briefing]] = {}
    pending_by_analyst: dict[int, list[Briefing]] = {}
    for briefing_id, analyst_id in links:
        if briefing_id in completed_by_id:
            completed_by_analyst.setdefault(analyst_id, []).append(completed_by_id[briefing_id])
        if briefing_id in pending_by_id:
            pending_by_analyst.setdefault(analyst_id, []).append(pending_by_id[briefing_id])

    completed_by_email = _by_email(completed)
    pending_by_email = _by_email(pending)

    snapshots = []
    for a in analysts:
        email_key = (a.email or "").strip().lower()

        done = completed_by_analyst.get(a.id) or completed_by_email.get(email_key, [])
        upcoming = pending_by_analyst.get(a.id) or pending_by_email.get(email_key, [])

        last = max(done, key=_completed_key) if done else None
        nxt = min(upcoming, key=lambda b: b.scheduled_at) if upcoming else None

        snapshots.append(
            AnalystSnapshot(
                analyst_id=a.id,
                first_name=a.first_name,
                last_name=a.last_name,
                email=a.email,
                company=a.company,
                title=a.title,
                influence=a.influence,
                tier=tiers_by_level.get((a.influence or "").upper()),
                last_completed_briefing=_ref(last) if last else None,
                next_scheduled_briefing=_ref(nxt) if nxt else None,
                has_active_conversation=a.id in open_ids,
            )
        )

    log.debug(f"Built {len(snapshots)} analyst snapshot(s) across {len(tiers)} active tier(s)")
    return snapshots
