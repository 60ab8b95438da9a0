"""
scheduling_service.py — Briefing outreach: open scheduling conversations for due analysts

Business Rules:
- Due set comes straight from the store read + policy engine (never the
  dashboard cache), so a just-opened conversation is always seen
- At most one open conversation (INITIATED / WAITING_RESPONSE / NEGOTIATING)
  per analyst. The engine skips analysts that already have one; the partial
  unique index catches a concurrent initiator, whose insert fails and is
  counted as skipped
- Suggested times are generated once per run and shared by every conversation
- Subject: "{org_name} Briefing - {first} {last}"
- Webhook failure is stored on the conversation (webhook_error) and reported
  in the run result; the conversation stays open and the batch continues
- Confirming a conversation books a SCHEDULED briefing (future slots only)
  with the analyst as PRIMARY attendee; cancelling frees the analyst for the next run

Called by: routers/scheduling.py, scheduler.py, scripts/run_scheduling_agent.py
Depends on: models, services/briefing_store.py, services/briefing_policy.py,
            services/suggested_times.py, services/workflow_webhook.py
"""

import logging
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import settings
from ..exceptions import AnalystNotFound, ConversationNotFound
from ..models import (
    CONVERSATION_STATUSES,
    OPEN_CONVERSATION_STATUSES,
    Analyst,
    Briefing,
    BriefingAnalyst,
    SchedulingConversation,
)
from . import briefing_due_service
from .briefing_policy import DueBriefing, compute_due_briefings
from .briefing_store import list_active_analysts_with_tiers_and_recent_briefings
from .suggested_times import generate_suggested_times
from .workflow_webhook import build_initiate_payload, notify_scheduling_webhook

log = logging.getLogger("arhub.scheduling")

CONFIRMABLE_STATUSES = OPEN_CONVERSATION_STATUSES + ("CONFIRMED",)


def _utc(dt: datetime) -> datetime:
    return dt.replace(tzinfo=timezone.utc) if dt.tzinfo is None else dt


def _iso(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt else None


def build_subject(analyst) -> str:
    return f"{settings.org_name} Briefing - {analyst.first_name} {analyst.last_name}"


def due_reason(entry: DueBriefing) -> str:
    """Human-readable reason passed to the outreach workflow."""
    if entry.last_briefing is None:
        return "No recent briefings"
    return (
        f"{entry.days_since_last_briefing} days since last briefing "
        f"(tier requires {entry.briefing_frequency_days} days)"
    )


def conversation_to_dict(conv: SchedulingConversation) -> dict:
    analyst = conv.analyst
    return {
        "id": conv.id,
        "analyst_id": conv.analyst_id,
        "analyst_name": analyst.full_name if analyst else None,
        "analyst_email": analyst.email if analyst else None,
        "subject": conv.subject,
        "suggested_times": conv.suggested_times or [],
        "status": conv.status,
        "reason": conv.reason,
        "agreed_time": _iso(conv.agreed_time),
        "briefing_id": conv.briefing_id,
        "webhook_notified_at": _iso(conv.webhook_notified_at),
        "webhook_error": conv.webhook_error,
        "created_at": _iso(conv.created_at),
        "updated_at": _iso(conv.updated_at),
    }


# ── Conversations ──────────────────────────────────────────────────────


def open_conversation(
    db: Session,
    analyst_id: int,
    subject: str,
    suggested_times: list[str],
    reason: str = "",
) -> SchedulingConversation | None:
    """Insert an INITIATED conversation.

    Returns None if the analyst already has an open conversation (another
    initiator won the insert). Raises AnalystNotFound for an unknown analyst.
    """
    if db.get(Analyst, analyst_id) is None:
        raise AnalystNotFound(f"Analyst {analyst_id} not found")

    conv = SchedulingConversation(
        analyst_id=analyst_id,
        subject=subject,
        suggested_times=list(suggested_times),
        status="INITIATED",
        reason=reason or None,
    )
    db.add(conv)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        log.info(f"Analyst {analyst_id} already has an open scheduling conversation — skipped")
        return None
    db.refresh(conv)
    return conv


def list_conversations(
    db: Session, status: str | None = None, analyst_id: int | None = None
) -> list[SchedulingConversation]:
    query = db.query(SchedulingConversation)
    if status:
        status = status.upper()
        if status == "OPEN":
            query = query.filter(SchedulingConversation.status.in_(OPEN_CONVERSATION_STATUSES))
        elif status in CONVERSATION_STATUSES:
            query = query.filter(SchedulingConversation.status == status)
        else:
            raise ValueError(f"Unknown conversation status '{status}'")
    if analyst_id is not None:
        query = query.filter(SchedulingConversation.analyst_id == analyst_id)
    return query.order_by(
        SchedulingConversation.created_at.desc(), SchedulingConversation.id.desc()
    ).all()


def _get_conversation(db: Session, conversation_id: int) -> SchedulingConversation:
    conv = db.get(SchedulingConversation, conversation_id)
    if conv is None:
        raise ConversationNotFound(f"Scheduling conversation {conversation_id} not found")
    return conv


def confirm_conversation(
    db: Session,
    conversation_id: int,
    agreed_time: datetime,
    duration_minutes: int = 60,
    now: datetime | None = None,
) -> SchedulingConversation:
    """Book the agreed slot as a SCHEDULED briefing and close the conversation.

    Raises ValueError if the slot is not in the future.
    """
    conv = _get_conversation(db, conversation_id)
    if conv.status not in CONFIRMABLE_STATUSES:
        raise ValueError(f"Conversation {conversation_id} is {conv.status} and cannot be confirmed")
    if duration_minutes < 1:
        raise ValueError("duration_minutes must be at least 1")

    agreed_time = _utc(agreed_time)
    now = _utc(now or datetime.now(timezone.utc))
    if agreed_time <= now:
        raise ValueError(f"agreed_time {agreed_time.isoformat()} is not in the future")

    analyst = conv.analyst
    briefing = Briefing(
        title=conv.subject,
        scheduled_at=agreed_time,
        duration_minutes=duration_minutes,
        status="SCHEDULED",
        attendee_emails=[analyst.email] if analyst and analyst.email else [],
    )
    db.add(briefing)
    db.flush()
    db.add(BriefingAnalyst(briefing_id=briefing.id, analyst_id=conv.analyst_id, role="PRIMARY"))

    conv.agreed_time = agreed_time
    conv.briefing_id = briefing.id
    conv.status = "SCHEDULED"
    db.commit()
    db.refresh(conv)

    briefing_due_service.clear_cache()
    log.info(f"Conversation {conv.id} confirmed — briefing {briefing.id} at {agreed_time.isoformat()}")
    return conv


def cancel_conversation(db: Session, conversation_id: int) -> SchedulingConversation:
    conv = _get_conversation(db, conversation_id)
    if conv.status in ("SCHEDULED", "CANCELLED"):
        raise ValueError(f"Conversation {conversation_id} is already {conv.status}")
    conv.status = "CANCELLED"
    db.commit()
    db.refresh(conv)
    briefing_due_service.clear_cache()
    log.info(f"Conversation {conv.id} cancelled")
    return conv


# ── Outreach run ───────────────────────────────────────────────────────


def find_due_for_outreach(db: Session, now: datetime | None = None) -> list[DueBriefing]:
    """Uncached due set. Raises BriefingDataUnavailable on store failure."""
    now = _utc(now or datetime.now(timezone.utc))
    snapshots = list_active_analysts_with_tiers_and_recent_briefings(
        db, now, lookback_days=settings.briefing_lookback_days
    )
    return compute_due_briefings(snapshots, now)


def _record_webhook_outcome(
    db: Session, conv: SchedulingConversation, ok: bool, error: str | None, now: datetime
) -> None:
    if ok:
        conv.webhook_notified_at = now
        conv.webhook_error = None
    else:
        conv.webhook_error = error
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        log.error(f"Could not store webhook outcome for conversation {conv.id}: {e}")


async def initiate_due_outreach(db: Session, now: datetime | None = None) -> dict:
    """Open a conversation and notify the workflow for every due analyst.

    Store failure propagates as BriefingDataUnavailable. Per-analyst
    failures are collected in the result and never stop the batch.
    """
    now = _utc(now or datetime.now(timezone.utc))
    due = find_due_for_outreach(db, now)
    suggested_times = generate_suggested_times(now)

    result = {
        "due": len(due),
        "initiated": 0,
        "skipped": 0,
        "notified": 0,
        "notify_failed": 0,
        "conversations": [],
        "errors": [],
    }

    for entry in due:
        analyst = db.get(Analyst, entry.analyst_id)
        if analyst is None:
            result["skipped"] += 1
            continue

        reason = due_reason(entry)
        try:
            conv = open_conversation(
                db, analyst.id, build_subject(analyst), suggested_times, reason
            )
        except SQLAlchemyError as e:
            db.rollback()
            log.error(f"Failed to open conversation for {analyst.full_name}: {e}")
            result["errors"].append(
                {"analyst_id": analyst.id, "stage": "open", "error": str(e)}
            )
            continue

        if conv is None:
            result["skipped"] += 1
            continue
        result["initiated"] += 1

        payload = build_initiate_payload(conv, analyst, suggested_times, reason)
        ok, error = await notify_scheduling_webhook(payload)
        _record_webhook_outcome(db, conv, ok, error, now)
        if ok:
            result["notified"] += 1
        else:
            result["notify_failed"] += 1
            result["errors"].append(
                {"analyst_id": analyst.id, "stage": "notify", "error": error}
            )

        result["conversations"].append(conversation_to_dict(conv))

    if result["initiated"]:
        briefing_due_service.clear_cache()

    log.info(
        f"Outreach run: {result['due']} due, {result['initiated']} initiated, "
        f"{result['skipped']} skipped, {result['notified']} notified, "
        f"{result['notify_failed']} notify failed"
    )
    return result
