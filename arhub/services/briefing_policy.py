"""Briefing Due-Date Policy — who needs their next analyst briefing, and how late is it.

Pure computation over already-loaded snapshots (see briefing_store.py).
No I/O, no clock reads: ``now`` is always passed in.

Per analyst, in order:
  1. No tier, an inactive tier, or a "never" cadence  -> excluded
  2. A SCHEDULED/RESCHEDULED briefing after now       -> not due
  3. An open scheduling conversation                   -> not due
  4. No completed briefing on record                   -> due, 0 days, 0 overdue
  5. days since last completed >= tier frequency       -> due

Elapsed time is floored to whole days, so an analyst becomes due the moment
the full frequency has elapsed. overdue_days = max(0, days - frequency).

Output order follows input order; sorting is up to the caller.
"""

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Iterable, Union

from ..models.briefings import PENDING_BRIEFING_STATUSES

SECONDS_PER_DAY = 86400
NEVER_SENTINEL = -1  # legacy API value for "never"


# ── Cadence ─────────────────────────────────────────────────────────────


class Never:
    """Cadence for tiers that are never due."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NEVER"


NEVER = Never()


@dataclass(frozen=True)
class EveryNDays:
    days: int

    def __post_init__(self):
        if isinstance(self.days, bool) or not isinstance(self.days, int) or self.days < 1:
            raise ValueError(f"Briefing frequency must be at least 1 day, got {self.days!r}")


Frequency = Union[Never, EveryNDays]


def frequency_from_storage(value: int | None) -> Frequency:
    """Map a stored/API frequency to a Frequency. None and -1 both mean never."""
    if value is None or value == NEVER_SENTINEL:
        return NEVER
    return EveryNDays(value)


def frequency_to_days(freq: Frequency) -> int | None:
    return None if freq is NEVER else freq.days


# ── Snapshots (input) and results (output) ──────────────────────────────


@dataclass(frozen=True)
class TierPolicy:
    name: str
    level: str
    frequency: Frequency
    is_active: bool = True


@dataclass(frozen=True)
class BriefingRef:
    id: int
    title: str
    status: str
    occurred_at: datetime  # completed_at for completed briefings, scheduled_at otherwise

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "status": self.status,
            "scheduled_at": self.occurred_at.isoformat(),
        }


@dataclass(frozen=True)
class AnalystSnapshot:
    analyst_id: int
    first_name: str
    last_name: str
    email: str
    company: str | None = None
    title: str | None = None
    influence: str | None = None
    tier: TierPolicy | None = None
    last_completed_briefing: BriefingRef | None = None
    next_scheduled_briefing: BriefingRef | None = None
    has_active_conversation: bool = False


@dataclass(frozen=True)
class DueBriefing:
    analyst_id: int
    first_name: str
    last_name: str
    email: str
    company: str | None
    title: str | None
    tier_name: str
    tier_level: str
    briefing_frequency_days: int
    days_since_last_briefing: int
    overdue_days: int
    last_briefing: BriefingRef | None
    next_briefing: BriefingRef | None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def to_dict(self) -> dict:
        data = asdict(self)
        data["last_briefing"] = self.last_briefing.to_dict() if self.last_briefing else None
        data["next_briefing"] = self.next_briefing.to_dict() if self.next_briefing else None
        return data


# ── Policy ──────────────────────────────────────────────────────────────


def _utc(dt: datetime) -> datetime:
    return dt.replace(tzinfo=timezone.utc) if dt.tzinfo is None else dt


def whole_days_between(earlier: datetime, later: datetime) -> int:
    """Whole days elapsed from earlier to later, floored, never negative."""
    seconds = (_utc(later) - _utc(earlier)).total_seconds()
    if seconds <= 0:
        return 0
    return int(seconds // SECONDS_PER_DAY)


def _has_pending_booking(briefing: BriefingRef | None, now: datetime) -> bool:
    if briefing is None:
        return False
    return (
        briefing.status in PENDING_BRIEFING_STATUSES
        and _utc(briefing.occurred_at) > _utc(now)
    )


def evaluate_analyst(snapshot: AnalystSnapshot, now: datetime) -> DueBriefing | None:
    """Return the due entry for one analyst, or None if nothing should be scheduled."""
    tier = snapshot.tier
    if tier is None or not tier.is_active or tier.frequency is NEVER:
        return None

    if _has_pending_booking(snapshot.next_scheduled_briefing, now):
        return None

    if snapshot.has_active_conversation:
        return None

    last = snapshot.last_completed_briefing
    if last is not None and last.status != "COMPLETED":
        last = None

    frequency_days = tier.frequency.days
    if last is None:
        days_since = 0
        overdue = 0
    else:
        days_since = whole_days_between(last.occurred_at, now)
        if days_since < frequency_days:
            return None
        overdue = max(0, days_since - frequency_days)

    return DueBriefing(
        analyst_id=snapshot.analyst_id,
        first_name=snapshot.first_name,
        last_name=snapshot.last_name,
        email=snapshot.email,
        company=snapshot.company,
        title=snapshot.title,
        tier_name=tier.name,
        tier_level=tier.level,
        briefing_frequency_days=frequency_days,
        days_since_last_briefing=days_since,
        overdue_days=overdue,
        last_briefing=last,
        next_briefing=snapshot.next_scheduled_briefing,
    )


def compute_due_briefings(
    snapshots: Iterable[AnalystSnapshot], now: datetime
) -> list[DueBriefing]:
    """Evaluate every snapshot; keep the due ones in input order."""
    due = []
    for snapshot in snapshots:
        entry = evaluate_analyst(snapshot, now)
        if entry is not None:
            due.append(entry)
    return due
