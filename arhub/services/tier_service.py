"""
tier_service.py — Influence tier settings (briefing cadence per influence level)

Business Rules:
- Saving replaces the full tier set: delete all, insert the submitted list
  with order = list position (1-based), in one transaction
- Every tier needs a non-empty name and a level from INFLUENCE_LEVELS;
  a missing level is derived from the name ("Very High" -> VERY_HIGH)
- Levels are unique across the set
- Frequencies are whole days >= 1, or "never" (-1 or null)
- Validation happens before any write; a bad submission leaves the stored
  set untouched
- API shape reports "never" as -1 (what the settings form expects)

Called by: routers/settings.py, scripts/seed_demo_data.py, main.py (startup seed)
Depends on: models, services/briefing_policy.py
"""

import logging

from sqlalchemy.orm import Session

from ..exceptions import InvalidTierConfiguration
from ..models import INFLUENCE_LEVELS, InfluenceTier
from .briefing_policy import NEVER_SENTINEL

log = logging.getLogger("arhub.tiers")

DEFAULT_COLOR = "#6b7280"

DEFAULT_TIERS = [
    {"name": "Very High", "level": "VERY_HIGH", "color": "#dc2626",
     "briefing_frequency": 60, "touchpoint_frequency": 30},
    {"name": "High", "level": "HIGH", "color": "#ea580c",
     "briefing_frequency": 90, "touchpoint_frequency": 45},
    {"name": "Medium", "level": "MEDIUM", "color": "#ca8a04",
     "briefing_frequency": 120, "touchpoint_frequency": 60},
    {"name": "Low", "level": "LOW", "color": "#16a34a",
     "briefing_frequency": None, "touchpoint_frequency": None},
]


def _never_to_api(days: int | None) -> int:
    return NEVER_SENTINEL if days is None else days


def tier_to_dict(tier: InfluenceTier) -> dict:
    return {
        "id": tier.id,
        "name": tier.name,
        "level": tier.level,
        "color": tier.color,
        "briefing_frequency": _never_to_api(tier.briefing_frequency),
        "touchpoint_frequency": _never_to_api(tier.touchpoint_frequency),
        "order": tier.order,
        "is_active": tier.is_active,
    }


def list_tiers(db: Session) -> list[InfluenceTier]:
    return db.query(InfluenceTier).order_by(InfluenceTier.order, InfluenceTier.id).all()


def _level_from(entry: dict, name: str) -> str:
    raw = entry.get("level") or name
    return raw.strip().upper().replace(" ", "_").replace("-", "_")


def _frequency(entry: dict, field: str, label: str) -> int | None:
    """Normalize a submitted frequency: None/-1 -> None (never), else int >= 1."""
    value = entry.get(field)
    if value is None or value == NEVER_SENTINEL:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise InvalidTierConfiguration(
            f'{label} frequency must be at least 1 day or -1 for "Never"'
        )
    return value


def _validate(tiers: list[dict]) -> list[dict]:
    if not isinstance(tiers, list):
        raise InvalidTierConfiguration("Tiers array is required")

    cleaned = []
    seen_levels = set()
    for index, entry in enumerate(tiers):
        name = (entry.get("name") or "").strip()
        if not name:
            raise InvalidTierConfiguration("Each tier must have a name")

        level = _level_from(entry, name)
        if level not in INFLUENCE_LEVELS:
            raise InvalidTierConfiguration(
                f"Tier '{name}' has unknown level '{level}' "
                f"(expected one of {', '.join(INFLUENCE_LEVELS)})"
            )
        if level in seen_levels:
            raise InvalidTierConfiguration(f"Duplicate tier level '{level}'")
        seen_levels.add(level)

        cleaned.append({
            "name": name,
            "level": level,
            "color": entry.get("color") or DEFAULT_COLOR,
            "briefing_frequency": _frequency(entry, "briefing_frequency", "Briefing"),
            "touchpoint_frequency": _frequency(entry, "touchpoint_frequency", "Touchpoint"),
            "order": index + 1,
            "is_active": bool(entry.get("is_active", True)),
        })
    return cleaned


def replace_tiers(db: Session, tiers: list[dict]) -> list[InfluenceTier]:
    """Validate, then swap the stored tier set for the submitted one.

    Raises InvalidTierConfiguration without touching the database.
    """
    cleaned = _validate(tiers)

    try:
        db.query(InfluenceTier).delete()
        created = [InfluenceTier(**values) for values in cleaned]
        db.add_all(created)
        db.commit()
    except Exception:
        db.rollback()
        raise

    for tier in created:
        db.refresh(tier)
    log.info(f"Saved {len(created)} influence tier(s)")
    return created


def seed_default_tiers(db: Session) -> list[InfluenceTier]:
    """Insert the default four tiers if none exist. Returns the tiers added."""
    if db.query(InfluenceTier.id).first() is not None:
        return []
    created = [
        InfluenceTier(order=i + 1, is_active=True, **values)
        for i, values in enumerate(DEFAULT_TIERS)
    ]
    db.add_all(created)
    db.commit()
    log.info(f"Seeded {len(created)} default influence tier(s)")
    return created
