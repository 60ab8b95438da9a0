"""Analyst models — Analysts and the Influence Tiers that set their briefing cadence."""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from .base import Base, UTCDateTime, utcnow

# Highest influence first; also the TIER_1..TIER_4 alias order
INFLUENCE_LEVELS = ("VERY_HIGH", "HIGH", "MEDIUM", "LOW")
ANALYST_STATUSES = ("ACTIVE", "INACTIVE", "ARCHIVED")


def _in_clause(column: str, values: tuple[str, ...]) -> str:
    quoted = ", ".join(f"'{v}'" for v in values)
    return f"{column} IN ({quoted})"


class InfluenceTier(Base):
    """Named cadence policy for one influence level.

    The tier is matched to analysts through ``level`` (same vocabulary as
    Analyst.influence); ``name`` is only a display label and can be renamed
    freely. briefing_frequency NULL means the tier is never due.
    """

    __tablename__ = "influence_tiers"
    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    level = Column(String(20), nullable=False, unique=True)
    color = Column(String(20), default="#6b7280")
    briefing_frequency = Column(Integer)  # days; NULL = never
    touchpoint_frequency = Column(Integer)  # days; NULL = never
    order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(UTCDateTime, default=utcnow)
    updated_at = Column(UTCDateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint(_in_clause("level", INFLUENCE_LEVELS), name="ck_influence_tiers_level"),
        CheckConstraint(
            "briefing_frequency IS NULL OR briefing_frequency >= 1",
            name="ck_influence_tiers_briefing_frequency",
        ),
        CheckConstraint(
            "touchpoint_frequency IS NULL OR touchpoint_frequency >= 1",
            name="ck_influence_tiers_touchpoint_frequency",
        ),
    )


class Analyst(Base):
    """Industry analyst tracked as a CRM contact."""

    __tablename__ = "analysts"
    id = Column(Integer, primary_key=True)
    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    company = Column(String(255))
    title = Column(String(255))
    type = Column(String(50), default="Analyst")  # Analyst, Press, Investor, Practitioner, Influencer
    influence = Column(String(20), nullable=False, default="MEDIUM")
    status = Column(String(20), nullable=False, default="ACTIVE")
    relationship_health = Column(String(20), default="GOOD")  # EXCELLENT .. CRITICAL
    profile_image_url = Column(String(500))
    notes = Column(Text)
    created_at = Column(UTCDateTime, default=utcnow)
    updated_at = Column(UTCDateTime, default=utcnow, onupdate=utcnow)

    briefing_links = relationship(
        "BriefingAnalyst", back_populates="analyst", cascade="all, delete-orphan"
    )
    scheduling_conversations = relationship(
        "SchedulingConversation", back_populates="analyst"
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    __table_args__ = (
        CheckConstraint(_in_clause("influence", INFLUENCE_LEVELS), name="ck_analysts_influence"),
        CheckConstraint(_in_clause("status", ANALYST_STATUSES), name="ck_analysts_status"),
        Index("ix_analysts_status_first_name", "status", "first_name"),
    )
