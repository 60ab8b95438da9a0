"""Briefing models — Briefings and the analyst join rows that attach them."""

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .analysts import _in_clause
from .base import Base, UTCDateTime, utcnow

BRIEFING_STATUSES = ("SCHEDULED", "COMPLETED", "CANCELLED", "RESCHEDULED")
PENDING_BRIEFING_STATUSES = ("SCHEDULED", "RESCHEDULED")


class Briefing(Base):
    """A scheduled or completed relationship meeting with one or more analysts."""

    __tablename__ = "briefings"
    id = Column(Integer, primary_key=True)
    title = Column(String(500), nullable=False)
    description = Column(Text)
    scheduled_at = Column(UTCDateTime, nullable=False)
    completed_at = Column(UTCDateTime)
    duration_minutes = Column(Integer, default=60)
    status = Column(String(20), nullable=False, default="SCHEDULED")
    location = Column(String(255))
    meeting_url = Column(String(500))
    calendar_event_id = Column(String(255))  # external calendar meeting, if synced
    attendee_emails = Column(JSON, default=list)
    ai_summary = Column(Text)
    created_at = Column(UTCDateTime, default=utcnow)
    updated_at = Column(UTCDateTime, default=utcnow, onupdate=utcnow)

    analyst_links = relationship(
        "BriefingAnalyst", back_populates="briefing", cascade="all, delete-orphan"
    )

    @property
    def occurred_at(self):
        """When the meeting happened: completion time, else the booked slot."""
        return self.completed_at or self.scheduled_at

    __table_args__ = (
        CheckConstraint(_in_clause("status", BRIEFING_STATUSES), name="ck_briefings_status"),
        Index("ix_briefings_status_scheduled", "status", "scheduled_at"),
        Index("ix_briefings_status_completed", "status", "completed_at"),
    )


class BriefingAnalyst(Base):
    """Join row: which analysts attend which briefing, and in what role."""

    __tablename__ = "briefing_analysts"
    id = Column(Integer, primary_key=True)
    briefing_id = Column(
        Integer, ForeignKey("briefings.id", ondelete="CASCADE"), nullable=False
    )
    analyst_id = Column(
        Integer, ForeignKey("analysts.id", ondelete="CASCADE"), nullable=False
    )
    role = Column(String(20), default="PRIMARY")  # PRIMARY, SECONDARY
    response_status = Column(String(20))
    created_at = Column(UTCDateTime, default=utcnow)

    briefing = relationship("Briefing", back_populates="analyst_links")
    analyst = relationship("Analyst", back_populates="briefing_links")

    __table_args__ = (
        UniqueConstraint("briefing_id", "analyst_id", name="uq_briefing_analysts_pair"),
        Index("ix_briefing_analysts_analyst", "analyst_id"),
    )
