"""Scheduling models — outreach conversations opened for analysts who are due."""

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.orm import relationship

from .analysts import _in_clause
from .base import Base, UTCDateTime, utcnow

CONVERSATION_STATUSES = (
    "INITIATED",
    "WAITING_RESPONSE",
    "NEGOTIATING",
    "CONFIRMED",
    "SCHEDULED",
    "CANCELLED",
)
OPEN_CONVERSATION_STATUSES = ("INITIATED", "WAITING_RESPONSE", "NEGOTIATING")

_OPEN_PREDICATE = _in_clause("status", OPEN_CONVERSATION_STATUSES)


class SchedulingConversation(Base):
    """Negotiation to find a briefing slot with one analyst.

    At most one open conversation per analyst, enforced by a partial unique
    index so two concurrent initiators cannot both open one.
    """

    __tablename__ = "scheduling_conversations"
    id = Column(Integer, primary_key=True)
    analyst_id = Column(
        Integer, ForeignKey("analysts.id", ondelete="CASCADE"), nullable=False
    )
    subject = Column(String(500), nullable=False)
    suggested_times = Column(JSON, default=list)
    status = Column(String(30), nullable=False, default="INITIATED")
    reason = Column(String(500))
    agreed_time = Column(UTCDateTime)
    briefing_id = Column(Integer, ForeignKey("briefings.id", ondelete="SET NULL"))
    webhook_notified_at = Column(UTCDateTime)
    webhook_error = Column(Text)
    created_at = Column(UTCDateTime, default=utcnow)
    updated_at = Column(UTCDateTime, default=utcnow, onupdate=utcnow)

    analyst = relationship("Analyst", back_populates="scheduling_conversations")
    briefing = relationship("Briefing")

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_CONVERSATION_STATUSES

    __table_args__ = (
        CheckConstraint(
            _in_clause("status", CONVERSATION_STATUSES),
            name="ck_scheduling_conversations_status",
        ),
        Index(
            "uq_scheduling_conversations_one_open",
            "analyst_id",
            unique=True,
            postgresql_where=text(_OPEN_PREDICATE),
            sqlite_where=text(_OPEN_PREDICATE),
        ),
        Index("ix_scheduling_conversations_status", "status"),
    )
