"""
schemas/scheduling.py — Pydantic models for scheduling-agent endpoints

Business Rules:
- agreed_time must carry a timezone (naive times are ambiguous for analysts
  in other regions)
- duration_minutes between 15 and 480

Called by: routers/scheduling.py
Depends on: pydantic
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator


class ConfirmConversation(BaseModel):
    agreed_time: datetime
    duration_minutes: int = Field(default=60, ge=15, le=480)

    @field_validator("agreed_time")
    @classmethod
    def require_timezone(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            raise ValueError("agreed_time must include a timezone offset")
        return v


class ConversationOut(BaseModel, extra="allow"):
    id: int
    analyst_id: int
    subject: str
    status: str
    suggested_times: list[str] = Field(default_factory=list)
    reason: str | None = None
    agreed_time: str | None = None
    briefing_id: int | None = None
    webhook_notified_at: str | None = None
    webhook_error: str | None = None


class OutreachRunResponse(BaseModel):
    success: bool = True
    due: int = 0
    initiated: int = 0
    skipped: int = 0
    notified: int = 0
    notify_failed: int = 0
    conversations: list[ConversationOut] = Field(default_factory=list)
    errors: list[dict] = Field(default_factory=list)
