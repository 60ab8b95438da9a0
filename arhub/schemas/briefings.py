"""
schemas/briefings.py — Response models for the briefings-due endpoint

Called by: routers/briefings_due.py
Depends on: pydantic
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class BriefingRefOut(BaseModel):
    id: int
    title: str
    status: str
    scheduled_at: str


class DueBriefingItem(BaseModel, extra="allow"):
    analyst_id: int
    first_name: str
    last_name: str
    email: str
    company: str | None = None
    title: str | None = None
    tier_name: str
    tier_level: str
    briefing_frequency_days: int
    days_since_last_briefing: int
    overdue_days: int
    last_briefing: BriefingRefOut | None = None
    next_briefing: BriefingRefOut | None = None


class Pagination(BaseModel):
    page: int = 1
    page_size: int = 50
    total: int = 0
    total_pages: int = 0


class DueFilters(BaseModel):
    search: str = ""
    tier: str = ""
    sort: str = "name"


class BriefingsDueResponse(BaseModel):
    success: bool = True
    data: list[DueBriefingItem] = Field(default_factory=list)
    pagination: Pagination
    filters: DueFilters
    counts_by_tier: dict[str, int] = Field(default_factory=dict)
    cached: bool = False
    updated_at: str
