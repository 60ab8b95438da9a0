"""
schemas/tiers.py — Pydantic models for influence tier settings

Business Rules:
- Frequencies are days; -1 or null means "never"
- Level is upper-cased here; range and uniqueness checks live in
  services/tier_service.py so a bad submission is a 400, not a 422

Called by: routers/settings.py
Depends on: pydantic
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


class InfluenceTierIn(BaseModel):
    name: str = ""
    level: str | None = None
    color: str | None = None
    briefing_frequency: int | None = -1
    touchpoint_frequency: int | None = -1
    is_active: bool = True

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return v.strip()

    @field_validator("level")
    @classmethod
    def upper_level(cls, v: str | None) -> str | None:
        return v.strip().upper() if v else None


class InfluenceTiersSave(BaseModel):
    tiers: list[InfluenceTierIn]


class InfluenceTierOut(BaseModel):
    id: int
    name: str
    level: str
    color: str | None = None
    briefing_frequency: int
    touchpoint_frequency: int
    order: int
    is_active: bool


class InfluenceTiersSaved(BaseModel):
    success: bool = True
    message: str = ""
    data: list[InfluenceTierOut] = Field(default_factory=list)
