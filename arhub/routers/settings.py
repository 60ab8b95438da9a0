"""
settings.py — Influence Tier Settings API

Read and replace the influence tiers that set each level's briefing cadence.

Called by: main.py (router mount)
Depends on: database, schemas/tiers, services/tier_service
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..database import get_db
from ..exceptions import InvalidTierConfiguration
from ..schemas.tiers import InfluenceTierOut, InfluenceTiersSave, InfluenceTiersSaved
from ..services import briefing_due_service, tier_service

router = APIRouter()


@router.get("/api/settings/influence-tiers", response_model=list[InfluenceTierOut])
async def get_influence_tiers(db: Session = Depends(get_db)):
    """All tiers in display order. Frequencies use -1 for "never"."""
    return [tier_service.tier_to_dict(t) for t in tier_service.list_tiers(db)]


@router.post("/api/settings/influence-tiers", response_model=InfluenceTiersSaved)
async def save_influence_tiers(body: InfluenceTiersSave, db: Session = Depends(get_db)):
    """Replace the full tier set."""
    try:
        tiers = tier_service.replace_tiers(db, [t.model_dump() for t in body.tiers])
    except InvalidTierConfiguration as e:
        raise HTTPException(400, str(e))

    briefing_due_service.clear_cache()
    return {
        "success": True,
        "message": f"Successfully saved {len(tiers)} influence tiers",
        "data": [tier_service.tier_to_dict(t) for t in tiers],
    }
