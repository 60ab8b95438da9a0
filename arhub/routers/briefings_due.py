"""
briefings_due.py — Briefings Due API

Dashboard list of analysts whose next briefing is due, with tier counts.

Called by: main.py (router mount)
Depends on: database, services/briefing_due_service
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..database import get_db
from ..exceptions import BriefingDataUnavailable
from ..schemas.briefings import BriefingsDueResponse
from ..services import briefing_due_service

log = logging.getLogger("arhub.briefings")

router = APIRouter()


@router.get("/api/briefings/due", response_model=BriefingsDueResponse)
async def list_briefings_due(
    search: str = "",
    tier: str = "",
    sort: str = "name",
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=briefing_due_service.MAX_PAGE_SIZE),
    force: bool = False,
    db: Session = Depends(get_db),
):
    """Analysts due for a briefing, filtered/sorted/paginated. Cached for a few minutes."""
    try:
        return briefing_due_service.get_briefings_due(
            db,
            search=search,
            tier=tier,
            sort=sort,
            page=page,
            page_size=page_size,
            force=force,
        )
    except BriefingDataUnavailable as e:
        log.error(f"Briefings due unavailable: {e}")
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": "Failed to compute briefings due",
                "details": str(e),
            },
        )
    except ValueError as e:
        raise HTTPException(400, str(e))
