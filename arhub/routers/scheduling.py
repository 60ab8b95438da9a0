"""
scheduling.py — Scheduling Agent API

Suggested slots, manual outreach runs, and the conversation lifecycle
(list, confirm, cancel).

Called by: main.py (router mount)
Depends on: database, schemas/scheduling, services/scheduling_service,
            services/suggested_times
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..database import get_db
from ..exceptions import BriefingDataUnavailable, ConversationNotFound
from ..schemas.scheduling import ConfirmConversation, ConversationOut, OutreachRunResponse
from ..services import scheduling_service
from ..services.suggested_times import generate_suggested_times

log = logging.getLogger("arhub.scheduling")

router = APIRouter()


@router.get("/api/scheduling-agent/suggested-times")
async def suggested_times():
    """Next business-day slots offered to analysts."""
    return {"success": True, "data": generate_suggested_times()}


@router.post("/api/scheduling-agent/run", response_model=OutreachRunResponse)
async def run_scheduling_agent(db: Session = Depends(get_db)):
    """Open conversations for every analyst due a briefing and notify the workflow."""
    try:
        result = await scheduling_service.initiate_due_outreach(db)
    except BriefingDataUnavailable as e:
        log.error(f"Scheduling run aborted: {e}")
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": "Failed to compute briefings due",
                "details": str(e),
            },
        )
    return {"success": True, **result}


@router.get("/api/scheduling-agent/conversations", response_model=list[ConversationOut])
async def list_conversations(
    status: str | None = None,
    analyst_id: int | None = None,
    db: Session = Depends(get_db),
):
    """Scheduling conversations, newest first. status=OPEN for all open ones."""
    try:
        convs = scheduling_service.list_conversations(db, status=status, analyst_id=analyst_id)
    except ValueError as e:
        raise HTTPException(400, str(e))
    return [scheduling_service.conversation_to_dict(c) for c in convs]


@router.post(
    "/api/scheduling-agent/conversations/{conversation_id}/confirm",
    response_model=ConversationOut,
)
async def confirm_conversation(
    conversation_id: int,
    body: ConfirmConversation,
    db: Session = Depends(get_db),
):
    """Book the agreed slot as a briefing."""
    try:
        conv = scheduling_service.confirm_conversation(
            db, conversation_id, body.agreed_time, body.duration_minutes
        )
    except ConversationNotFound as e:
        raise HTTPException(404, str(e))
    except ValueError as e:
        raise HTTPException(400, str(e))
    return scheduling_service.conversation_to_dict(conv)


@router.post(
    "/api/scheduling-agent/conversations/{conversation_id}/cancel",
    response_model=ConversationOut,
)
async def cancel_conversation(conversation_id: int, db: Session = Depends(get_db)):
    try:
        conv = scheduling_service.cancel_conversation(db, conversation_id)
    except ConversationNotFound as e:
        raise HTTPException(404, str(e))
    except ValueError as e:
        raise HTTPException(400, str(e))
    return scheduling_service.conversation_to_dict(conv)
