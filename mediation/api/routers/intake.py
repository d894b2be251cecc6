"""
Case submission (intake) API router
"""
from datetime import datetime
from typing import Any, Dict, Optional
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from mediation.api.auth import get_caller
from mediation.services.party_registry import PartyRegistry
from mediation.types import Caller
from mediation.utils.response import success_response
from mediation.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/case-submission", tags=["case-submission"])


# Request models
class CreateSessionRequest(BaseModel):
    user_id: Optional[str] = None


class UpdateSessionRequest(BaseModel):
    current_step: int = Field(ge=1, le=6)


class JoinCaseRequest(BaseModel):
    parent_session_id: str = Field(min_length=1)


class StepDataRequest(BaseModel):
    session_id: str = Field(min_length=1)
    data: Dict[str, Any]


class SubmitRequest(BaseModel):
    session_id: str = Field(min_length=1)
    submitted_at: Optional[datetime] = None


@router.post("/session")
async def create_session(request: Optional[CreateSessionRequest] = None, caller: Caller = Depends(get_caller)):
    """Start a Party A intake session"""
    user_id = (request.user_id if request else None) or caller["caller_id"] or None
    session = PartyRegistry.create_session(user_id=user_id)
    return success_response(session, "Session created")


@router.get("/session/{session_id}")
async def get_session(session_id: str, caller: Caller = Depends(get_caller)):
    """Draft view of a session"""
    return success_response(PartyRegistry.get_session(session_id))


@router.patch("/session/{session_id}")
async def update_session(session_id: str, request: UpdateSessionRequest, caller: Caller = Depends(get_caller)):
    """Move a draft to another step"""
    return success_response(PartyRegistry.update_session(session_id, request.current_step))


@router.post("/join-case")
async def join_case(request: JoinCaseRequest, caller: Caller = Depends(get_caller)):
    """Join a submitted case as Party B"""
    result = PartyRegistry.join_as_party_b(request.parent_session_id, user_id=caller["caller_id"] or None)
    return success_response(result, "Joined case as Party B")


@router.post("/step{step_number:int}")
async def save_step(step_number: int, request: StepDataRequest, caller: Caller = Depends(get_caller)):
    """Save the draft of one intake step (step1 .. step6)"""
    session = PartyRegistry.save_step_data(request.session_id, step_number, request.data)
    return success_response(session, f"Step {step_number} saved")


@router.post("/submit")
async def submit(request: SubmitRequest, caller: Caller = Depends(get_caller)):
    """Finalise a completed session"""
    result = PartyRegistry.finalize(
        request.session_id,
        submitted_at=request.submitted_at,
        submitter_user_id=caller["caller_id"] or None
    )
    return success_response(result, "Submission received")
