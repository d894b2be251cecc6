"""
Case administration API router
"""
from typing import List, Optional
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from mediation.api.auth import require_role
from mediation.services.case_lifecycle import CaseLifecycle
from mediation.services.panel_assignment import PanelAssignmentEngine
from mediation.types import Caller
from mediation.utils.response import success_response

router = APIRouter(prefix="/cases", tags=["cases"])

admin_only = require_role("admin")


# Request models
class StatusUpdateRequest(BaseModel):
    status: str
    resolution_details: Optional[str] = None
    admin_feedback: Optional[str] = None
    next_steps: Optional[str] = None


class AssignRequest(BaseModel):
    assigned_to: str = Field(min_length=1)


class PriorityRequest(BaseModel):
    priority: str


class NoteRequest(BaseModel):
    content: str
    note_type: Optional[str] = None


class AssignPanelRequest(BaseModel):
    panelist_ids: List[str]


@router.get("/{case_id}")
async def get_case(case_id: str, caller: Caller = Depends(require_role("admin", "client"))):
    """Case details (clients only see their own cases)"""
    return success_response(
        CaseLifecycle.get_case(case_id, caller_id=caller["caller_id"], role=caller["role"])
    )


@router.get("/{case_id}/full-details")
async def get_full_details(case_id: str, caller: Caller = Depends(admin_only)):
    """Case with both parties' submissions"""
    return success_response(CaseLifecycle.get_full_details(case_id))


@router.patch("/{case_id}/status")
async def update_status(case_id: str, request: StatusUpdateRequest, caller: Caller = Depends(admin_only)):
    case = CaseLifecycle.update_status(
        case_id,
        request.status,
        actor_id=caller["caller_id"],
        resolution_details=request.resolution_details,
        admin_feedback=request.admin_feedback,
        next_steps=request.next_steps
    )
    return success_response(case, "Case status updated")


@router.patch("/{case_id}/assign")
async def assign_case(case_id: str, request: AssignRequest, caller: Caller = Depends(admin_only)):
    case = CaseLifecycle.assign(case_id, request.assigned_to, actor_id=caller["caller_id"])
    return success_response(case, "Case assigned")


@router.patch("/{case_id}/unassign")
async def unassign_case(case_id: str, caller: Caller = Depends(admin_only)):
    case = CaseLifecycle.unassign(case_id, actor_id=caller["caller_id"])
    return success_response(case, "Case unassigned")


@router.patch("/{case_id}/priority")
async def update_priority(case_id: str, request: PriorityRequest, caller: Caller = Depends(admin_only)):
    case = CaseLifecycle.update_priority(case_id, request.priority, actor_id=caller["caller_id"])
    return success_response(case, "Case priority updated")


@router.post("/{case_id}/notes")
async def add_note(case_id: str, request: NoteRequest, caller: Caller = Depends(admin_only)):
    result = CaseLifecycle.add_note(
        case_id, request.content, note_type=request.note_type, author_id=caller["caller_id"]
    )
    return success_response(result, "Note added")


@router.get("/{case_id}/timeline")
async def get_timeline(case_id: str, caller: Caller = Depends(admin_only)):
    return success_response(CaseLifecycle.get_timeline(case_id))


@router.post("/{case_id}/assign-panel")
async def assign_panel(case_id: str, request: AssignPanelRequest, caller: Caller = Depends(admin_only)):
    """Put one or more panelists on the case"""
    case = PanelAssignmentEngine.assign_panel(case_id, request.panelist_ids, assigned_by=caller["caller_id"])
    return success_response(case, "Panel assigned")


@router.delete("/{case_id}/panelists/{panelist_id}")
async def remove_panelist(case_id: str, panelist_id: str, caller: Caller = Depends(admin_only)):
    """Take a panelist off the case"""
    case = PanelAssignmentEngine.remove_panel(case_id, panelist_id, removed_by=caller["caller_id"])
    return success_response(case, "Panelist removed")
