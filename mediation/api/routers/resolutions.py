"""
Panelist resolution API router

The acting panelist is the caller; panelists never act on behalf of others.
"""
from typing import Optional
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from mediation.api.auth import require_role
from mediation.services.resolution_aggregator import ResolutionAggregator
from mediation.types import Caller
from mediation.utils.response import success_response

router = APIRouter(prefix="/panelist/cases", tags=["resolutions"])

panelist_only = require_role("panelist")


# Request models
class SubmitResolutionRequest(BaseModel):
    resolution_status: str
    resolution_notes: str
    outcome: Optional[str] = None
    recommendations: Optional[str] = None


class UpdateResolutionRequest(BaseModel):
    resolution_status: Optional[str] = None
    resolution_notes: Optional[str] = None
    outcome: Optional[str] = None
    recommendations: Optional[str] = None


@router.post("/{case_id}/resolution/submit")
async def submit_resolution(case_id: str, request: SubmitResolutionRequest, caller: Caller = Depends(panelist_only)):
    """Submit the caller's final resolution"""
    result = ResolutionAggregator.submit(
        case_id,
        caller["caller_id"],
        request.resolution_status,
        request.resolution_notes,
        outcome=request.outcome,
        recommendations=request.recommendations
    )
    return success_response(result, "Resolution submitted")


@router.patch("/{case_id}/resolution/update")
async def update_resolution(case_id: str, request: UpdateResolutionRequest, caller: Caller = Depends(panelist_only)):
    """Edit the caller's unsubmitted draft"""
    result = ResolutionAggregator.update_draft(
        case_id,
        caller["caller_id"],
        resolution_status=request.resolution_status,
        resolution_notes=request.resolution_notes,
        outcome=request.outcome,
        recommendations=request.recommendations
    )
    return success_response(result, "Resolution draft saved")


@router.get("/{case_id}/resolution/status")
async def resolution_status(case_id: str, caller: Caller = Depends(panelist_only)):
    return success_response(ResolutionAggregator.get_status(case_id, caller["caller_id"]))


@router.get("/{case_id}/resolution/my")
async def my_resolution(case_id: str, caller: Caller = Depends(panelist_only)):
    return success_response(ResolutionAggregator.get_my_resolution(case_id, caller["caller_id"]))
