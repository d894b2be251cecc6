"""
Panelist administration API router
"""
from typing import List, Optional
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from mediation.api.auth import require_role
from mediation.services.panel_assignment import PanelAssignmentEngine
from mediation.services.panelist_directory import PanelistDirectory
from mediation.utils.response import success_response

router = APIRouter(
    prefix="/panelists",
    tags=["panelists"],
    dependencies=[Depends(require_role("admin"))]
)


# Request models
class CreatePanelistRequest(BaseModel):
    name: str
    email: str
    occupation: Optional[str] = None
    phone: Optional[str] = None
    specializations: List[str] = Field(default_factory=list)
    max_cases: Optional[int] = None


class AvailabilityRequest(BaseModel):
    availability: str


class CapacityRequest(BaseModel):
    max_cases: int


@router.post("")
async def create_panelist(request: CreatePanelistRequest):
    panelist = PanelistDirectory.create_panelist(
        name=request.name,
        email=request.email,
        occupation=request.occupation,
        phone=request.phone,
        specializations=request.specializations,
        max_cases=request.max_cases
    )
    return success_response(panelist, "Panelist created")


@router.get("/available")
async def list_available(specialization: Optional[str] = None):
    """Panelists with free capacity, least loaded first"""
    return success_response(PanelAssignmentEngine.list_available_panelists(specialization))


@router.get("/{panelist_id}")
async def get_panelist(panelist_id: str):
    return success_response(PanelistDirectory.get_panelist(panelist_id))


@router.patch("/{panelist_id}/availability")
async def update_availability(panelist_id: str, request: AvailabilityRequest):
    return success_response(PanelistDirectory.update_availability(panelist_id, request.availability))


@router.patch("/{panelist_id}/capacity")
async def update_capacity(panelist_id: str, request: CapacityRequest):
    return success_response(PanelistDirectory.update_capacity(panelist_id, request.max_cases))


@router.delete("/{panelist_id}")
async def deactivate_panelist(panelist_id: str):
    return success_response(PanelistDirectory.deactivate_panelist(panelist_id), "Panelist deactivated")


@router.get("/{panelist_id}/cases")
async def get_panelist_cases(panelist_id: str):
    return success_response(PanelAssignmentEngine.get_panelist_cases(panelist_id))
