"""
Shared type definitions
"""
from typing import NewType, TypedDict, Optional, List


# Opaque identifiers, generated once and never reused as storage keys
SessionId = NewType("SessionId", str)
CaseId = NewType("CaseId", str)
PanelistId = NewType("PanelistId", str)


class Caller(TypedDict):
    """Identity supplied by the external identity service"""
    caller_id: str
    role: str


class ResolutionProgress(TypedDict):
    """Resolution progress stored on a case"""
    total: int
    submitted: int
    last_updated: Optional[str]


class CompletionCheck(TypedDict):
    """Result of recomputing a case's resolution completeness"""
    all_submitted: bool
    total: int
    submitted: int
    pending: int
    active_panelist_ids: List[str]
    submitted_panelist_ids: List[str]


class DocumentRef(TypedDict, total=False):
    """Opaque object-storage reference attached to a case"""
    name: str
    url: str
    key: str
    size: int
    mimetype: str


class ReconciliationChange(TypedDict):
    """Drift found by the case load repair pass"""
    panelist_id: str
    recorded_load: int
    actual_load: int
    availability_status: str
