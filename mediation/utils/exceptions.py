"""
Custom exception classes

Every business-rule violation carries a machine-readable code, a message and
an HTTP status used by the API error handlers.
"""
from typing import Any, Dict, Optional


class MediationError(Exception):
    """Base exception"""
    code = "MEDIATION_ERROR"
    status_code = 500
    
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details
        super().__init__(message)


# ============================================================================
# Error kinds
# ============================================================================

class NotFoundError(MediationError):
    """Requested record does not exist"""
    code = "NOT_FOUND"
    status_code = 404


class ConflictError(MediationError):
    """Operation conflicts with the current state"""
    code = "CONFLICT"
    status_code = 409


class ForbiddenError(MediationError):
    """Caller is not allowed to act on this record"""
    code = "FORBIDDEN"
    status_code = 403


class ValidationError(MediationError):
    """Malformed input or unmet precondition"""
    code = "VALIDATION_ERROR"
    status_code = 400
    
    def __init__(self, message: str, field: str = None, details: Optional[Dict[str, Any]] = None):
        self.field = field
        if field and details is None:
            details = {"field": field}
        super().__init__(message, details)


class ServerError(MediationError):
    """Unexpected failure"""
    code = "SERVER_ERROR"
    status_code = 500


# ============================================================================
# Not found
# ============================================================================

class SessionNotFoundError(NotFoundError):
    code = "SESSION_NOT_FOUND"
    
    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session not found: {session_id}")


class CaseNotFoundError(NotFoundError):
    code = "CASE_NOT_FOUND"
    
    def __init__(self, case_id: str):
        self.case_id = case_id
        super().__init__(f"Case not found: {case_id}")


class PanelistNotFoundError(NotFoundError):
    code = "PANELIST_NOT_FOUND"
    
    def __init__(self, panelist_id: str):
        self.panelist_id = panelist_id
        super().__init__(f"Panelist not found: {panelist_id}")


class PanelistNotAssignedError(NotFoundError):
    """No active assignment exists for the (case, panelist) pair"""
    code = "PANELIST_NOT_ASSIGNED"
    
    def __init__(self, case_id: str, panelist_id: str):
        self.case_id = case_id
        self.panelist_id = panelist_id
        super().__init__(
            f"Panelist {panelist_id} is not assigned to case {case_id} or was already removed"
        )


# ============================================================================
# Conflict
# ============================================================================

class PartyBAlreadyJoinedError(ConflictError):
    code = "PARTY_B_ALREADY_JOINED"
    
    def __init__(self, parent_session_id: str, existing_session_id: str):
        self.parent_session_id = parent_session_id
        self.existing_session_id = existing_session_id
        super().__init__(
            "Party B has already joined this case",
            {"existing_session_id": existing_session_id}
        )


class SessionAlreadySubmittedError(ConflictError):
    code = "SESSION_ALREADY_SUBMITTED"
    
    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session has already been submitted: {session_id}")


class PanelistAlreadyAssignedError(ConflictError):
    code = "PANELIST_ALREADY_ASSIGNED"
    
    def __init__(self, case_id: str, panelist_ids):
        self.case_id = case_id
        self.panelist_ids = list(panelist_ids)
        super().__init__(
            "One or more panelists are already assigned to this case",
            {"panelist_ids": self.panelist_ids}
        )


class PanelistAtCapacityError(ConflictError):
    code = "PANELIST_AT_CAPACITY"
    
    def __init__(self, panelist_ids):
        self.panelist_ids = list(panelist_ids)
        super().__init__(
            "One or more panelists have reached their maximum case load",
            {"panelist_ids": self.panelist_ids}
        )


class PanelistHasActiveCasesError(ConflictError):
    code = "PANELIST_HAS_ACTIVE_CASES"
    
    def __init__(self, panelist_id: str, active_cases: int):
        self.panelist_id = panelist_id
        self.active_cases = active_cases
        super().__init__(
            f"Cannot deactivate panelist with {active_cases} active case(s)",
            {"active_cases": active_cases}
        )


class PanelistAlreadyExistsError(ConflictError):
    code = "PANELIST_ALREADY_EXISTS"
    
    def __init__(self, email: str):
        self.email = email
        super().__init__("A panelist with this email already exists")


class ResolutionAlreadySubmittedError(ConflictError):
    code = "RESOLUTION_ALREADY_SUBMITTED"
    
    def __init__(self, case_id: str, panelist_id: str):
        self.case_id = case_id
        self.panelist_id = panelist_id
        super().__init__("Resolution has already been finalized. Contact admin to make changes.")


class ConcurrentModificationError(ConflictError):
    code = "CONCURRENT_MODIFICATION"
    
    def __init__(self, resource: str):
        self.resource = resource
        super().__init__(f"{resource} was modified concurrently, retry the operation")


# ============================================================================
# Forbidden
# ============================================================================

class NotAssignedToCaseError(ForbiddenError):
    code = "NOT_ASSIGNED_TO_CASE"
    
    def __init__(self, case_id: str, panelist_id: str):
        self.case_id = case_id
        self.panelist_id = panelist_id
        super().__init__("You are not assigned to this case")


# ============================================================================
# Validation
# ============================================================================

class CaseNotSubmittedError(ValidationError):
    code = "CASE_NOT_SUBMITTED"
    
    def __init__(self, parent_session_id: str):
        self.parent_session_id = parent_session_id
        super().__init__("The case must be submitted before Party B can join")


class IncompleteSubmissionError(ValidationError):
    code = "INCOMPLETE_SUBMISSION"
    
    def __init__(self, missing_steps):
        self.missing_steps = sorted(missing_steps)
        super().__init__(
            "All steps must be completed before submission",
            details={"missing_steps": self.missing_steps}
        )


class InvalidStepError(ValidationError):
    code = "INVALID_STEP"
    
    def __init__(self, step_number):
        self.step_number = step_number
        super().__init__(f"Invalid step number: {step_number}", "step")


class InvalidStatusError(ValidationError):
    code = "INVALID_STATUS"
    
    def __init__(self, status: str):
        super().__init__(f"Invalid status: {status}", "status")


class InvalidPriorityError(ValidationError):
    code = "INVALID_PRIORITY"
    
    def __init__(self, priority: str):
        super().__init__(f"Invalid priority level: {priority}", "priority")


class PanelistNotAvailableError(ValidationError):
    code = "PANELIST_NOT_AVAILABLE"
    
    def __init__(self, panelist_ids):
        self.panelist_ids = list(panelist_ids)
        super().__init__(
            "One or more panelists not found or inactive",
            details={"panelist_ids": self.panelist_ids}
        )


# ============================================================================
# Server
# ============================================================================

class DatabaseError(ServerError):
    code = "DATABASE_ERROR"
    
    def __init__(self, message: str):
        super().__init__(f"Database error: {message}")
