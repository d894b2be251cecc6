"""
Exception class unit tests
"""
import pytest
from mediation.utils.exceptions import (
    MediationError,
    NotFoundError,
    ConflictError,
    ForbiddenError,
    ValidationError,
    SessionNotFoundError,
    CaseNotFoundError,
    PartyBAlreadyJoinedError,
    IncompleteSubmissionError,
    InvalidStepError,
    NotAssignedToCaseError,
    PanelistNotAssignedError,
    ConcurrentModificationError,
    CaseNotSubmittedError,
    DatabaseError
)


def test_session_not_found_error():
    error = SessionNotFoundError("sess_123")
    assert error.session_id == "sess_123"
    assert error.code == "SESSION_NOT_FOUND"
    assert error.status_code == 404
    assert "sess_123" in str(error)


def test_case_not_found_is_not_found_kind():
    error = CaseNotFoundError("CASE-2026-000001")
    assert isinstance(error, NotFoundError)
    assert isinstance(error, MediationError)


def test_party_b_already_joined_carries_existing_session():
    error = PartyBAlreadyJoinedError("sess_parent", "sess_winner")
    assert isinstance(error, ConflictError)
    assert error.status_code == 409
    assert error.details == {"existing_session_id": "sess_winner"}


def test_incomplete_submission_lists_missing_steps():
    error = IncompleteSubmissionError({6, 3})
    assert error.code == "INCOMPLETE_SUBMISSION"
    assert error.status_code == 400
    assert error.details == {"missing_steps": [3, 6]}


def test_validation_error_field_becomes_details():
    error = ValidationError("bad value", "email")
    assert error.field == "email"
    assert error.details == {"field": "email"}


def test_invalid_step_error():
    error = InvalidStepError(9)
    assert isinstance(error, ValidationError)
    assert error.code == "INVALID_STEP"
    assert "9" in str(error)


def test_case_not_submitted_is_validation_kind():
    error = CaseNotSubmittedError("sess_parent")
    assert error.status_code == 400
    assert error.code == "CASE_NOT_SUBMITTED"


def test_not_assigned_to_case_is_forbidden():
    error = NotAssignedToCaseError("CASE-1", "pnl_1")
    assert isinstance(error, ForbiddenError)
    assert error.status_code == 403


def test_panelist_not_assigned_is_not_found():
    error = PanelistNotAssignedError("CASE-1", "pnl_1")
    assert error.status_code == 404
    assert error.code == "PANELIST_NOT_ASSIGNED"


def test_concurrent_modification_error():
    error = ConcurrentModificationError("Case")
    assert error.code == "CONCURRENT_MODIFICATION"
    assert "Case" in str(error)


def test_database_error():
    error = DatabaseError("connection refused")
    assert error.status_code == 500
    assert "Database error" in str(error)


def test_errors_are_raisable():
    with pytest.raises(ConflictError):
        raise PartyBAlreadyJoinedError("a", "b")
