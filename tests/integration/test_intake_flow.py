"""
Intake flow integration tests (Party A submission, Party B join)
"""
import pytest
from mediation.db.connection import db_manager
from mediation.db.models import CaseRecord, SubmissionSession
from mediation.services.case_lifecycle import CaseLifecycle
from mediation.services.party_registry import PartyRegistry, _claim_party_b_link
from mediation.utils.exceptions import (
    CaseNotSubmittedError,
    IncompleteSubmissionError,
    InvalidStepError,
    PartyBAlreadyJoinedError,
    SessionAlreadySubmittedError,
    SessionNotFoundError,
    ValidationError
)


def test_create_session_starts_a_party_a_draft():
    session = PartyRegistry.create_session(user_id="user_a")
    assert session["session_id"].startswith("sess_")
    assert session["role"] == "party_a"
    assert session["status"] == "draft"
    assert session["current_step"] == 1
    assert session["completed_steps"] == []


def test_save_step_data_advances_current_step(step_payloads):
    session_id = PartyRegistry.create_session()["session_id"]

    session = PartyRegistry.save_step_data(session_id, 1, step_payloads[1])
    assert session["completed_steps"] == [1]
    assert session["current_step"] == 2
    assert session["steps"]["case_overview"]["conflict_type"] == "Land Dispute"

    session = PartyRegistry.save_step_data(session_id, 6, step_payloads[6])
    assert session["completed_steps"] == [1, 6]
    assert session["current_step"] == 6


def test_saving_a_step_again_overwrites_the_draft(step_payloads):
    session_id = PartyRegistry.create_session()["session_id"]
    PartyRegistry.save_step_data(session_id, 4, step_payloads[4])

    session = PartyRegistry.save_step_data(session_id, 4, {"primary_goals": ["shared driveway schedule"]})

    assert session["completed_steps"] == [4]
    assert session["steps"]["desired_outcomes"]["primary_goals"] == ["shared driveway schedule"]


def test_invalid_step_payload_is_rejected():
    session_id = PartyRegistry.create_session()["session_id"]
    with pytest.raises(ValidationError):
        PartyRegistry.save_step_data(session_id, 2, {"parties": []})

    assert PartyRegistry.get_session(session_id)["completed_steps"] == []


def test_step_for_unknown_session():
    with pytest.raises(SessionNotFoundError):
        PartyRegistry.save_step_data("sess_missing_123", 1, {
            "conflict_type": "Other", "description": "x", "urgency_level": "low"
        })


def test_update_session_moves_current_step():
    session_id = PartyRegistry.create_session()["session_id"]
    assert PartyRegistry.update_session(session_id, 4)["current_step"] == 4

    with pytest.raises(InvalidStepError):
        PartyRegistry.update_session(session_id, 7)


def test_finalize_party_a_creates_case(complete_session):
    """Party A submits all six steps and a case is opened"""
    session_id = complete_session()

    result = PartyRegistry.finalize(session_id, submitter_user_id="user_a")
    case = result["case"]

    assert result["session"]["status"] == "submitted"
    assert result["session"]["case_id"] == case["case_id"]
    assert case["case_id"].startswith("CASE-")
    assert case["status"] == "open"
    assert case["case_type"] == "land"
    assert case["priority"] == "high"
    assert case["created_by"] == "user_a"
    assert case["session_id"] == session_id
    assert case["title"].startswith("Land Dispute - Boundary disagreement")
    assert case["title"].endswith("...")
    assert [p["name"] for p in case["parties"]] == ["Alice Moyo", "Brian Moyo"]
    assert case["documents"] == [{
        "name": "survey.pdf",
        "url": "https://files.example.com/survey.pdf",
        "key": "cases/survey.pdf",
        "size": 20480,
        "mimetype": "application/pdf"
    }]
    assert case["resolution_status"] == "not_started"


def test_unknown_conflict_type_falls_back(complete_session, step_payloads):
    session_id = complete_session()
    PartyRegistry.save_step_data(session_id, 1, {
        "conflict_type": "Noise", "description": "Loud music", "urgency_level": "whenever"
    })

    case = PartyRegistry.finalize(session_id)["case"]

    assert case["case_type"] == "family"
    assert case["priority"] == "medium"
    assert case["title"] == "Noise - Loud music"


def test_finalize_requires_every_step(step_payloads):
    session_id = PartyRegistry.create_session()["session_id"]
    for step in (1, 2, 3, 4):
        PartyRegistry.save_step_data(session_id, step, step_payloads[step])

    with pytest.raises(IncompleteSubmissionError) as exc_info:
        PartyRegistry.finalize(session_id)
    assert exc_info.value.details["missing_steps"] == [5, 6]


def test_submitted_session_is_immutable(complete_session, step_payloads):
    session_id = complete_session()
    PartyRegistry.finalize(session_id)

    with pytest.raises(SessionAlreadySubmittedError):
        PartyRegistry.finalize(session_id)
    with pytest.raises(SessionAlreadySubmittedError):
        PartyRegistry.save_step_data(session_id, 1, step_payloads[1])

    with db_manager.get_db_session() as db_session:
        assert db_session.query(CaseRecord).count() == 1


def test_party_b_joins_submitted_case(submitted_case):
    """Party B joins once; the second joiner is told who won"""
    parent_id, case = submitted_case()

    joined = PartyRegistry.join_as_party_b(parent_id, user_id="user_b")
    party_b = joined["session"]

    assert party_b["role"] == "party_b"
    assert party_b["parent_session_id"] == parent_id
    assert party_b["status"] == "draft"
    assert joined["case_id"] == case["case_id"]
    assert PartyRegistry.get_session(parent_id)["linked_session_id"] == party_b["session_id"]

    with pytest.raises(PartyBAlreadyJoinedError) as exc_info:
        PartyRegistry.join_as_party_b(parent_id, user_id="user_c")
    assert exc_info.value.details == {"existing_session_id": party_b["session_id"]}

    assert PartyRegistry.get_session(parent_id)["linked_session_id"] == party_b["session_id"]
    with db_manager.get_db_session() as db_session:
        assert db_session.query(SubmissionSession).filter(
            SubmissionSession.role == "party_b"
        ).count() == 1


def test_link_claim_only_succeeds_while_empty(submitted_case):
    parent_id, _ = submitted_case()
    winner = PartyRegistry.join_as_party_b(parent_id)["session"]["session_id"]

    with db_manager.get_db_session() as db_session:
        assert _claim_party_b_link(db_session, parent_id, "sess_latecomer_0001") is False

    assert PartyRegistry.get_session(parent_id)["linked_session_id"] == winner


def test_join_requires_submitted_parent():
    draft_id = PartyRegistry.create_session()["session_id"]

    with pytest.raises(CaseNotSubmittedError):
        PartyRegistry.join_as_party_b(draft_id)
    with pytest.raises(SessionNotFoundError):
        PartyRegistry.join_as_party_b("sess_does_not_exist")

    with db_manager.get_db_session() as db_session:
        assert db_session.query(SubmissionSession).count() == 1


def test_party_b_cannot_be_a_parent(submitted_case, complete_session):
    parent_id, _ = submitted_case()
    party_b_id = PartyRegistry.join_as_party_b(parent_id)["session"]["session_id"]
    complete_session(session_id=party_b_id)
    PartyRegistry.finalize(party_b_id)

    with pytest.raises(CaseNotSubmittedError):
        PartyRegistry.join_as_party_b(party_b_id)


def test_party_b_submission_attaches_to_parent_case(submitted_case, complete_session):
    parent_id, case = submitted_case()
    party_b_id = PartyRegistry.join_as_party_b(parent_id, user_id="user_b")["session"]["session_id"]
    complete_session(session_id=party_b_id)

    result = PartyRegistry.finalize(party_b_id, submitter_user_id="user_b")

    assert result["session"]["status"] == "submitted"
    assert result["case_id"] == case["case_id"]

    details = CaseLifecycle.get_full_details(case["case_id"])
    assert details["case"]["linked_session_id"] == party_b_id
    assert details["has_party_b_response"] is True
    assert details["party_b"]["steps"]["case_overview"]["conflict_type"] == "Land Dispute"

    activity_types = [a["activity_type"] for a in CaseLifecycle.get_timeline(case["case_id"])]
    assert "party_joined" in activity_types
    assert "party_b_submitted" in activity_types

    with db_manager.get_db_session() as db_session:
        assert db_session.query(CaseRecord).count() == 1
