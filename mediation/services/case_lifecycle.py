"""
Case lifecycle service

Case store access plus the administrative status transitions:

    open --assign--> assigned --assign_panel--> panel_assigned --(resolution complete)--> resolved --close--> closed
    assigned --unassign--> open
    panel_assigned --(last active panelist removed)--> assigned
"""
from typing import Any, Dict, List, Optional
from sqlalchemy.orm import Session
from mediation.db.connection import db_manager
from mediation.db.models import (
    CaseRecord,
    CaseNote,
    CasePanelistAssignment,
    SubmissionSession,
)
from mediation.services.activity_logger import log_activity, list_activities
from mediation.types import ResolutionProgress
from mediation.utils.constants import (
    ActivityType,
    ActorType,
    CasePriority,
    CaseStatus,
    STEP_NAMES,
    enum_values,
)
from mediation.utils.exceptions import (
    CaseNotFoundError,
    ForbiddenError,
    InvalidPriorityError,
    InvalidStatusError,
    ValidationError,
)
from mediation.utils.helpers import utcnow, format_datetime
from mediation.utils.logger import get_logger

logger = get_logger(__name__)


# ============================================================================
# Serialisation
# ============================================================================

def serialize_assignment(assignment: CasePanelistAssignment) -> Dict[str, Any]:
    return assignment.to_json(exclude=("id", "case_pk"))


def resolution_progress(case: CaseRecord) -> ResolutionProgress:
    """Stored resolution counters of a case"""
    return {
        "total": case.resolution_total or 0,
        "submitted": case.resolution_submitted or 0,
        "last_updated": format_datetime(case.resolution_updated_at)
    }


def serialize_case(case: CaseRecord, include_children: bool = True) -> Dict[str, Any]:
    """
    Convert a case to its API representation

    Args:
        case: case row
        include_children: include parties, panel and notes

    Returns:
        JSON-serialisable dict
    """
    data = case.to_json(exclude=(
        "id",
        "version",
        "resolution_total",
        "resolution_submitted",
        "resolution_updated_at",
    ))
    data["resolution_progress"] = resolution_progress(case)
    data["finalized_by"] = list(case.finalized_by or [])
    data["documents"] = list(case.documents or [])

    if include_children:
        data["parties"] = [party.to_json(exclude=("id", "case_pk")) for party in case.parties]
        data["assigned_panelists"] = [serialize_assignment(a) for a in case.assignments]
        data["notes"] = [note.to_json(exclude=("id", "case_pk")) for note in case.notes]

    return data


def serialize_submission(session: SubmissionSession) -> Dict[str, Any]:
    """Party submission with its step data keyed by step name"""
    return {
        "session_id": session.session_id,
        "role": session.role,
        "status": session.status,
        "submitted_at": format_datetime(session.submitted_at),
        "steps": {STEP_NAMES[row.step_id]: row.data for row in session.step_data}
    }


# ============================================================================
# Loaders
# ============================================================================

def load_case(db_session: Session, case_id: str) -> CaseRecord:
    """
    Load a case by its public id

    Raises:
        CaseNotFoundError: no such case
    """
    case = db_session.query(CaseRecord).filter(CaseRecord.case_id == case_id).first()
    if case is None:
        raise CaseNotFoundError(case_id)
    return case


def ensure_case_access(case: CaseRecord, caller_id: Optional[str], role: Optional[str]):
    """
    Clients may only see cases they created

    Raises:
        ForbiddenError: caller is a client and not the case creator
    """
    if role == "client" and case.created_by != caller_id:
        raise ForbiddenError("Not authorized to access this case")


def touch(case: CaseRecord):
    """Mark the case row as changed so its version is checked on flush"""
    case.updated_at = utcnow()


class CaseLifecycle:
    """Case store operations"""

    @staticmethod
    def get_case(case_id: str, caller_id: Optional[str] = None, role: Optional[str] = None) -> Dict[str, Any]:
        """
        Get a case

        Args:
            case_id: case id
            caller_id: caller id (for client access checks)
            role: caller role

        Returns:
            serialised case
        """
        with db_manager.get_db_session() as db_session:
            case = load_case(db_session, case_id)
            ensure_case_access(case, caller_id, role)
            return serialize_case(case)

    @staticmethod
    def get_full_details(case_id: str) -> Dict[str, Any]:
        """
        Case with both parties' intake submissions

        Args:
            case_id: case id

        Returns:
            {"case", "party_a", "party_b", "has_party_b_response"}
        """
        with db_manager.get_db_session() as db_session:
            case = load_case(db_session, case_id)
            party_a = db_session.query(SubmissionSession).filter(
                SubmissionSession.session_id == case.session_id
            ).first()

            party_b = None
            if party_a is not None and party_a.linked_session_id:
                party_b = db_session.query(SubmissionSession).filter(
                    SubmissionSession.session_id == party_a.linked_session_id
                ).first()

            return {
                "case": serialize_case(case),
                "party_a": serialize_submission(party_a) if party_a else None,
                "party_b": serialize_submission(party_b) if party_b else None,
                "has_party_b_response": bool(party_b and party_b.status == "submitted")
            }

    @staticmethod
    def update_status(
        case_id: str,
        status: str,
        actor_id: Optional[str] = None,
        resolution_details: Optional[str] = None,
        admin_feedback: Optional[str] = None,
        next_steps: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Set the case status

        Resolution details are only recorded when the new status is resolved
        or closed; admin feedback and next steps become prefixed notes.

        Args:
            case_id: case id
            status: target status
            actor_id: admin performing the change
            resolution_details: note text for resolved/closed
            admin_feedback: feedback note text
            next_steps: next steps note text

        Returns:
            serialised case

        Raises:
            InvalidStatusError: status outside the enumeration
        """
        if status not in enum_values(CaseStatus):
            raise InvalidStatusError(status)

        def work(db_session: Session) -> Dict[str, Any]:
            case = load_case(db_session, case_id)
            previous = case.status
            case.status = status
            touch(case)

            if status in (CaseStatus.RESOLVED.value, CaseStatus.CLOSED.value) and resolution_details:
                case.notes.append(CaseNote(content=resolution_details, created_by=actor_id))
            if admin_feedback:
                case.notes.append(CaseNote(content=f"Admin Feedback: {admin_feedback}", created_by=actor_id))
            if next_steps:
                case.notes.append(CaseNote(content=f"Next Steps: {next_steps}", created_by=actor_id))

            log_activity(
                db_session, case, ActivityType.STATUS_CHANGED,
                f"Status changed from {previous} to {status}",
                actor_type=ActorType.ADMIN, actor_id=actor_id,
                details={"from": previous, "to": status}
            )
            db_session.flush()

            logger.info(f"Case status updated: {case_id} {previous} -> {status}")
            return serialize_case(case)

        return db_manager.run_in_transaction(work, resource="Case")

    @staticmethod
    def assign(case_id: str, assigned_to: str, actor_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Assign the case to an admin/mediator

        Args:
            case_id: case id
            assigned_to: id of the admin taking the case
            actor_id: admin performing the change

        Returns:
            serialised case
        """
        if not assigned_to:
            raise ValidationError("assigned_to is required", "assigned_to")

        def work(db_session: Session) -> Dict[str, Any]:
            case = load_case(db_session, case_id)
            case.assigned_to = assigned_to
            case.assigned_at = utcnow()
            case.status = CaseStatus.ASSIGNED.value
            touch(case)

            log_activity(
                db_session, case, ActivityType.CASE_ASSIGNED,
                f"Case assigned to {assigned_to}",
                actor_type=ActorType.ADMIN, actor_id=actor_id,
                details={"assigned_to": assigned_to}
            )
            db_session.flush()

            logger.info(f"Case assigned: {case_id} -> {assigned_to}")
            return serialize_case(case)

        return db_manager.run_in_transaction(work, resource="Case")

    @staticmethod
    def unassign(case_id: str, actor_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Clear the case assignee and reopen the case

        Args:
            case_id: case id
            actor_id: admin performing the change

        Returns:
            serialised case
        """
        def work(db_session: Session) -> Dict[str, Any]:
            case = load_case(db_session, case_id)
            case.assigned_to = None
            case.assigned_at = None
            case.status = CaseStatus.OPEN.value
            touch(case)

            log_activity(
                db_session, case, ActivityType.CASE_UNASSIGNED,
                "Case unassigned",
                actor_type=ActorType.ADMIN, actor_id=actor_id
            )
            db_session.flush()

            logger.info(f"Case unassigned: {case_id}")
            return serialize_case(case)

        return db_manager.run_in_transaction(work, resource="Case")

    @staticmethod
    def update_priority(case_id: str, priority: str, actor_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Change the case priority

        Raises:
            InvalidPriorityError: priority outside the enumeration
        """
        if priority not in enum_values(CasePriority):
            raise InvalidPriorityError(priority)

        def work(db_session: Session) -> Dict[str, Any]:
            case = load_case(db_session, case_id)
            previous = case.priority
            case.priority = priority
            touch(case)

            log_activity(
                db_session, case, ActivityType.PRIORITY_CHANGED,
                f"Priority changed from {previous} to {priority}",
                actor_type=ActorType.ADMIN, actor_id=actor_id,
                details={"from": previous, "to": priority}
            )
            db_session.flush()
            return serialize_case(case)

        return db_manager.run_in_transaction(work, resource="Case")

    @staticmethod
    def add_note(
        case_id: str,
        content: str,
        note_type: Optional[str] = None,
        author_id: Optional[str] = None,
        author_type: ActorType = ActorType.ADMIN
    ) -> Dict[str, Any]:
        """
        Append a note without changing the case status

        Args:
            case_id: case id
            content: note text
            note_type: optional tag rendered as "[type] content"
            author_id: author id
            author_type: author kind

        Returns:
            {"case", "added_note"}
        """
        if not content or not content.strip():
            raise ValidationError("Note content is required", "content")

        formatted = f"[{note_type}] {content.strip()}" if note_type else content.strip()

        def work(db_session: Session) -> Dict[str, Any]:
            case = load_case(db_session, case_id)
            note = CaseNote(content=formatted, created_by=author_id, created_at=utcnow())
            case.notes.append(note)
            touch(case)

            log_activity(
                db_session, case, ActivityType.NOTE_ADDED,
                "Note added",
                actor_type=author_type, actor_id=author_id
            )
            db_session.flush()
            return {
                "case": serialize_case(case),
                "added_note": note.to_json(exclude=("id", "case_pk"))
            }

        return db_manager.run_in_transaction(work, resource="Case")

    @staticmethod
    def get_timeline(case_id: str) -> List[Dict[str, Any]]:
        """Activity entries of a case, newest first"""
        with db_manager.get_db_session() as db_session:
            case = load_case(db_session, case_id)
            return list_activities(db_session, case)
