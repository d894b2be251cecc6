"""
Party registry

Intake sessions for Party A and Party B, step drafts and finalisation into a
case. The Party B link on a Party A session is claimed with one conditional
UPDATE so that exactly one joiner can ever win it.
"""
from datetime import datetime
from typing import Any, Dict, Optional
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from config.case_mapping import map_conflict_type, map_urgency_level
from config.settings import settings
from mediation.db.connection import db_manager
from mediation.db.models import CaseParty, CaseRecord, SubmissionSession, SubmissionStepData
from mediation.schemas.steps import parse_step_payload
from mediation.services.activity_logger import log_activity
from mediation.services.case_lifecycle import serialize_case
from mediation.types import DocumentRef
from mediation.utils.constants import (
    ALL_STEPS,
    FIRST_STEP,
    LAST_STEP,
    STEP_NAMES,
    ActivityType,
    ActorType,
    CaseStatus,
    Limits,
    SessionRole,
    SessionStatus,
)
from mediation.utils.exceptions import (
    CaseNotSubmittedError,
    ConcurrentModificationError,
    IncompleteSubmissionError,
    InvalidStepError,
    PartyBAlreadyJoinedError,
    SessionAlreadySubmittedError,
    SessionNotFoundError,
)
from mediation.utils.helpers import (
    generate_case_id,
    generate_session_id,
    normalize_text,
    utcnow,
    validate_session_id,
)
from mediation.utils.logger import get_logger

logger = get_logger(__name__)


def serialize_session(intake: SubmissionSession) -> Dict[str, Any]:
    """
    Convert an intake session to its API representation

    Args:
        intake: session row

    Returns:
        session fields plus step drafts keyed by step name
    """
    data = intake.to_json(exclude=("id", "version"))
    data["completed_steps"] = sorted(intake.completed_steps or [])
    data["steps"] = {STEP_NAMES[row.step_id]: row.data for row in intake.step_data}
    return data


def load_session(db_session: Session, session_id: str) -> SubmissionSession:
    """
    Load an intake session by its opaque id

    Raises:
        SessionNotFoundError: no such session
    """
    if not validate_session_id(session_id):
        raise SessionNotFoundError(session_id)

    intake = db_session.query(SubmissionSession).filter(
        SubmissionSession.session_id == session_id
    ).first()
    if intake is None:
        raise SessionNotFoundError(session_id)
    return intake


def _ensure_draft(intake: SubmissionSession):
    if intake.status == SessionStatus.SUBMITTED.value:
        logger.warning(f"Rejected change to submitted session: {intake.session_id}")
        raise SessionAlreadySubmittedError(intake.session_id)


def _claim_party_b_link(db_session: Session, parent_session_id: str, party_b_session_id: str) -> bool:
    """
    Set the parent's linked_session_id only if it is still empty

    Returns:
        True when this call won the link
    """
    result = db_session.execute(
        update(SubmissionSession)
        .where(
            SubmissionSession.session_id == parent_session_id,
            SubmissionSession.linked_session_id.is_(None)
        )
        .values(
            linked_session_id=party_b_session_id,
            version=SubmissionSession.version + 1
        )
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def _title_from_overview(overview: Dict[str, Any]) -> str:
    conflict_type = overview.get("conflict_type") or "Other"
    description = normalize_text(overview.get("description") or "")
    preview = description[:Limits.TITLE_DESCRIPTION_PREVIEW]
    if len(description) > Limits.TITLE_DESCRIPTION_PREVIEW:
        preview += "..."
    return f"{conflict_type} - {preview}"


def _document_ref(upload: Dict[str, Any]) -> DocumentRef:
    """Storage reference of a step 6 upload"""
    return {
        "name": upload.get("file_name"),
        "url": upload.get("upload_url"),
        "key": upload.get("storage_key"),
        "size": upload.get("file_size"),
        "mimetype": upload.get("file_type")
    }


def _new_case_id(db_session: Session) -> str:
    """Pick a case id that is not taken yet"""
    for _ in range(Limits.CASE_ID_ATTEMPTS):
        candidate = generate_case_id(settings.case_id_prefix, digits=Limits.CASE_ID_DIGITS)
        taken = db_session.query(CaseRecord.id).filter(CaseRecord.case_id == candidate).first()
        if taken is None:
            return candidate
    raise ConcurrentModificationError("Case")


class PartyRegistry:
    """Intake session operations"""

    @staticmethod
    def create_session(user_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Open a new Party A draft

        Args:
            user_id: caller id, if authenticated

        Returns:
            serialised session
        """
        def work(db_session: Session) -> Dict[str, Any]:
            intake = SubmissionSession(
                session_id=generate_session_id(),
                user_id=user_id,
                role=SessionRole.PARTY_A.value,
                status=SessionStatus.DRAFT.value,
                current_step=FIRST_STEP,
                completed_steps=[]
            )
            db_session.add(intake)
            db_session.flush()

            logger.info(f"Intake session created: {intake.session_id}")
            return serialize_session(intake)

        return db_manager.run_in_transaction(work, resource="Session")

    @staticmethod
    def get_session(session_id: str) -> Dict[str, Any]:
        """Draft view of a session"""
        with db_manager.get_db_session() as db_session:
            return serialize_session(load_session(db_session, session_id))

    @staticmethod
    def update_session(session_id: str, current_step: int) -> Dict[str, Any]:
        """
        Move a draft to another step

        Args:
            session_id: session id
            current_step: step number 1..6

        Returns:
            serialised session
        """
        if current_step not in ALL_STEPS:
            raise InvalidStepError(current_step)

        def work(db_session: Session) -> Dict[str, Any]:
            intake = load_session(db_session, session_id)
            _ensure_draft(intake)
            intake.current_step = current_step
            intake.updated_at = utcnow()
            db_session.flush()
            return serialize_session(intake)

        return db_manager.run_in_transaction(work, resource="Session")

    @staticmethod
    def save_step_data(session_id: str, step_number: int, payload) -> Dict[str, Any]:
        """
        Validate and store the draft of one step

        Saving the same step again overwrites the draft.

        Args:
            session_id: session id
            step_number: step number 1..6
            payload: raw step payload (dict) or a step schema instance

        Returns:
            serialised session

        Raises:
            SessionNotFoundError: unknown session
            InvalidStepError: step outside 1..6
            ValidationError: payload does not match the step schema
            SessionAlreadySubmittedError: session is no longer a draft
        """
        validated = parse_step_payload(step_number, payload)
        data = validated.model_dump(mode="json")

        def work(db_session: Session) -> Dict[str, Any]:
            intake = load_session(db_session, session_id)
            _ensure_draft(intake)

            row = db_session.query(SubmissionStepData).filter(
                SubmissionStepData.session_id == session_id,
                SubmissionStepData.step_id == step_number
            ).first()
            if row is None:
                row = SubmissionStepData(session_id=session_id, step_id=step_number)
                intake.step_data.append(row)
            row.data = data
            row.completed = True

            intake.completed_steps = sorted(set(intake.completed_steps or []) | {step_number})
            intake.current_step = min(step_number + 1, LAST_STEP)
            intake.updated_at = utcnow()
            db_session.flush()

            logger.info(f"Step {step_number} saved: {session_id}")
            return serialize_session(intake)

        return db_manager.run_in_transaction(work, resource="Session")

    @staticmethod
    def join_as_party_b(parent_session_id: str, user_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Join a submitted case as Party B

        Args:
            parent_session_id: Party A session id
            user_id: caller id, if authenticated

        Returns:
            {"session", "parent_session_id", "case_id"}

        Raises:
            SessionNotFoundError: unknown parent
            CaseNotSubmittedError: parent is not a submitted Party A session
            PartyBAlreadyJoinedError: another Party B already holds the link
        """
        def work(db_session: Session) -> Dict[str, Any]:
            parent = load_session(db_session, parent_session_id)
            if parent.role != SessionRole.PARTY_A.value or parent.status != SessionStatus.SUBMITTED.value:
                logger.warning(f"Join rejected, case not submitted: {parent_session_id}")
                raise CaseNotSubmittedError(parent_session_id)
            if parent.linked_session_id:
                raise PartyBAlreadyJoinedError(parent_session_id, parent.linked_session_id)

            case_id = parent.case_id
            intake = SubmissionSession(
                session_id=generate_session_id(),
                user_id=user_id,
                role=SessionRole.PARTY_B.value,
                parent_session_id=parent_session_id,
                status=SessionStatus.DRAFT.value,
                current_step=FIRST_STEP,
                completed_steps=[]
            )
            db_session.add(intake)
            db_session.flush()

            if not _claim_party_b_link(db_session, parent_session_id, intake.session_id):
                existing = db_session.query(SubmissionSession.linked_session_id).filter(
                    SubmissionSession.session_id == parent_session_id
                ).scalar()
                logger.warning(f"Party B join lost the race: {parent_session_id} -> {existing}")
                raise PartyBAlreadyJoinedError(parent_session_id, existing)
            db_session.expire(parent)

            if case_id:
                case = db_session.query(CaseRecord).filter(CaseRecord.case_id == case_id).first()
                if case is not None:
                    log_activity(
                        db_session, case, ActivityType.PARTY_JOINED,
                        "Party B joined the case",
                        actor_type=ActorType.CLIENT, actor_id=user_id,
                        details={"session_id": intake.session_id}
                    )

            logger.info(f"Party B joined: {parent_session_id} -> {intake.session_id}")
            return {
                "session": serialize_session(intake),
                "parent_session_id": parent_session_id,
                "case_id": case_id
            }

        return db_manager.run_in_transaction(work, resource="Session")

    @staticmethod
    def finalize(
        session_id: str,
        submitted_at: Optional[datetime] = None,
        submitter_user_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Submit a completed session

        Party A submissions create the case; Party B submissions attach to
        the parent's case.

        Args:
            session_id: session id
            submitted_at: submission time (defaults to now)
            submitter_user_id: caller id, recorded as the case creator

        Returns:
            {"session", "case"} for Party A, {"session", "case_id"} for Party B

        Raises:
            SessionNotFoundError: unknown session
            SessionAlreadySubmittedError: already finalised
            IncompleteSubmissionError: some step has no saved draft
        """
        def work(db_session: Session) -> Dict[str, Any]:
            intake = load_session(db_session, session_id)
            _ensure_draft(intake)

            missing = set(ALL_STEPS) - set(intake.completed_steps or [])
            if missing:
                logger.warning(f"Incomplete submission {session_id}: missing {sorted(missing)}")
                raise IncompleteSubmissionError(missing)

            stamp = submitted_at or utcnow()
            intake.status = SessionStatus.SUBMITTED.value
            intake.submitted_at = stamp
            intake.updated_at = utcnow()

            if intake.role == SessionRole.PARTY_B.value:
                return _finalize_party_b(db_session, intake, submitter_user_id)
            return _finalize_party_a(db_session, intake, submitter_user_id)

        return db_manager.run_in_transaction(work, resource="Session")


def _finalize_party_a(db_session: Session, intake: SubmissionSession, submitter_user_id: Optional[str]):
    steps = {row.step_id: row.data for row in intake.step_data}
    overview = steps.get(1, {})
    parties = steps.get(2, {}).get("parties", [])
    uploaded = steps.get(6, {}).get("uploaded_files", [])

    case = CaseRecord(
        case_id=_new_case_id(db_session),
        session_id=intake.session_id,
        linked_session_id=intake.linked_session_id,
        title=_title_from_overview(overview),
        description=overview.get("description"),
        case_type=map_conflict_type(overview.get("conflict_type")),
        priority=map_urgency_level(overview.get("urgency_level")),
        status=CaseStatus.OPEN.value,
        created_by=submitter_user_id or intake.user_id,
        finalized_by=[],
        documents=[_document_ref(doc) for doc in uploaded]
    )
    for party in parties:
        case.parties.append(CaseParty(
            name=party.get("name"),
            contact=party.get("email"),
            phone=party.get("phone"),
            role=party.get("role"),
            relation=party.get("relationship")
        ))
    db_session.add(case)

    try:
        db_session.flush()
    except IntegrityError as e:
        logger.warning(f"Case creation collided for session {intake.session_id}: {str(e)}")
        raise ConcurrentModificationError("Case") from e

    intake.case_id = case.case_id
    log_activity(
        db_session, case, ActivityType.CASE_CREATED,
        f"Case submitted: {case.title}",
        actor_type=ActorType.CLIENT, actor_id=case.created_by,
        details={"session_id": intake.session_id},
        is_important=True
    )
    db_session.flush()

    logger.info(f"Case created: {case.case_id} from {intake.session_id}")
    return {"session": serialize_session(intake), "case": serialize_case(case)}


def _finalize_party_b(db_session: Session, intake: SubmissionSession, submitter_user_id: Optional[str]):
    parent = load_session(db_session, intake.parent_session_id)
    case = db_session.query(CaseRecord).filter(CaseRecord.session_id == parent.session_id).first()

    if case is not None:
        case.linked_session_id = intake.session_id
        case.updated_at = utcnow()
        log_activity(
            db_session, case, ActivityType.PARTY_B_SUBMITTED,
            "Party B submitted their response",
            actor_type=ActorType.CLIENT, actor_id=submitter_user_id or intake.user_id,
            details={"session_id": intake.session_id},
            is_important=True
        )
    db_session.flush()

    logger.info(f"Party B response submitted: {intake.session_id}")
    return {"session": serialize_session(intake), "case_id": case.case_id if case else None}
