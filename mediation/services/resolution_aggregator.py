"""
Resolution aggregator

Each actively assigned panelist records one resolution per case. The case is
resolved the first time every active panelist has submitted.
"""
from typing import Any, Dict, Optional
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from mediation.db.connection import db_manager
from mediation.db.models import CaseRecord, CaseResolution, Panelist
from mediation.services.activity_logger import log_activity
from mediation.services.case_lifecycle import load_case, resolution_progress, touch
from mediation.types import CompletionCheck
from mediation.utils.constants import (
    SUBMITTABLE_RESOLUTION_STATUSES,
    FINISHED_CASE_STATUSES,
    ActivityType,
    ActorType,
    CaseResolutionStatus,
    CaseStatus,
    ResolutionStatus,
    enum_values,
)
from mediation.utils.exceptions import (
    ConcurrentModificationError,
    NotAssignedToCaseError,
    ResolutionAlreadySubmittedError,
    ValidationError,
)
from mediation.utils.helpers import utcnow
from mediation.utils.logger import get_logger

logger = get_logger(__name__)


def compute_resolution_status(submitted: int, total: int) -> str:
    """
    Aggregated resolution status of a case

    Args:
        submitted: submitted resolutions among active panelists
        total: active panelists

    Returns:
        not_started, partial or complete
    """
    if total <= 0 or submitted <= 0:
        return CaseResolutionStatus.NOT_STARTED.value
    if submitted >= total:
        return CaseResolutionStatus.COMPLETE.value
    return CaseResolutionStatus.PARTIAL.value


def completion_of(case: CaseRecord) -> CompletionCheck:
    """Active set vs. submitted set, read from the loaded case"""
    active_ids = case.active_panelist_ids()
    submitted_ids = [
        r.panelist_id for r in case.resolutions
        if r.is_submitted and r.panelist_id in active_ids
    ]
    total = len(active_ids)
    submitted = len(submitted_ids)
    return {
        "all_submitted": total > 0 and submitted == total,
        "total": total,
        "submitted": submitted,
        "pending": total - submitted,
        "active_panelist_ids": active_ids,
        "submitted_panelist_ids": submitted_ids
    }


def refresh_case_resolution(
    db_session: Session,
    case: CaseRecord,
    triggering_panelist_id: Optional[str] = None
) -> CompletionCheck:
    """
    Recompute resolution progress and resolve the case when it first completes

    Only the panelist whose submission completed the case gets credited with a
    resolved case; completions caused by a removal credit nobody.

    Args:
        db_session: DB session of the calling operation
        case: case being changed
        triggering_panelist_id: panelist whose submission triggered the refresh

    Returns:
        completion check
    """
    check = completion_of(case)
    case.resolution_total = check["total"]
    case.resolution_submitted = check["submitted"]
    case.resolution_status = compute_resolution_status(check["submitted"], check["total"])
    case.resolution_updated_at = utcnow()
    touch(case)

    if check["all_submitted"] and case.status not in FINISHED_CASE_STATUSES:
        previous = case.status
        case.status = CaseStatus.RESOLVED.value
        case.finalized_at = utcnow()
        log_activity(
            db_session, case, ActivityType.CASE_RESOLVED,
            "All panelists submitted their resolutions",
            details={"from": previous, "panelists": check["submitted_panelist_ids"]},
            is_important=True
        )

        if triggering_panelist_id:
            db_session.execute(
                update(Panelist)
                .where(Panelist.panelist_id == triggering_panelist_id)
                .values(cases_resolved=Panelist.cases_resolved + 1)
                .execution_options(synchronize_session=False)
            )

        logger.info(f"Case resolved: {case.case_id}")

    return check


def serialize_resolution(resolution: CaseResolution, case_id: str) -> Dict[str, Any]:
    data = resolution.to_json(exclude=("id", "case_pk"))
    data["case_id"] = case_id
    return data


def _ensure_assigned(case: CaseRecord, panelist_id: str):
    if panelist_id not in case.active_panelist_ids():
        logger.warning(f"Panelist {panelist_id} is not assigned to {case.case_id}")
        raise NotAssignedToCaseError(case.case_id, panelist_id)


def _find_resolution(case: CaseRecord, panelist_id: str) -> Optional[CaseResolution]:
    for resolution in case.resolutions:
        if resolution.panelist_id == panelist_id:
            return resolution
    return None


def _flush_resolution(db_session: Session):
    # a second insert for the same (case, panelist) pair lost a race
    try:
        db_session.flush()
    except IntegrityError as e:
        raise ConcurrentModificationError("Resolution") from e


class ResolutionAggregator:
    """Panelist resolution operations"""

    @staticmethod
    def submit(
        case_id: str,
        panelist_id: str,
        resolution_status: str,
        resolution_notes: str,
        outcome: Optional[str] = None,
        recommendations: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Submit a panelist's final resolution

        Args:
            case_id: case id
            panelist_id: submitting panelist
            resolution_status: resolved or no_outcome
            resolution_notes: required notes
            outcome: optional outcome text
            recommendations: optional recommendations

        Returns:
            {"resolution", "case_status", "resolution_status", "resolution_progress", "all_submitted"}

        Raises:
            ValidationError: bad status or missing notes
            CaseNotFoundError: unknown case
            NotAssignedToCaseError: panelist has no active assignment
            ResolutionAlreadySubmittedError: resolution was already submitted
        """
        if resolution_status not in SUBMITTABLE_RESOLUTION_STATUSES:
            raise ValidationError(
                "Resolution status must be resolved or no_outcome",
                "resolution_status"
            )
        if not resolution_notes or not resolution_notes.strip():
            raise ValidationError("Resolution notes are required", "resolution_notes")

        def work(db_session: Session) -> Dict[str, Any]:
            case = load_case(db_session, case_id)
            _ensure_assigned(case, panelist_id)

            resolution = _find_resolution(case, panelist_id)
            if resolution is not None and resolution.is_submitted:
                logger.warning(f"Duplicate resolution submit: {case_id} by {panelist_id}")
                raise ResolutionAlreadySubmittedError(case_id, panelist_id)
            if resolution is None:
                resolution = CaseResolution(panelist_id=panelist_id)
                case.resolutions.append(resolution)

            now = utcnow()
            resolution.resolution_status = resolution_status
            resolution.resolution_notes = resolution_notes.strip()
            if outcome is not None:
                resolution.outcome = outcome
            if recommendations is not None:
                resolution.recommendations = recommendations
            resolution.is_submitted = True
            resolution.submitted_at = now
            resolution.last_modified_at = now

            if panelist_id not in (case.finalized_by or []):
                case.finalized_by = list(case.finalized_by or []) + [panelist_id]

            log_activity(
                db_session, case, ActivityType.RESOLUTION_SUBMITTED,
                f"Panelist {panelist_id} submitted a resolution",
                actor_type=ActorType.PANELIST, actor_id=panelist_id,
                details={"resolution_status": resolution_status}
            )
            check = refresh_case_resolution(db_session, case, panelist_id)
            _flush_resolution(db_session)

            logger.info(
                f"Resolution submitted: {case_id} by {panelist_id} "
                f"({check['submitted']}/{check['total']})"
            )
            return {
                "resolution": serialize_resolution(resolution, case_id),
                "case_status": case.status,
                "resolution_status": case.resolution_status,
                "resolution_progress": resolution_progress(case),
                "all_submitted": check["all_submitted"]
            }

        return db_manager.run_in_transaction(work, resource="Case")

    @staticmethod
    def update_draft(
        case_id: str,
        panelist_id: str,
        resolution_status: Optional[str] = None,
        resolution_notes: Optional[str] = None,
        outcome: Optional[str] = None,
        recommendations: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Create or edit an unsubmitted resolution draft

        Returns:
            serialised resolution
        """
        if resolution_status is not None and resolution_status not in enum_values(ResolutionStatus):
            raise ValidationError(f"Invalid resolution status: {resolution_status}", "resolution_status")

        def work(db_session: Session) -> Dict[str, Any]:
            case = load_case(db_session, case_id)
            _ensure_assigned(case, panelist_id)

            resolution = _find_resolution(case, panelist_id)
            if resolution is not None and resolution.is_submitted:
                raise ResolutionAlreadySubmittedError(case_id, panelist_id)
            if resolution is None:
                resolution = CaseResolution(
                    panelist_id=panelist_id,
                    resolution_status=ResolutionStatus.PENDING.value,
                    resolution_notes=""
                )
                case.resolutions.append(resolution)

            if resolution_status is not None:
                resolution.resolution_status = resolution_status
            if resolution_notes is not None:
                resolution.resolution_notes = resolution_notes
            if outcome is not None:
                resolution.outcome = outcome
            if recommendations is not None:
                resolution.recommendations = recommendations
            resolution.last_modified_at = utcnow()
            # a submit committed since the check above makes the case version stale
            touch(case)

            log_activity(
                db_session, case, ActivityType.RESOLUTION_UPDATED,
                f"Panelist {panelist_id} updated a resolution draft",
                actor_type=ActorType.PANELIST, actor_id=panelist_id
            )
            _flush_resolution(db_session)
            return serialize_resolution(resolution, case_id)

        return db_manager.run_in_transaction(work, resource="Case")

    @staticmethod
    def check_complete(case_id: str) -> CompletionCheck:
        """Recompute completeness from the current assignments and resolutions"""
        with db_manager.get_db_session() as db_session:
            return completion_of(load_case(db_session, case_id))

    @staticmethod
    def get_status(case_id: str, panelist_id: str) -> Dict[str, Any]:
        """
        Resolution progress of a case as seen by an assigned panelist

        Args:
            case_id: case id
            panelist_id: requesting panelist

        Returns:
            progress plus the caller's own resolution, if any
        """
        with db_manager.get_db_session() as db_session:
            case = load_case(db_session, case_id)
            _ensure_assigned(case, panelist_id)
            check = completion_of(case)
            mine = _find_resolution(case, panelist_id)

            return {
                "case_id": case_id,
                "case_status": case.status,
                "resolution_status": compute_resolution_status(check["submitted"], check["total"]),
                "total": check["total"],
                "submitted": check["submitted"],
                "pending": check["pending"],
                "all_submitted": check["all_submitted"],
                "my_resolution": serialize_resolution(mine, case_id) if mine else None
            }

    @staticmethod
    def get_my_resolution(case_id: str, panelist_id: str) -> Optional[Dict[str, Any]]:
        """The caller's resolution for a case, or None when nothing was saved yet"""
        with db_manager.get_db_session() as db_session:
            case = load_case(db_session, case_id)
            _ensure_assigned(case, panelist_id)
            mine = _find_resolution(case, panelist_id)
            return serialize_resolution(mine, case_id) if mine else None
