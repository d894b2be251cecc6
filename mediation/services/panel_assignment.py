"""
Panel assignment engine

Assigns panelists to cases and keeps each panelist's case load in step with
their active assignments. The case change and every load adjustment are one
unit of work.
"""
from typing import Any, Dict, Iterable, List, Optional
from sqlalchemy import case as sql_case, update
from sqlalchemy.orm import Session
from mediation.db.connection import db_manager
from mediation.db.models import CasePanelistAssignment, CaseRecord, Panelist
from mediation.db.models.panelist import availability_expression
from mediation.services.activity_logger import log_activity
from mediation.services.case_lifecycle import load_case, serialize_case, touch
from mediation.services.panelist_directory import serialize_panelist
from mediation.services.resolution_aggregator import refresh_case_resolution
from mediation.utils.constants import (
    FINISHED_CASE_STATUSES,
    ActivityType,
    ActorType,
    AssignmentStatus,
    AvailabilityStatus,
    CaseStatus,
)
from mediation.utils.exceptions import (
    PanelistAlreadyAssignedError,
    PanelistAtCapacityError,
    PanelistNotAssignedError,
    PanelistNotAvailableError,
    PanelistNotFoundError,
    ValidationError,
)
from mediation.utils.helpers import utcnow
from mediation.utils.logger import get_logger

logger = get_logger(__name__)


panelist_table = Panelist.__table__


def increment_case_load(db_session: Session, panelist_id: str) -> bool:
    """
    Add one case to an active panelist's load unless it is already full

    The availability status is assigned before the counter so that engines
    applying SET clauses left to right still see the old load.

    Returns:
        True when the row was updated
    """
    c = panelist_table.c
    new_load = c.current_case_load + 1
    result = db_session.execute(
        update(panelist_table)
        .where(
            c.panelist_id == panelist_id,
            c.is_active.is_(True),
            c.current_case_load < c.max_cases
        )
        .ordered_values(
            (c.availability_status, availability_expression(new_load)),
            (c.current_case_load, new_load),
            (c.updated_at, utcnow())
        )
    )
    return result.rowcount == 1


def decrement_case_load(db_session: Session, panelist_id: str) -> bool:
    """
    Remove one case from a panelist's load, never going below zero

    Returns:
        True when the row was updated
    """
    c = panelist_table.c
    new_load = sql_case(
        (c.current_case_load > 0, c.current_case_load - 1),
        else_=0
    )
    result = db_session.execute(
        update(panelist_table)
        .where(c.panelist_id == panelist_id)
        .ordered_values(
            (c.availability_status, availability_expression(new_load)),
            (c.current_case_load, new_load),
            (c.updated_at, utcnow())
        )
    )
    return result.rowcount == 1


def _unique_ids(panelist_ids: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(pid for pid in panelist_ids if pid))


class PanelAssignmentEngine:
    """Panel operations"""

    @staticmethod
    def assign_panel(case_id: str, panelist_ids: List[str], assigned_by: Optional[str] = None) -> Dict[str, Any]:
        """
        Put panelists on a case

        All panelists are assigned or none are.

        Args:
            case_id: case id
            panelist_ids: panelists to add (duplicates are ignored)
            assigned_by: admin performing the assignment

        Returns:
            serialised case

        Raises:
            ValidationError: empty panelist list
            CaseNotFoundError: unknown case
            PanelistNotAvailableError: a panelist is missing or inactive
            PanelistAlreadyAssignedError: a panelist already sits on the case
            PanelistAtCapacityError: a panelist has no free capacity
        """
        ids = _unique_ids(panelist_ids or [])
        if not ids:
            raise ValidationError("At least one panelist must be selected", "panelist_ids")

        def work(db_session: Session) -> Dict[str, Any]:
            case = load_case(db_session, case_id)

            panelists = {
                p.panelist_id: p
                for p in db_session.query(Panelist).filter(Panelist.panelist_id.in_(ids)).all()
            }
            unavailable = [pid for pid in ids if pid not in panelists or not panelists[pid].is_active]
            if unavailable:
                logger.warning(f"Panel assignment rejected for {case_id}: unavailable {unavailable}")
                raise PanelistNotAvailableError(unavailable)

            already = [pid for pid in ids if pid in case.active_panelist_ids()]
            if already:
                logger.warning(f"Panel assignment rejected for {case_id}: already assigned {already}")
                raise PanelistAlreadyAssignedError(case_id, already)

            full = [pid for pid in ids if panelists[pid].current_case_load >= panelists[pid].max_cases]
            if full:
                logger.warning(f"Panel assignment rejected for {case_id}: at capacity {full}")
                raise PanelistAtCapacityError(full)

            now = utcnow()
            for pid in ids:
                case.assignments.append(CasePanelistAssignment(
                    panelist_id=pid,
                    status=AssignmentStatus.ACTIVE.value,
                    assigned_by=assigned_by,
                    assigned_at=now
                ))
            previous = case.status
            case.status = CaseStatus.PANEL_ASSIGNED.value
            case.panel_assigned_at = now
            touch(case)
            db_session.flush()

            for pid in ids:
                if not increment_case_load(db_session, pid):
                    # deactivated or filled up since the read above
                    db_session.refresh(panelists[pid])
                    if not panelists[pid].is_active:
                        raise PanelistNotAvailableError([pid])
                    raise PanelistAtCapacityError([pid])
                db_session.expire(panelists[pid])

            refresh_case_resolution(db_session, case)
            log_activity(
                db_session, case, ActivityType.PANEL_ASSIGNED,
                f"{len(ids)} panelist(s) assigned to the case",
                actor_type=ActorType.ADMIN, actor_id=assigned_by,
                details={"panelist_ids": ids, "from": previous},
                is_important=True
            )
            db_session.flush()

            logger.info(f"Panel assigned: {case_id} <- {ids}")
            return serialize_case(case)

        return db_manager.run_in_transaction(work, resource="Case")

    @staticmethod
    def remove_panel(case_id: str, panelist_id: str, removed_by: Optional[str] = None) -> Dict[str, Any]:
        """
        Take a panelist off a case

        When no active panelist remains the case drops back to assigned. The
        remaining panelists may already all have submitted, in which case the
        case is resolved here.

        Args:
            case_id: case id
            panelist_id: panelist to remove
            removed_by: admin performing the removal

        Returns:
            serialised case

        Raises:
            CaseNotFoundError: unknown case
            PanelistNotAssignedError: no active assignment for the panelist
        """
        def work(db_session: Session) -> Dict[str, Any]:
            case = load_case(db_session, case_id)

            assignment = next((a for a in case.active_assignments if a.panelist_id == panelist_id), None)
            if assignment is None:
                logger.warning(f"Panelist {panelist_id} is not on the panel of {case_id}")
                raise PanelistNotAssignedError(case_id, panelist_id)

            assignment.status = AssignmentStatus.REMOVED.value
            assignment.removed_by = removed_by
            assignment.removed_at = utcnow()

            if not case.active_assignments and case.status not in FINISHED_CASE_STATUSES:
                case.status = CaseStatus.ASSIGNED.value
            touch(case)
            db_session.flush()

            decrement_case_load(db_session, panelist_id)
            panelist = db_session.query(Panelist).filter(Panelist.panelist_id == panelist_id).first()
            if panelist is not None:
                db_session.expire(panelist)

            refresh_case_resolution(db_session, case)
            log_activity(
                db_session, case, ActivityType.PANELIST_REMOVED,
                f"Panelist {panelist_id} removed from the case",
                actor_type=ActorType.ADMIN, actor_id=removed_by,
                details={"panelist_id": panelist_id}
            )
            db_session.flush()

            logger.info(f"Panelist removed: {case_id} -x {panelist_id}")
            return serialize_case(case)

        return db_manager.run_in_transaction(work, resource="Case")

    @staticmethod
    def list_available_panelists(specialization: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Panelists that can take another case, least loaded first

        Args:
            specialization: only panelists listing this specialization

        Returns:
            serialised panelists
        """
        with db_manager.get_db_session() as db_session:
            rows = db_session.query(Panelist).filter(
                Panelist.is_active.is_(True),
                Panelist.availability_status.in_([
                    AvailabilityStatus.AVAILABLE.value,
                    AvailabilityStatus.BUSY.value
                ]),
                Panelist.current_case_load < Panelist.max_cases
            ).order_by(
                Panelist.current_case_load.asc(),
                Panelist.rating_average.desc()
            ).all()

            if specialization:
                rows = [p for p in rows if specialization in (p.specializations or [])]

            return [serialize_panelist(p) for p in rows]

    @staticmethod
    def get_panelist_cases(panelist_id: str) -> List[Dict[str, Any]]:
        """
        Cases on which a panelist currently sits

        Args:
            panelist_id: panelist id

        Returns:
            serialised cases (without child collections)
        """
        with db_manager.get_db_session() as db_session:
            exists = db_session.query(Panelist.id).filter(Panelist.panelist_id == panelist_id).first()
            if exists is None:
                raise PanelistNotFoundError(panelist_id)

            cases = db_session.query(CaseRecord).join(
                CasePanelistAssignment, CasePanelistAssignment.case_pk == CaseRecord.id
            ).filter(
                CasePanelistAssignment.panelist_id == panelist_id,
                CasePanelistAssignment.status == AssignmentStatus.ACTIVE.value
            ).order_by(CaseRecord.created_at.desc()).all()

            return [serialize_case(c, include_children=False) for c in cases]
