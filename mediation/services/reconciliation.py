"""
Case load reconciliation

Recounts every panelist's load from their active assignment rows and
repairs counters that drifted (for example after manual data fixes).
"""
from typing import List
from sqlalchemy import func, update
from sqlalchemy.orm import Session
from mediation.db.connection import db_manager
from mediation.db.models import CasePanelistAssignment, Panelist
from mediation.db.models.panelist import availability_expression, derive_availability_status
from mediation.types import ReconciliationChange
from mediation.utils.constants import AssignmentStatus
from mediation.utils.helpers import utcnow
from mediation.utils.logger import get_logger, log_execution_time

logger = get_logger(__name__)


@log_execution_time(operation="case load reconciliation", slow_threshold=30.0)
def reconcile_case_loads(dry_run: bool = False) -> List[ReconciliationChange]:
    """
    Compare recorded loads with active assignments and fix the differences

    Loads above a panelist's capacity are capped at max_cases.

    Args:
        dry_run: report the drift without writing

    Returns:
        one entry per panelist whose load or status was off
    """
    def work(db_session: Session) -> List[ReconciliationChange]:
        counts = dict(
            db_session.query(CasePanelistAssignment.panelist_id, func.count(CasePanelistAssignment.id))
            .filter(CasePanelistAssignment.status == AssignmentStatus.ACTIVE.value)
            .group_by(CasePanelistAssignment.panelist_id)
            .all()
        )

        changes: List[ReconciliationChange] = []
        table = Panelist.__table__
        for panelist in db_session.query(Panelist).order_by(Panelist.id).all():
            actual = min(counts.get(panelist.panelist_id, 0), panelist.max_cases)
            status = derive_availability_status(
                actual, panelist.max_cases, panelist.availability_preference, panelist.is_active
            )
            if actual == panelist.current_case_load and status == panelist.availability_status:
                continue

            changes.append({
                "panelist_id": panelist.panelist_id,
                "recorded_load": panelist.current_case_load,
                "actual_load": actual,
                "availability_status": status
            })
            if counts.get(panelist.panelist_id, 0) > panelist.max_cases:
                logger.warning(
                    f"{panelist.panelist_id} holds {counts[panelist.panelist_id]} active assignments "
                    f"with max_cases {panelist.max_cases}"
                )
            if dry_run:
                continue

            db_session.execute(
                update(table)
                .where(table.c.panelist_id == panelist.panelist_id)
                .values(
                    availability_status=availability_expression(load=actual),
                    current_case_load=actual,
                    updated_at=utcnow()
                )
            )

        return changes

    changes = db_manager.run_in_transaction(work, resource="Panelist")
    logger.info(f"Case load reconciliation: {len(changes)} panelist(s) {'to fix' if dry_run else 'fixed'}")
    return changes
