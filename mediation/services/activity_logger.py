"""
Case activity logging
"""
from typing import Any, Dict, List, Optional
from sqlalchemy.orm import Session
from mediation.db.models.case_activity import CaseActivity
from mediation.db.models.case_record import CaseRecord
from mediation.utils.constants import ActivityType, ActorType
from mediation.utils.logger import get_logger

logger = get_logger(__name__)


def log_activity(
    db_session: Session,
    case: CaseRecord,
    activity_type: ActivityType,
    description: str,
    actor_type: ActorType = ActorType.SYSTEM,
    actor_id: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    is_important: bool = False
) -> CaseActivity:
    """
    Record a case activity in the caller's unit of work
    
    Args:
        db_session: DB session of the operation being logged
        case: case the activity belongs to
        activity_type: activity type
        description: human-readable description
        actor_type: who performed it
        actor_id: id of the actor, if any
        details: extra structured data
        is_important: highlight flag for timelines
    
    Returns:
        the pending CaseActivity row
    """
    entry = CaseActivity(
        case=case,
        activity_type=ActivityType(activity_type).value,
        actor_type=ActorType(actor_type).value,
        actor_id=actor_id,
        description=description[:1000],
        details=details or {},
        is_important=is_important
    )
    db_session.add(entry)
    
    logger.debug(f"Case activity: {case.case_id} {entry.activity_type}")
    return entry


def list_activities(db_session: Session, case: CaseRecord) -> List[Dict[str, Any]]:
    """
    Timeline of a case, newest first
    
    Args:
        db_session: DB session
        case: case
    
    Returns:
        serialised activity entries
    """
    rows = db_session.query(CaseActivity).filter(
        CaseActivity.case_pk == case.id
    ).order_by(CaseActivity.created_at.desc(), CaseActivity.id.desc()).all()
    
    return [row.to_json(exclude=("case_pk",)) for row in rows]
