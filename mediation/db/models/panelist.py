"""
Panelist model
"""
from sqlalchemy import Column, String, Integer, Float, Boolean, DateTime, CheckConstraint, JSON, case, literal, not_
from mediation.db.base import BaseModel, BigIntPK
from mediation.utils.helpers import utcnow


def derive_availability_status(
    current_case_load: int,
    max_cases: int,
    preference: str = "available",
    is_active: bool = True
) -> str:
    """
    Availability status as a function of the workload counters
    
    Args:
        current_case_load: active assignments held
        max_cases: capacity
        preference: the panelist's own available/unavailable choice
        is_active: whether the panelist record is active
    
    Returns:
        available, busy or unavailable
    """
    if not is_active:
        return "unavailable"
    if current_case_load >= max_cases:
        return "busy"
    if preference == "unavailable":
        return "unavailable"
    return "available"


class Panelist(BaseModel):
    """Mediator who can sit on case panels"""
    __tablename__ = "panelist"
    __table_args__ = (
        CheckConstraint("max_cases >= 1 AND max_cases <= 50", name="check_max_cases"),
        CheckConstraint(
            "current_case_load >= 0 AND current_case_load <= max_cases",
            name="check_current_case_load"
        ),
        CheckConstraint(
            "availability_status IN ('available', 'busy', 'unavailable')",
            name="check_availability_status"
        ),
        CheckConstraint(
            "availability_preference IN ('available', 'unavailable')",
            name="check_availability_preference"
        ),
        CheckConstraint("rating_average >= 0 AND rating_average <= 5", name="check_rating_average"),
    )
    
    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    panelist_id = Column(String(40), nullable=False, unique=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    phone = Column(String(50))
    occupation = Column(String(255))
    specializations = Column(JSON, nullable=False, default=list)
    is_active = Column(Boolean, nullable=False, default=True)
    max_cases = Column(Integer, nullable=False, default=5)
    current_case_load = Column(Integer, nullable=False, default=0)
    availability_preference = Column(String(20), nullable=False, default="available")
    availability_status = Column(String(20), nullable=False, default="available")
    rating_average = Column(Float, nullable=False, default=0)
    rating_count = Column(Integer, nullable=False, default=0)
    cases_resolved = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)


def availability_expression(load=None, max_cases=None, preference=None, is_active=None):
    """
    SQL form of derive_availability_status, for use inside an UPDATE
    
    Each argument defaults to the row's current column value; pass the new
    value (expression or literal) of whatever the same UPDATE changes.
    
    Returns:
        CASE expression yielding available, busy or unavailable
    """
    c = Panelist.__table__.c
    load = c.current_case_load if load is None else load
    max_cases = c.max_cases if max_cases is None else literal(max_cases)
    preference = c.availability_preference if preference is None else literal(preference)
    active = c.is_active if is_active is None else literal(is_active)
    
    return case(
        (not_(active), "unavailable"),
        (load >= max_cases, "busy"),
        (preference == "unavailable", "unavailable"),
        else_="available"
    )
