"""
CasePanelistAssignment model
"""
from sqlalchemy import Column, String, DateTime, ForeignKey, CheckConstraint, Index
from sqlalchemy.orm import relationship
from mediation.db.base import BaseModel, BigIntPK
from mediation.utils.helpers import utcnow


class CasePanelistAssignment(BaseModel):
    """Panelist seat on a case; moves active -> removed only"""
    __tablename__ = "case_panelist_assignment"
    __table_args__ = (
        CheckConstraint("status IN ('active', 'removed')", name="check_assignment_status"),
        Index("ix_assignment_case_panelist", "case_pk", "panelist_id", "status"),
    )
    
    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    case_pk = Column(BigIntPK, ForeignKey("case_record.id", ondelete="CASCADE"), nullable=False)
    panelist_id = Column(String(40), ForeignKey("panelist.panelist_id"), nullable=False)
    status = Column(String(20), nullable=False, default="active")
    assigned_by = Column(String(64))
    assigned_at = Column(DateTime, nullable=False, default=utcnow)
    removed_by = Column(String(64))
    removed_at = Column(DateTime)
    
    # Relationships
    case = relationship("CaseRecord", back_populates="assignments")
    panelist = relationship("Panelist")
