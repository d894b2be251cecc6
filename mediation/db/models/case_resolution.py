"""
CaseResolution model
"""
from sqlalchemy import Column, String, Text, Boolean, DateTime, ForeignKey, CheckConstraint, UniqueConstraint
from sqlalchemy.orm import relationship
from mediation.db.base import BaseModel, BigIntPK
from mediation.utils.helpers import utcnow


class CaseResolution(BaseModel):
    """One panelist's resolution of a case"""
    __tablename__ = "case_resolution"
    __table_args__ = (
        UniqueConstraint("case_pk", "panelist_id", name="uq_case_panelist_resolution"),
        CheckConstraint(
            "resolution_status IN ('pending', 'resolved', 'no_outcome')",
            name="check_resolution_status"
        ),
    )
    
    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    case_pk = Column(BigIntPK, ForeignKey("case_record.id", ondelete="CASCADE"), nullable=False)
    panelist_id = Column(String(40), ForeignKey("panelist.panelist_id"), nullable=False)
    resolution_status = Column(String(20), nullable=False, default="pending")
    resolution_notes = Column(Text, nullable=False, default="")
    outcome = Column(Text)
    recommendations = Column(Text)
    is_submitted = Column(Boolean, nullable=False, default=False)
    submitted_at = Column(DateTime)
    last_modified_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    
    # Relationships
    case = relationship("CaseRecord", back_populates="resolutions")
