"""
SubmissionStepData model
"""
from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey, JSON, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship
from mediation.db.base import BaseModel, BigIntPK
from mediation.utils.helpers import utcnow


class SubmissionStepData(BaseModel):
    """Draft payload of one intake step"""
    __tablename__ = "submission_step_data"
    __table_args__ = (
        UniqueConstraint("session_id", "step_id", name="uq_session_step"),
        CheckConstraint("step_id >= 1 AND step_id <= 6", name="check_step_id"),
    )
    
    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    session_id = Column(String(50), ForeignKey("submission_session.session_id", ondelete="CASCADE"), nullable=False)
    step_id = Column(Integer, nullable=False)
    data = Column(JSON, nullable=False)
    completed = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
    
    # Relationships
    session = relationship("SubmissionSession", back_populates="step_data")
