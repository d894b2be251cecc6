"""
SubmissionSession model
"""
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, CheckConstraint, JSON
from sqlalchemy.orm import relationship
from mediation.db.base import BaseModel, BigIntPK
from mediation.utils.helpers import utcnow


class SubmissionSession(BaseModel):
    """Intake session for one party"""
    __tablename__ = "submission_session"
    __table_args__ = (
        CheckConstraint("role IN ('party_a', 'party_b')", name="check_session_role"),
        CheckConstraint("status IN ('draft', 'submitted')", name="check_session_status"),
        CheckConstraint("current_step >= 1 AND current_step <= 6", name="check_current_step"),
    )
    
    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    session_id = Column(String(50), nullable=False, unique=True)
    user_id = Column(String(64))
    role = Column(String(20), nullable=False, default="party_a")
    parent_session_id = Column(String(50), ForeignKey("submission_session.session_id"))  # party_b only
    linked_session_id = Column(String(50))  # party_a only, written once
    status = Column(String(20), nullable=False, default="draft")
    current_step = Column(Integer, nullable=False, default=1)
    completed_steps = Column(JSON, nullable=False, default=list)
    case_id = Column(String(30))
    version = Column(Integer, nullable=False)
    submitted_at = Column(DateTime)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
    
    __mapper_args__ = {"version_id_col": version}
    
    # Relationships
    step_data = relationship(
        "SubmissionStepData",
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="SubmissionStepData.step_id"
    )
