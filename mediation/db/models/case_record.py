"""
CaseRecord model
"""
from sqlalchemy import Column, String, Integer, Text, DateTime, ForeignKey, CheckConstraint, JSON
from sqlalchemy.orm import relationship
from mediation.db.base import BaseModel, BigIntPK
from mediation.utils.helpers import utcnow


class CaseRecord(BaseModel):
    """Mediation case"""
    __tablename__ = "case_record"
    __table_args__ = (
        CheckConstraint(
            "status IN ('open', 'assigned', 'panel_assigned', 'in_progress', 'resolved', 'closed')",
            name="check_case_status"
        ),
        CheckConstraint("priority IN ('low', 'medium', 'high', 'urgent')", name="check_case_priority"),
        CheckConstraint(
            "resolution_status IN ('not_started', 'partial', 'complete')",
            name="check_case_resolution_status"
        ),
        CheckConstraint(
            "resolution_submitted >= 0 AND resolution_submitted <= resolution_total",
            name="check_resolution_progress"
        ),
    )
    
    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    case_id = Column(String(30), nullable=False, unique=True)
    session_id = Column(String(50), ForeignKey("submission_session.session_id"), nullable=False, unique=True)
    linked_session_id = Column(String(50))
    title = Column(String(255), nullable=False)
    description = Column(Text)
    case_type = Column(String(20), nullable=False, default="family")
    priority = Column(String(20), nullable=False, default="medium")
    status = Column(String(20), nullable=False, default="open")
    created_by = Column(String(64))
    assigned_to = Column(String(64))
    assigned_at = Column(DateTime)
    panel_assigned_at = Column(DateTime)
    resolution_status = Column(String(20), nullable=False, default="not_started")
    resolution_total = Column(Integer, nullable=False, default=0)
    resolution_submitted = Column(Integer, nullable=False, default=0)
    resolution_updated_at = Column(DateTime)
    finalized_at = Column(DateTime)
    finalized_by = Column(JSON, nullable=False, default=list)
    documents = Column(JSON, nullable=False, default=list)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
    
    # Concurrent writers on the same case fail with StaleDataError
    __mapper_args__ = {"version_id_col": version}
    
    # Relationships
    parties = relationship("CaseParty", back_populates="case", cascade="all, delete-orphan")
    notes = relationship(
        "CaseNote",
        back_populates="case",
        cascade="all, delete-orphan",
        order_by="CaseNote.created_at"
    )
    assignments = relationship(
        "CasePanelistAssignment",
        back_populates="case",
        cascade="all, delete-orphan",
        order_by="CasePanelistAssignment.id"
    )
    resolutions = relationship("CaseResolution", back_populates="case", cascade="all, delete-orphan")
    activities = relationship("CaseActivity", back_populates="case", cascade="all, delete-orphan")
    
    @property
    def active_assignments(self):
        return [a for a in self.assignments if a.status == "active"]
    
    def active_panelist_ids(self):
        """Ids of panelists with an active assignment"""
        return [a.panelist_id for a in self.active_assignments]
