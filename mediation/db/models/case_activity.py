"""
CaseActivity model
"""
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from mediation.db.base import BaseModel, BigIntPK
from mediation.utils.helpers import utcnow


class CaseActivity(BaseModel):
    """Case timeline entry"""
    __tablename__ = "case_activity"
    
    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    case_pk = Column(BigIntPK, ForeignKey("case_record.id", ondelete="CASCADE"), nullable=False)
    activity_type = Column(String(40), nullable=False)
    actor_type = Column(String(20), nullable=False, default="system")
    actor_id = Column(String(64))
    description = Column(String(1000), nullable=False)
    details = Column(JSON)
    is_important = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    
    # Relationships
    case = relationship("CaseRecord", back_populates="activities")
