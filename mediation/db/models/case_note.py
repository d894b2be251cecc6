"""
CaseNote model
"""
from sqlalchemy import Column, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from mediation.db.base import BaseModel, BigIntPK
from mediation.utils.helpers import utcnow


class CaseNote(BaseModel):
    """Free-text note on a case"""
    __tablename__ = "case_note"
    
    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    case_pk = Column(BigIntPK, ForeignKey("case_record.id", ondelete="CASCADE"), nullable=False)
    content = Column(Text, nullable=False)
    created_by = Column(String(64))
    created_at = Column(DateTime, nullable=False, default=utcnow)
    
    # Relationships
    case = relationship("CaseRecord", back_populates="notes")
