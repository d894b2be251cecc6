"""
CaseParty model
"""
from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from mediation.db.base import BaseModel, BigIntPK
from mediation.utils.helpers import utcnow


class CaseParty(BaseModel):
    """Party named in the intake of a case"""
    __tablename__ = "case_party"
    
    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    case_pk = Column(BigIntPK, ForeignKey("case_record.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)
    contact = Column(String(255))
    phone = Column(String(50))
    role = Column(String(100))
    relation = Column(String(100))
    created_at = Column(DateTime, nullable=False, default=utcnow)
    
    # Relationships
    case = relationship("CaseRecord", back_populates="parties")
