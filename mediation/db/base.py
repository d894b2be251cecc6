"""
Declarative base
"""
from sqlalchemy import BigInteger, Integer
from sqlalchemy.orm import declarative_base
from datetime import datetime

Base = declarative_base()


class BaseModel(Base):
    """Base model"""
    __abstract__ = True
    
    def to_json(self, exclude=()):
        """Convert the row to a JSON-serialisable dict"""
        result = {}
        for column in self.__table__.columns:
            if column.name in exclude:
                continue
            value = getattr(self, column.name)
            if isinstance(value, datetime):
                result[column.name] = value.isoformat()
            else:
                result[column.name] = value
        return result


# BIGINT primary keys only autoincrement as INTEGER on SQLite
BigIntPK = BigInteger().with_variant(Integer, "sqlite")
