"""
Database models - represent tables in database
"""
from sqlalchemy import Column, String, DateTime, JSON
from sqlalchemy.sql import func
from socsim.database import Base


class Snapshot(Base):
    """
    One flat JSON blob per storage key (simulator state, preferences)
    """
    __tablename__ = "snapshots"

    key = Column(String(100), primary_key=True)
    payload = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
