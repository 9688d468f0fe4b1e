"""
Staple database model (recurring household purchases).
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Float, Boolean, Date, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from app.database import Base


class Staple(Base):
    """Item bought on a fixed schedule; due date derives from frequency + last_added_date."""

    __tablename__ = "staples"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    item_name = Column(String, nullable=False)
    quantity = Column(Float, nullable=False, default=1.0)
    unit = Column(String, nullable=False, default="piece")
    category = Column(String, nullable=True)
    frequency = Column(String, nullable=False, default="weekly")
    is_active = Column(Boolean, default=True, nullable=False)
    last_added_date = Column(Date, nullable=True)  # None = never bought, due immediately
    notes = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    imports = relationship("StapleImport", back_populates="staple", cascade="all, delete-orphan")
