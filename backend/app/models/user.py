"""
User and FamilyProfile database models.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Float, ForeignKey, JSON
from sqlalchemy.orm import relationship

from app.database import Base


class User(Base):
    """Account owning every household resource."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    profiles = relationship("FamilyProfile", back_populates="user", cascade="all, delete-orphan")
    shopping_lists = relationship("ShoppingList", back_populates="user", cascade="all, delete-orphan")


class FamilyProfile(Base):
    """A household member with nutrition targets."""

    __tablename__ = "family_profiles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    profile_name = Column(String, nullable=False)
    age = Column(Integer, nullable=True)
    is_main_user = Column(Boolean, default=False, nullable=False)

    daily_calorie_target = Column(Float, nullable=True)
    daily_protein_target = Column(Float, nullable=True)
    daily_carbs_target = Column(Float, nullable=True)
    daily_fat_target = Column(Float, nullable=True)

    dietary_preferences = Column(JSON, default=list, nullable=False)  # e.g. ["vegetarian"]
    allergies = Column(JSON, default=list, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="profiles")
