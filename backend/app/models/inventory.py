from datetime import datetime
from sqlalchemy import Column, Integer, String, Float, ForeignKey, Date, DateTime, Boolean, Index
from sqlalchemy.orm import relationship

from app.database import Base

STORAGE_LOCATIONS = ("fridge", "freezer", "pantry", "other")


class InventoryItem(Base):
    __tablename__ = "inventory_items"
    __table_args__ = (
        Index("idx_inventory_user_active", "user_id", "is_active"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    item_name = Column(String, nullable=False)
    quantity = Column(Float, nullable=False, default=1.0)
    unit = Column(String, nullable=False, default="piece")
    category = Column(String, nullable=False, default="Other")
    location = Column(String, nullable=True)  # fridge, freezer, pantry, other

    purchase_date = Column(Date, nullable=True)
    expiry_date = Column(Date, nullable=True)
    expiry_is_estimated = Column(Boolean, default=False, nullable=False)

    is_active = Column(Boolean, default=True, nullable=False)
    added_by = Column(String, nullable=False, default="manual")  # manual, shopping_list, product
    notes = Column(String, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    excluded_from = relationship("ShoppingListExcludedItem", back_populates="inventory_item")
