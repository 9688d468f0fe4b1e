"""
Shopping list category database model.
"""

from sqlalchemy import Column, Integer, String, Boolean, ForeignKey

from app.database import Base


class ShoppingListCategory(Base):
    """Per-user aisle category used to group shopping list items."""

    __tablename__ = "shopping_list_categories"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    display_order = Column(Integer, nullable=False, default=0)
    is_default = Column(Boolean, default=False, nullable=False)
