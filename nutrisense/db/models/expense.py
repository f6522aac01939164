"""
Purchased item rows (ingested from receipts upstream).
"""

import uuid

from sqlalchemy import Column, Date, DateTime, Float, ForeignKey, String
from sqlalchemy.sql import func

from nutrisense.db.database import Base


class ExpenseItem(Base):
    """A purchased product; consumption logs and nutrition profiles point at it."""

    __tablename__ = "expense_items"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)

    name = Column(String(255), nullable=False)
    category = Column(String(50), nullable=True)
    quantity = Column(Float, nullable=False, default=1.0)
    purchase_date = Column(Date, nullable=True)
    expiry_date = Column(Date, nullable=True, index=True)

    created_at = Column(DateTime, server_default=func.now())

    def __repr__(self):
        return f"<ExpenseItem(id={self.id}, name={self.name}, expiry={self.expiry_date})>"
