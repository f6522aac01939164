"""
Expense item repository (read side used for expiry scanning).
"""

from datetime import date
from typing import List, Optional

from sqlalchemy import and_, select
from sqlalchemy.orm import Session

from nutrisense.db.models.expense import ExpenseItem


class ExpenseRepository:
    def __init__(self, db: Session):
        self.db = db

    def add_item(
        self,
        user_id: str,
        name: str,
        expiry_date: Optional[date] = None,
        purchase_date: Optional[date] = None,
        category: Optional[str] = None,
        quantity: float = 1.0,
        item_id: Optional[str] = None,
    ) -> ExpenseItem:
        item = ExpenseItem(
            user_id=user_id,
            name=name,
            expiry_date=expiry_date,
            purchase_date=purchase_date,
            category=category,
            quantity=quantity,
        )
        if item_id:
            item.id = item_id
        self.db.add(item)
        self.db.flush()
        return item

    def get_item(self, item_id: str) -> Optional[ExpenseItem]:
        return self.db.get(ExpenseItem, item_id)

    def list_expiring_items(self, user_id: str, until: date, since: Optional[date] = None) -> List[ExpenseItem]:
        """Items with an expiry date on or before ``until`` (and on or after ``since``)."""
        conditions = [
            ExpenseItem.user_id == user_id,
            ExpenseItem.expiry_date.isnot(None),
            ExpenseItem.expiry_date <= until,
        ]
        if since is not None:
            conditions.append(ExpenseItem.expiry_date >= since)
        stmt = select(ExpenseItem).where(and_(*conditions)).order_by(ExpenseItem.expiry_date)
        return list(self.db.execute(stmt).scalars())
