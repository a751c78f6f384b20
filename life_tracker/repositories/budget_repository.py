"""
Budget repository - Data access layer for Budget model.
One budget per (user, category, month).
"""
from typing import List, Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from life_tracker.exceptions import DatabaseException
from life_tracker.models import Budget


class BudgetRepository:
    """Repository for Budget data access"""

    @staticmethod
    def get_by_month(db: Session, user_id: int, year: int, month: int) -> List[Budget]:
        return db.query(Budget).filter(
            Budget.user_id == user_id,
            Budget.year == year,
            Budget.month == month
        ).order_by(Budget.category).all()

    @staticmethod
    def get_by_id(db: Session, budget_id: int, user_id: int) -> Optional[Budget]:
        return db.query(Budget).filter(
            Budget.id == budget_id,
            Budget.user_id == user_id
        ).first()

    @staticmethod
    def get_for_category(db: Session, user_id: int, category: str, year: int, month: int) -> Optional[Budget]:
        return db.query(Budget).filter(
            Budget.user_id == user_id,
            Budget.category == category,
            Budget.year == year,
            Budget.month == month
        ).first()

    @staticmethod
    def upsert(db: Session, user_id: int, category: str, year: int, month: int, amount: float) -> Budget:
        """Set the budget amount for a category and month, creating the row if needed"""
        budget = BudgetRepository.get_for_category(db, user_id, category, year, month)
        if budget is None:
            budget = Budget(user_id=user_id, category=category, year=year, month=month, amount=amount)
            db.add(budget)
            try:
                db.commit()
            except IntegrityError as e:
                db.rollback()
                budget = BudgetRepository.get_for_category(db, user_id, category, year, month)
                if budget is None:
                    raise DatabaseException("budget upsert", str(e))
                budget.amount = amount
                db.commit()
        else:
            budget.amount = amount
            db.commit()

        db.refresh(budget)
        return budget

    @staticmethod
    def delete(db: Session, budget: Budget) -> None:
        db.delete(budget)
        db.commit()
