"""
Expense repository - Data access layer for Expense model.
"""
from datetime import date, datetime
from typing import Dict, List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session

from life_tracker.models import Expense


class ExpenseRepository:
    """Repository for Expense data access"""

    @staticmethod
    def get_all(
        db: Session,
        user_id: int,
        category: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None
    ) -> List[Expense]:
        """Get non-deleted expenses, newest first"""
        query = db.query(Expense).filter(
            Expense.user_id == user_id,
            Expense.deleted_at.is_(None)
        )
        if category:
            query = query.filter(Expense.category == category)
        if start_date:
            query = query.filter(Expense.date >= start_date)
        if end_date:
            query = query.filter(Expense.date <= end_date)
        return query.order_by(Expense.date.desc(), Expense.id.desc()).all()

    @staticmethod
    def get_by_id(db: Session, expense_id: int, user_id: int) -> Optional[Expense]:
        return db.query(Expense).filter(
            Expense.id == expense_id,
            Expense.user_id == user_id,
            Expense.deleted_at.is_(None)
        ).first()

    @staticmethod
    def create(db: Session, expense: Expense) -> Expense:
        db.add(expense)
        db.commit()
        db.refresh(expense)
        return expense

    @staticmethod
    def update(db: Session, expense: Expense) -> Expense:
        db.commit()
        db.refresh(expense)
        return expense

    @staticmethod
    def soft_delete(db: Session, expense: Expense) -> Expense:
        expense.deleted_at = datetime.utcnow()
        db.commit()
        db.refresh(expense)
        return expense

    @staticmethod
    def get_total_for_period(db: Session, user_id: int, start_date: date, end_date: date) -> float:
        """Sum of expenses between two days inclusive"""
        total = db.query(func.sum(Expense.amount)).filter(
            Expense.user_id == user_id,
            Expense.deleted_at.is_(None),
            Expense.date >= start_date,
            Expense.date <= end_date
        ).scalar()
        return float(total or 0)

    @staticmethod
    def get_totals_by_category(db: Session, user_id: int, start_date: date, end_date: date) -> Dict[str, float]:
        """Spent per category between two days inclusive"""
        rows = db.query(Expense.category, func.sum(Expense.amount)).filter(
            Expense.user_id == user_id,
            Expense.deleted_at.is_(None),
            Expense.date >= start_date,
            Expense.date <= end_date
        ).group_by(Expense.category).all()
        return {category: float(total or 0) for category, total in rows}
