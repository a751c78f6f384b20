"""
Savings repository - Data access layer for SavingsGoal model.
"""
from datetime import datetime
from typing import List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session

from life_tracker.models import SavingsGoal


class SavingsGoalRepository:
    """Repository for SavingsGoal data access"""

    @staticmethod
    def get_all(db: Session, user_id: int) -> List[SavingsGoal]:
        """Get non-deleted savings goals"""
        return db.query(SavingsGoal).filter(
            SavingsGoal.user_id == user_id,
            SavingsGoal.deleted_at.is_(None)
        ).order_by(SavingsGoal.created_at.desc()).all()

    @staticmethod
    def get_by_id(db: Session, goal_id: int, user_id: int) -> Optional[SavingsGoal]:
        """Get a non-deleted savings goal owned by the user"""
        return db.query(SavingsGoal).filter(
            SavingsGoal.id == goal_id,
            SavingsGoal.user_id == user_id,
            SavingsGoal.deleted_at.is_(None)
        ).first()

    @staticmethod
    def create(db: Session, goal: SavingsGoal) -> SavingsGoal:
        """Create new savings goal"""
        db.add(goal)
        db.commit()
        db.refresh(goal)
        return goal

    @staticmethod
    def update(db: Session, goal: SavingsGoal) -> SavingsGoal:
        """Update existing savings goal"""
        db.commit()
        db.refresh(goal)
        return goal

    @staticmethod
    def add_amount(db: Session, goal: SavingsGoal, amount: float) -> SavingsGoal:
        """Deposit into a savings goal"""
        db.query(SavingsGoal).filter(SavingsGoal.id == goal.id).update(
            {SavingsGoal.current_amount: SavingsGoal.current_amount + amount},
            synchronize_session=False
        )
        db.commit()
        db.refresh(goal)
        return goal

    @staticmethod
    def soft_delete(db: Session, goal: SavingsGoal) -> SavingsGoal:
        """Mark savings goal as deleted"""
        goal.deleted_at = datetime.utcnow()
        db.commit()
        db.refresh(goal)
        return goal

    @staticmethod
    def count_all(db: Session, user_id: int) -> int:
        """Count non-deleted savings goals"""
        return db.query(SavingsGoal).filter(
            SavingsGoal.user_id == user_id,
            SavingsGoal.deleted_at.is_(None)
        ).count()

    @staticmethod
    def get_total_saved(db: Session, user_id: int) -> float:
        """Sum of current_amount over non-deleted savings goals"""
        total = db.query(func.sum(SavingsGoal.current_amount)).filter(
            SavingsGoal.user_id == user_id,
            SavingsGoal.deleted_at.is_(None)
        ).scalar()
        return float(total or 0)
