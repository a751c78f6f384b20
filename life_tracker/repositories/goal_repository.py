"""
Goal repository - Data access layer for Goal model.
"""
from datetime import datetime
from typing import List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session

from life_tracker.models import Goal
from life_tracker.constants import GoalStatus


class GoalRepository:
    """Repository for Goal data access"""

    @staticmethod
    def get_all(
        db: Session,
        user_id: int,
        status: Optional[str] = None,
        timeline: Optional[str] = None,
        priority: Optional[str] = None,
        include_deleted: bool = False
    ) -> List[Goal]:
        """Get goals for a user with optional filters"""
        query = db.query(Goal).filter(Goal.user_id == user_id)
        if not include_deleted:
            query = query.filter(Goal.deleted_at.is_(None))
        if status:
            query = query.filter(Goal.status == status)
        if timeline:
            query = query.filter(Goal.timeline == timeline)
        if priority:
            query = query.filter(Goal.priority == priority)
        return query.order_by(Goal.created_at.desc()).all()

    @staticmethod
    def get_by_id(db: Session, goal_id: int, user_id: int) -> Optional[Goal]:
        """Get a non-deleted goal owned by the user"""
        return db.query(Goal).filter(
            Goal.id == goal_id,
            Goal.user_id == user_id,
            Goal.deleted_at.is_(None)
        ).first()

    @staticmethod
    def create(db: Session, goal: Goal) -> Goal:
        """Create new goal"""
        db.add(goal)
        db.commit()
        db.refresh(goal)
        return goal

    @staticmethod
    def update(db: Session, goal: Goal) -> Goal:
        """Update existing goal"""
        db.commit()
        db.refresh(goal)
        return goal

    @staticmethod
    def soft_delete(db: Session, goal: Goal) -> Goal:
        """Mark goal as deleted"""
        goal.deleted_at = datetime.utcnow()
        db.commit()
        db.refresh(goal)
        return goal

    @staticmethod
    def count_all(db: Session, user_id: int) -> int:
        """Count non-deleted goals"""
        return db.query(Goal).filter(
            Goal.user_id == user_id,
            Goal.deleted_at.is_(None)
        ).count()

    @staticmethod
    def count_completed(db: Session, user_id: int) -> int:
        """Count completed, non-deleted goals"""
        return db.query(Goal).filter(
            Goal.user_id == user_id,
            Goal.status == GoalStatus.COMPLETED.value,
            Goal.deleted_at.is_(None)
        ).count()

    @staticmethod
    def get_total_points(db: Session, user_id: int) -> int:
        """Sum of points earned from goals"""
        total = db.query(func.sum(Goal.points_earned)).filter(
            Goal.user_id == user_id,
            Goal.deleted_at.is_(None)
        ).scalar()
        return int(total or 0)
