"""
Habit repository - Data access layer for Habit and HabitLog models.
Handles habit queries, per-day log upserts and completion aggregates.
"""
from datetime import date, datetime
from typing import List, Optional
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from life_tracker.exceptions import DatabaseException
from life_tracker.models import Habit, HabitLog


class HabitRepository:
    """Repository for Habit data access"""

    @staticmethod
    def get_all(db: Session, user_id: int, is_active: Optional[bool] = None) -> List[Habit]:
        """Get non-deleted habits for a user"""
        query = db.query(Habit).filter(
            Habit.user_id == user_id,
            Habit.deleted_at.is_(None)
        )
        if is_active is not None:
            query = query.filter(Habit.is_active == is_active)
        return query.order_by(Habit.created_at.desc()).all()

    @staticmethod
    def get_by_id(db: Session, habit_id: int, user_id: int) -> Optional[Habit]:
        """Get a non-deleted habit owned by the user"""
        return db.query(Habit).filter(
            Habit.id == habit_id,
            Habit.user_id == user_id,
            Habit.deleted_at.is_(None)
        ).first()

    @staticmethod
    def create(db: Session, habit: Habit) -> Habit:
        """Create new habit"""
        db.add(habit)
        db.commit()
        db.refresh(habit)
        return habit

    @staticmethod
    def update(db: Session, habit: Habit) -> Habit:
        """Update existing habit"""
        db.commit()
        db.refresh(habit)
        return habit

    @staticmethod
    def soft_delete(db: Session, habit: Habit) -> Habit:
        """Mark habit as deleted"""
        habit.deleted_at = datetime.utcnow()
        db.commit()
        db.refresh(habit)
        return habit

    @staticmethod
    def count_all(db: Session, user_id: int) -> int:
        """Count non-deleted habits"""
        return db.query(Habit).filter(
            Habit.user_id == user_id,
            Habit.deleted_at.is_(None)
        ).count()


class HabitLogRepository:
    """Repository for HabitLog data access"""

    @staticmethod
    def get_logs(db: Session, habit_id: int) -> List[HabitLog]:
        """Get every log of a habit, most recent first"""
        return db.query(HabitLog).filter(
            HabitLog.habit_id == habit_id
        ).order_by(HabitLog.date.desc()).all()

    @staticmethod
    def get_by_date(db: Session, habit_id: int, log_date: date) -> Optional[HabitLog]:
        """Get the log for one habit and calendar day"""
        return db.query(HabitLog).filter(
            HabitLog.habit_id == habit_id,
            HabitLog.date == log_date
        ).first()

    @staticmethod
    def get_in_range(db: Session, habit_id: int, start_date: date, end_date: date) -> List[HabitLog]:
        """Get logs between two days inclusive, oldest first"""
        return db.query(HabitLog).filter(
            HabitLog.habit_id == habit_id,
            HabitLog.date >= start_date,
            HabitLog.date <= end_date
        ).order_by(HabitLog.date.asc()).all()

    @staticmethod
    def upsert(
        db: Session,
        habit_id: int,
        log_date: date,
        completed: bool,
        value: Optional[float],
        points_earned: int
    ) -> HabitLog:
        """
        Insert or update the log for (habit, day).

        Relies on the (habit_id, date) unique constraint: if a concurrent
        insert wins, the existing row is updated instead.
        """
        log = HabitLogRepository.get_by_date(db, habit_id, log_date)
        if log is None:
            log = HabitLog(
                habit_id=habit_id,
                date=log_date,
                completed=completed,
                value=value,
                points_earned=points_earned
            )
            db.add(log)
            try:
                db.commit()
            except IntegrityError as e:
                db.rollback()
                log = HabitLogRepository.get_by_date(db, habit_id, log_date)
                if log is None:
                    raise DatabaseException("habit log upsert", str(e))
                log.completed = completed
                log.value = value
                log.points_earned = points_earned
                db.commit()
        else:
            log.completed = completed
            log.value = value
            log.points_earned = points_earned
            db.commit()

        db.refresh(log)
        return log

    @staticmethod
    def count_completed(db: Session, user_id: int) -> int:
        """Count completed logs across the user's non-deleted habits"""
        return db.query(HabitLog).join(Habit).filter(
            Habit.user_id == user_id,
            Habit.deleted_at.is_(None),
            HabitLog.completed == True  # noqa: E712
        ).count()

    @staticmethod
    def get_total_points(db: Session, user_id: int) -> int:
        """Sum of points earned from habit logs"""
        total = db.query(func.sum(HabitLog.points_earned)).join(Habit).filter(
            Habit.user_id == user_id,
            Habit.deleted_at.is_(None)
        ).scalar()
        return int(total or 0)
