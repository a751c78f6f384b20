"""
Achievement repository - Data access layer for the achievement catalog
and per-user unlock records.
"""
from typing import List, Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from life_tracker.models import Achievement, UserAchievement


class AchievementRepository:
    """Repository for Achievement and UserAchievement data access"""

    @staticmethod
    def get_all(db: Session) -> List[Achievement]:
        """Get full catalog ordered by category and bonus"""
        return db.query(Achievement).order_by(
            Achievement.category, Achievement.bonus_points
        ).all()

    @staticmethod
    def get_by_code(db: Session, code: str) -> Optional[Achievement]:
        """Get catalog entry by code"""
        return db.query(Achievement).filter(Achievement.code == code).first()

    @staticmethod
    def count_all(db: Session) -> int:
        """Count catalog entries"""
        return db.query(Achievement).count()

    @staticmethod
    def create_if_missing(db: Session, data: dict) -> bool:
        """
        Insert a catalog entry unless its code already exists.

        Existing rows are left untouched so unlocks keep their history.

        Returns:
            True if a row was inserted
        """
        if AchievementRepository.get_by_code(db, data["code"]):
            return False
        db.add(Achievement(**data))
        db.commit()
        return True

    @staticmethod
    def is_unlocked(db: Session, user_id: int, code: str) -> bool:
        """Check whether the user has unlocked the achievement with this code"""
        return db.query(UserAchievement).join(Achievement).filter(
            UserAchievement.user_id == user_id,
            Achievement.code == code
        ).first() is not None

    @staticmethod
    def create_user_achievement(
        db: Session,
        user_id: int,
        achievement: Achievement
    ) -> Optional[UserAchievement]:
        """
        Record an unlock with the bonus frozen at unlock time.

        Returns:
            New record, or None if the (user, achievement) row already exists
        """
        user_achievement = UserAchievement(
            user_id=user_id,
            achievement_id=achievement.id,
            points_awarded=achievement.bonus_points
        )
        db.add(user_achievement)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            return None
        db.refresh(user_achievement)
        return user_achievement

    @staticmethod
    def get_unlocked(db: Session, user_id: int) -> List[UserAchievement]:
        """Get unlock records for a user, most recent first"""
        return db.query(UserAchievement).filter(
            UserAchievement.user_id == user_id
        ).order_by(UserAchievement.unlocked_at.desc(), UserAchievement.id.desc()).all()
