"""
User repository - Data access layer for User and PlayerProfile models.
Handles the single-user bootstrap and profile counter updates.
"""
from typing import Optional
from sqlalchemy.orm import Session

from life_tracker.models import User, PlayerProfile


class UserRepository:
    """Repository for User data access"""

    @staticmethod
    def get_first(db: Session) -> Optional[User]:
        """Get the first (and in practice only) user"""
        return db.query(User).order_by(User.id).first()

    @staticmethod
    def get_by_id(db: Session, user_id: int) -> Optional[User]:
        """Get user by ID"""
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def create(db: Session, name: str, email: str) -> User:
        """Create a user together with a zeroed player profile"""
        user = User(name=name, email=email)
        user.profile = PlayerProfile(
            total_xp=0,
            current_level=1,
            goals_completed=0,
            bucket_completed=0,
            habits_completed=0,
            total_saved=0.0
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def update(db: Session, user: User) -> User:
        """Update existing user"""
        db.commit()
        db.refresh(user)
        return user


class PlayerProfileRepository:
    """Repository for PlayerProfile data access"""

    @staticmethod
    def get_by_user(db: Session, user_id: int) -> Optional[PlayerProfile]:
        """Get profile for a user"""
        return db.query(PlayerProfile).filter(PlayerProfile.user_id == user_id).first()

    @staticmethod
    def add_xp(db: Session, user_id: int, amount: int) -> Optional[PlayerProfile]:
        """
        Add XP with a single UPDATE so concurrent grants cannot overwrite each other.

        Returns:
            Refreshed profile, or None if the user has no profile
        """
        updated = db.query(PlayerProfile).filter(
            PlayerProfile.user_id == user_id
        ).update(
            {PlayerProfile.total_xp: PlayerProfile.total_xp + amount},
            synchronize_session=False
        )
        db.commit()
        if not updated:
            return None
        profile = PlayerProfileRepository.get_by_user(db, user_id)
        db.refresh(profile)
        return profile

    @staticmethod
    def increment_counter(db: Session, user_id: int, counter: str, amount: int = 1) -> Optional[PlayerProfile]:
        """Atomically increment one of the integer counters"""
        column = getattr(PlayerProfile, counter)
        updated = db.query(PlayerProfile).filter(
            PlayerProfile.user_id == user_id
        ).update(
            {column: column + amount},
            synchronize_session=False
        )
        db.commit()
        if not updated:
            return None
        profile = PlayerProfileRepository.get_by_user(db, user_id)
        db.refresh(profile)
        return profile

    @staticmethod
    def set_fields(db: Session, user_id: int, **fields) -> Optional[PlayerProfile]:
        """Overwrite absolute profile fields (e.g. total_saved, current_level)"""
        profile = PlayerProfileRepository.get_by_user(db, user_id)
        if not profile:
            return None
        for key, value in fields.items():
            setattr(profile, key, value)
        db.commit()
        db.refresh(profile)
        return profile
