"""
Profile service.
Single-user bootstrap and the profile view with live level fields.
"""
import logging

from sqlalchemy.orm import Session

from life_tracker.constants import DEFAULT_USER_NAME, DEFAULT_USER_EMAIL
from life_tracker.exceptions import NotFoundException
from life_tracker.models import User, PlayerProfile
from life_tracker.repositories.user_repository import UserRepository, PlayerProfileRepository
from life_tracker.repositories.savings_repository import SavingsGoalRepository
from life_tracker.services.level_service import LevelService

logger = logging.getLogger("life_tracker.profile")


class ProfileService:
    """Service for the player profile"""

    def __init__(self, db: Session):
        self.db = db
        self.user_repo = UserRepository()
        self.profile_repo = PlayerProfileRepository()
        self.savings_repo = SavingsGoalRepository()

    def get_or_create_current_user(self) -> User:
        """
        Get the single application user, creating it with a zeroed profile
        on first access.
        """
        user = self.user_repo.get_first(self.db)
        if user is None:
            user = self.user_repo.create(self.db, DEFAULT_USER_NAME, DEFAULT_USER_EMAIL)
            logger.info(f"Created user {user.id} with empty player profile")
        return user

    def get_player_profile(self, user_id: int) -> PlayerProfile:
        profile = self.profile_repo.get_by_user(self.db, user_id)
        if profile is None:
            raise NotFoundException("User profile", user_id)
        return profile

    def get_profile(self, user_id: int) -> dict:
        """Profile counters plus level fields derived from total_xp"""
        user = self.user_repo.get_by_id(self.db, user_id)
        if user is None:
            raise NotFoundException("User", user_id)
        profile = self.get_player_profile(user_id)
        level = LevelService.level_info(profile.total_xp)

        return {
            "id": user.id,
            "name": user.name,
            "email": user.email,
            "profile": {
                "total_xp": profile.total_xp,
                "current_level": level["current_level"],
                "level_title": level["level_title"],
                "level_icon": level["level_icon"],
                "xp_to_next_level": level["xp_to_next_level"],
                "level_progress": level["level_progress"],
                "goals_completed": profile.goals_completed,
                "bucket_completed": profile.bucket_completed,
                "habits_completed": profile.habits_completed,
                "total_saved": profile.total_saved,
            },
        }

    def update_name(self, user_id: int, name: str) -> dict:
        user = self.user_repo.get_by_id(self.db, user_id)
        if user is None:
            raise NotFoundException("User", user_id)
        user.name = name
        self.user_repo.update(self.db, user)
        return self.get_profile(user_id)

    def get_level_progress(self, user_id: int) -> dict:
        profile = self.get_player_profile(user_id)
        return LevelService.level_info(profile.total_xp)

    def recompute_total_saved(self, user_id: int) -> float:
        """Set total_saved to the sum over non-deleted savings goals"""
        total = self.savings_repo.get_total_saved(self.db, user_id)
        self.profile_repo.set_fields(self.db, user_id, total_saved=total)
        return total
