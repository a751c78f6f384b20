"""
Level computation and XP application.

Tier lookups are pure; grant_xp is the single path that adds XP to a
profile and refreshes the cached level.
"""
import logging
from typing import NamedTuple, Optional

from sqlalchemy.orm import Session

from life_tracker.constants import LEVEL_TIERS
from life_tracker.exceptions import InvalidStateException
from life_tracker.models import PlayerProfile
from life_tracker.repositories.user_repository import PlayerProfileRepository

logger = logging.getLogger("life_tracker.levels")


class LevelTier(NamedTuple):
    level: int
    title: str
    icon: str
    min_xp: int


TIERS = [LevelTier(*tier) for tier in LEVEL_TIERS]


class LevelService:
    """Service for levels and XP grants"""

    def __init__(self, db: Session):
        self.db = db
        self.profile_repo = PlayerProfileRepository()

    @staticmethod
    def level_from_xp(xp: int) -> LevelTier:
        """Highest tier whose min_xp <= xp (tier 1 for anything below 0)"""
        for tier in reversed(TIERS):
            if xp >= tier.min_xp:
                return tier
        return TIERS[0]

    @staticmethod
    def next_tier(tier: LevelTier) -> Optional[LevelTier]:
        """Tier after the given one, None at the top"""
        index = TIERS.index(tier)
        if index + 1 < len(TIERS):
            return TIERS[index + 1]
        return None

    @staticmethod
    def xp_progress(xp: int) -> dict:
        """
        Progress through the current level.

        Returns:
            current_in_level: XP earned since the tier's minimum
            required_for_level: tier width (0 at the terminal tier)
            percentage: rounded percent of the tier completed (100 at the top)
        """
        tier = LevelService.level_from_xp(xp)
        following = LevelService.next_tier(tier)
        current_in_level = xp - tier.min_xp

        if following is None:
            return {
                "current_in_level": current_in_level,
                "required_for_level": 0,
                "percentage": 100,
            }

        required = following.min_xp - tier.min_xp
        percentage = int((100 * current_in_level / required) + 0.5)
        return {
            "current_in_level": current_in_level,
            "required_for_level": required,
            "percentage": max(0, min(100, percentage)),
        }

    @staticmethod
    def level_info(xp: int) -> dict:
        """Derived level fields exposed with the profile"""
        tier = LevelService.level_from_xp(xp)
        following = LevelService.next_tier(tier)
        progress = LevelService.xp_progress(xp)
        return {
            "current_xp": xp,
            "current_level": tier.level,
            "level_title": tier.title,
            "level_icon": tier.icon,
            "xp_for_current_level": tier.min_xp,
            "xp_for_next_level": following.min_xp if following else None,
            "xp_to_next_level": max(0, progress["required_for_level"] - progress["current_in_level"]),
            "level_progress": progress["percentage"],
        }

    def grant_xp(self, user_id: int, amount: int, reason: str = "") -> PlayerProfile:
        """
        Add XP to a profile and refresh the cached level.

        Args:
            user_id: Owner of the profile
            amount: XP to add (must be >= 0)
            reason: Free text for the log line

        Raises:
            InvalidStateException: If amount is negative or the profile is missing
        """
        if amount < 0:
            raise InvalidStateException(f"XP amount must be non-negative, got {amount}")

        if amount == 0:
            profile = self.profile_repo.get_by_user(self.db, user_id)
            if profile is None:
                raise InvalidStateException(f"User {user_id} has no player profile")
            return profile

        profile = self.profile_repo.add_xp(self.db, user_id, amount)
        if profile is None:
            raise InvalidStateException(f"User {user_id} has no player profile")

        old_level = profile.current_level
        tier = self.level_from_xp(profile.total_xp)
        if tier.level != old_level:
            profile = self.profile_repo.set_fields(self.db, user_id, current_level=tier.level)
            if tier.level > old_level:
                logger.info(f"User {user_id} leveled up: {old_level} -> {tier.level} ({tier.title})")

        logger.info(f"Granted {amount} XP to user {user_id} ({reason}); total {profile.total_xp}")
        return profile
