"""
Achievement rule engine.

Every rule binds one achievement code to one domain signal and a minimum
value. Rules are evaluated against fresh counters after each mutation;
each crossed threshold is unlocked independently and at most once per user.
"""
import enum
import logging
from typing import Dict, List, NamedTuple, Optional

from sqlalchemy.orm import Session

from life_tracker import constants
from life_tracker.constants import AchievementCategory
from life_tracker.repositories.achievement_repository import AchievementRepository
from life_tracker.repositories.bucket_repository import BucketItemRepository
from life_tracker.repositories.goal_repository import GoalRepository
from life_tracker.repositories.habit_repository import HabitRepository
from life_tracker.repositories.savings_repository import SavingsGoalRepository
from life_tracker.services.level_service import LevelService

logger = logging.getLogger("life_tracker.achievements")


class AchievementSignal(str, enum.Enum):
    GOALS_COMPLETED = "goals_completed"
    HABIT_COMPLETIONS = "habit_completions"
    CURRENT_STREAK = "current_streak"
    BUCKET_COMPLETED = "bucket_completed"
    SAVINGS_GOALS = "savings_goals"
    TOTAL_SAVED = "total_saved"
    UNDER_BUDGET = "under_budget"
    DOMAINS_USED = "domains_used"


class AchievementRule(NamedTuple):
    code: str
    category: AchievementCategory
    signal: AchievementSignal
    threshold: float


ACHIEVEMENT_RULES = [
    AchievementRule(constants.GOAL_GETTER, AchievementCategory.GOALS, AchievementSignal.GOALS_COMPLETED, 1),
    AchievementRule(constants.TRIPLE_THREAT, AchievementCategory.GOALS, AchievementSignal.GOALS_COMPLETED, 3),
    AchievementRule(constants.GOAL_MASTER, AchievementCategory.GOALS, AchievementSignal.GOALS_COMPLETED, 10),
    AchievementRule(constants.FIRST_STEPS, AchievementCategory.HABITS, AchievementSignal.HABIT_COMPLETIONS, 1),
    AchievementRule(constants.WEEK_WARRIOR, AchievementCategory.HABITS, AchievementSignal.CURRENT_STREAK, 7),
    AchievementRule(constants.MONTH_MASTER, AchievementCategory.HABITS, AchievementSignal.CURRENT_STREAK, 30),
    AchievementRule(constants.HABIT_LEGEND, AchievementCategory.HABITS, AchievementSignal.CURRENT_STREAK, 100),
    AchievementRule(constants.DREAM_STARTER, AchievementCategory.BUCKET_LIST, AchievementSignal.BUCKET_COMPLETED, 1),
    AchievementRule(constants.ADVENTURE_SEEKER, AchievementCategory.BUCKET_LIST, AchievementSignal.BUCKET_COMPLETED, 5),
    AchievementRule(constants.SAVERS_START, AchievementCategory.FINANCE, AchievementSignal.SAVINGS_GOALS, 1),
    AchievementRule(constants.FIRST_LAKH, AchievementCategory.FINANCE, AchievementSignal.TOTAL_SAVED, constants.FIRST_LAKH_AMOUNT),
    AchievementRule(constants.BUDGET_BOSS, AchievementCategory.FINANCE, AchievementSignal.UNDER_BUDGET, 1),
    AchievementRule(constants.LIFE_TRACKER, AchievementCategory.OVERALL, AchievementSignal.DOMAINS_USED, 4),
]

RULES_BY_CODE = {rule.code: rule for rule in ACHIEVEMENT_RULES}


class AchievementService:
    """Service for evaluating and unlocking achievements"""

    def __init__(self, db: Session, level_service: Optional[LevelService] = None):
        self.db = db
        self.repo = AchievementRepository()
        self.level_service = level_service or LevelService(db)

    @staticmethod
    def evaluate(category: AchievementCategory, signals: Dict[AchievementSignal, float]) -> List[str]:
        """
        Codes of rules in a category whose threshold is met.

        Booleans count as 1/0. Missing signals never trigger a rule.

        Returns:
            Codes in catalog order, lowest threshold first
        """
        met = []
        for rule in ACHIEVEMENT_RULES:
            if rule.category != category or rule.signal not in signals:
                continue
            value = signals[rule.signal]
            if value is not None and float(value) >= rule.threshold:
                met.append(rule.code)
        return met

    def try_unlock(self, user_id: int, code: str) -> Optional[dict]:
        """
        Unlock an achievement and award its bonus XP.

        No-op (returns None) if already unlocked or if the code is not in
        the seeded catalog.

        Returns:
            Unlock notification dict or None
        """
        if self.repo.is_unlocked(self.db, user_id, code):
            return None

        achievement = self.repo.get_by_code(self.db, code)
        if achievement is None:
            logger.warning(f"Achievement not found in catalog: {code}")
            return None

        user_achievement = self.repo.create_user_achievement(self.db, user_id, achievement)
        if user_achievement is None:
            # Lost a race against another unlock of the same code
            return None

        self.level_service.grant_xp(
            user_id,
            user_achievement.points_awarded,
            reason=f"achievement {code}"
        )
        logger.info(f"User {user_id} unlocked achievement {code} (+{user_achievement.points_awarded} XP)")

        return {
            "code": achievement.code,
            "name": achievement.name,
            "description": achievement.description,
            "icon": achievement.icon,
            "points_awarded": user_achievement.points_awarded,
        }

    def check_rules(
        self,
        user_id: int,
        category: AchievementCategory,
        signals: Dict[AchievementSignal, float]
    ) -> List[dict]:
        """Unlock every rule of the category whose threshold is met"""
        unlocked = []
        for code in self.evaluate(category, signals):
            result = self.try_unlock(user_id, code)
            if result:
                unlocked.append(result)
        return unlocked

    def check_goal_achievements(self, user_id: int, goals_completed: int) -> List[dict]:
        return self.check_rules(
            user_id,
            AchievementCategory.GOALS,
            {AchievementSignal.GOALS_COMPLETED: goals_completed}
        )

    def check_habit_achievements(self, user_id: int, total_completions: int, current_streak: int) -> List[dict]:
        return self.check_rules(
            user_id,
            AchievementCategory.HABITS,
            {
                AchievementSignal.HABIT_COMPLETIONS: total_completions,
                AchievementSignal.CURRENT_STREAK: current_streak,
            }
        )

    def check_bucket_achievements(self, user_id: int, bucket_completed: int) -> List[dict]:
        return self.check_rules(
            user_id,
            AchievementCategory.BUCKET_LIST,
            {AchievementSignal.BUCKET_COMPLETED: bucket_completed}
        )

    def check_finance_achievements(
        self,
        user_id: int,
        has_savings_goal: bool = False,
        total_saved: float = 0,
        under_budget: bool = False
    ) -> List[dict]:
        return self.check_rules(
            user_id,
            AchievementCategory.FINANCE,
            {
                AchievementSignal.SAVINGS_GOALS: 1 if has_savings_goal else 0,
                AchievementSignal.TOTAL_SAVED: total_saved or 0,
                AchievementSignal.UNDER_BUDGET: 1 if under_budget else 0,
            }
        )

    def count_domains_used(self, user_id: int) -> int:
        """Number of domains (goals, habits, bucket list, finance) with at least one item"""
        return sum([
            GoalRepository.count_all(self.db, user_id) > 0,
            HabitRepository.count_all(self.db, user_id) > 0,
            BucketItemRepository.count_all(self.db, user_id) > 0,
            SavingsGoalRepository.count_all(self.db, user_id) > 0,
        ])

    def check_overall_achievements(self, user_id: int) -> List[dict]:
        return self.check_rules(
            user_id,
            AchievementCategory.OVERALL,
            {AchievementSignal.DOMAINS_USED: self.count_domains_used(user_id)}
        )

    # ===== QUERIES =====

    def get_all_with_status(self, user_id: int) -> List[dict]:
        """Full catalog with the user's unlock state"""
        unlocked = {ua.achievement_id: ua for ua in self.repo.get_unlocked(self.db, user_id)}
        result = []
        for achievement in self.repo.get_all(self.db):
            user_achievement = unlocked.get(achievement.id)
            result.append(self._serialize(achievement, user_achievement))
        return result

    def get_unlocked(self, user_id: int) -> List[dict]:
        """Unlocked achievements, most recent first"""
        return [
            self._serialize(ua.achievement, ua)
            for ua in self.repo.get_unlocked(self.db, user_id)
        ]

    def get_stats(self, user_id: int) -> dict:
        """Totals for the achievements page"""
        unlocked = self.get_unlocked(user_id)
        return {
            "total": self.repo.count_all(self.db),
            "unlocked": len(unlocked),
            "total_points": sum(item["points_awarded"] or 0 for item in unlocked),
            "recent_unlock": unlocked[0] if unlocked else None,
        }

    @staticmethod
    def _serialize(achievement, user_achievement=None) -> dict:
        return {
            "code": achievement.code,
            "name": achievement.name,
            "description": achievement.description,
            "category": achievement.category,
            "icon": achievement.icon,
            "requirement": achievement.requirement,
            "bonus_points": achievement.bonus_points,
            "is_secret": achievement.is_secret,
            "unlocked": user_achievement is not None,
            "unlocked_at": user_achievement.unlocked_at if user_achievement else None,
            "points_awarded": user_achievement.points_awarded if user_achievement else None,
        }
