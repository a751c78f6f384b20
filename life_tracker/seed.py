"""Achievement catalog seed data."""
import logging

from sqlalchemy.orm import Session

from life_tracker import constants
from life_tracker.constants import AchievementCategory
from life_tracker.repositories.achievement_repository import AchievementRepository

logger = logging.getLogger("life_tracker.seed")

ACHIEVEMENT_SEED_DATA = [
    # Goals
    {
        "code": constants.GOAL_GETTER,
        "name": "Goal Getter",
        "description": "Complete your first goal",
        "category": AchievementCategory.GOALS.value,
        "icon": "🎯",
        "requirement": "Complete 1 goal",
        "bonus_points": 25,
    },
    {
        "code": constants.TRIPLE_THREAT,
        "name": "Triple Threat",
        "description": "Complete 3 goals",
        "category": AchievementCategory.GOALS.value,
        "icon": "🎯",
        "requirement": "Complete 3 goals",
        "bonus_points": 50,
    },
    {
        "code": constants.GOAL_MASTER,
        "name": "Goal Master",
        "description": "Complete 10 goals",
        "category": AchievementCategory.GOALS.value,
        "icon": "🏅",
        "requirement": "Complete 10 goals",
        "bonus_points": 200,
    },
    # Habits
    {
        "code": constants.FIRST_STEPS,
        "name": "First Steps",
        "description": "Complete your first habit",
        "category": AchievementCategory.HABITS.value,
        "icon": "👣",
        "requirement": "Complete 1 habit entry",
        "bonus_points": 10,
    },
    {
        "code": constants.WEEK_WARRIOR,
        "name": "Week Warrior",
        "description": "Maintain a 7-day streak on any habit",
        "category": AchievementCategory.HABITS.value,
        "icon": "🔥",
        "requirement": "7-day streak",
        "bonus_points": 50,
    },
    {
        "code": constants.MONTH_MASTER,
        "name": "Month Master",
        "description": "Maintain a 30-day streak on any habit",
        "category": AchievementCategory.HABITS.value,
        "icon": "💪",
        "requirement": "30-day streak",
        "bonus_points": 200,
    },
    {
        "code": constants.HABIT_LEGEND,
        "name": "Habit Legend",
        "description": "Maintain a 100-day streak on any habit",
        "category": AchievementCategory.HABITS.value,
        "icon": "👑",
        "requirement": "100-day streak",
        "bonus_points": 1000,
    },
    # Finance
    {
        "code": constants.SAVERS_START,
        "name": "Saver's Start",
        "description": "Create your first savings goal",
        "category": AchievementCategory.FINANCE.value,
        "icon": "🐷",
        "requirement": "Create 1 savings goal",
        "bonus_points": 25,
    },
    {
        "code": constants.FIRST_LAKH,
        "name": "First Lakh",
        "description": "Save ₹1,00,000 across all savings goals",
        "category": AchievementCategory.FINANCE.value,
        "icon": "💰",
        "requirement": "Save ₹1,00,000 total",
        "bonus_points": 200,
    },
    {
        "code": constants.BUDGET_BOSS,
        "name": "Budget Boss",
        "description": "Stay under budget for a full month",
        "category": AchievementCategory.FINANCE.value,
        "icon": "📊",
        "requirement": "Under budget for 1 month",
        "bonus_points": 100,
    },
    # Bucket list
    {
        "code": constants.DREAM_STARTER,
        "name": "Dream Starter",
        "description": "Complete your first bucket list item",
        "category": AchievementCategory.BUCKET_LIST.value,
        "icon": "⭐",
        "requirement": "Complete 1 bucket list item",
        "bonus_points": 50,
    },
    {
        "code": constants.ADVENTURE_SEEKER,
        "name": "Adventure Seeker",
        "description": "Complete 5 bucket list items",
        "category": AchievementCategory.BUCKET_LIST.value,
        "icon": "🗺️",
        "requirement": "Complete 5 bucket list items",
        "bonus_points": 150,
    },
    # Overall
    {
        "code": constants.LIFE_TRACKER,
        "name": "Life Tracker",
        "description": "Use all features: goals, habits, finance, and bucket list",
        "category": AchievementCategory.OVERALL.value,
        "icon": "🌟",
        "requirement": "Create item in each category",
        "bonus_points": 100,
    },
]


def seed_achievements(db: Session) -> int:
    """Insert missing catalog entries. Returns number of entries inserted."""
    inserted = 0
    for achievement_data in ACHIEVEMENT_SEED_DATA:
        if AchievementRepository.create_if_missing(db, dict(achievement_data)):
            inserted += 1

    if inserted:
        logger.info(f"Seeded {inserted} achievement definitions")
    return inserted
