"""
Application constants and configuration.
Gamification tables, catalog codes and environment-driven settings.
"""
import enum
import os


# ===== CONFIGURATION =====

DATABASE_URL = os.getenv("LIFE_TRACKER_DATABASE_URL", "sqlite:///./life_tracker.db")

API_KEY = os.getenv("LIFE_TRACKER_API_KEY", "your-secret-key-change-me")

DEFAULT_LOG_DIRECTORY_PROD = "/var/log/life_tracker"
DEFAULT_LOG_DIRECTORY_DEV = "./logs"

CORS_ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "LIFE_TRACKER_CORS_ORIGINS",
        "http://localhost:5173,http://localhost:3000"
    ).split(",")
    if origin.strip()
]

# Single-user bootstrap
DEFAULT_USER_NAME = os.getenv("LIFE_TRACKER_USER_NAME", "Life Tracker User")
DEFAULT_USER_EMAIL = os.getenv("LIFE_TRACKER_USER_EMAIL", "user@lifetracker.local")


# ===== DOMAIN ENUMS =====

class GoalTimeline(str, enum.Enum):
    SHORT_TERM = "SHORT_TERM"
    MID_TERM = "MID_TERM"
    LONG_TERM = "LONG_TERM"


class GoalPriority(str, enum.Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class GoalStatus(str, enum.Enum):
    NOT_STARTED = "NOT_STARTED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    ON_HOLD = "ON_HOLD"


class BucketDifficulty(str, enum.Enum):
    EASY = "EASY"
    MEDIUM = "MEDIUM"
    HARD = "HARD"
    EPIC = "EPIC"


class BucketCategory(str, enum.Enum):
    TRAVEL = "TRAVEL"
    SKILLS = "SKILLS"
    EXPERIENCES = "EXPERIENCES"
    MILESTONES = "MILESTONES"


class HabitType(str, enum.Enum):
    BINARY = "BINARY"
    NUMERIC = "NUMERIC"


class AchievementCategory(str, enum.Enum):
    GOALS = "GOALS"
    HABITS = "HABITS"
    BUCKET_LIST = "BUCKET_LIST"
    FINANCE = "FINANCE"
    OVERALL = "OVERALL"


# ===== POINT VALUES =====

GOAL_BASE_POINTS = {
    GoalTimeline.SHORT_TERM: 100,
    GoalTimeline.MID_TERM: 250,
    GoalTimeline.LONG_TERM: 500,
}
DEFAULT_GOAL_BASE_POINTS = 100

PRIORITY_MULTIPLIERS = {
    GoalPriority.HIGH: 1.5,
    GoalPriority.MEDIUM: 1.0,
    GoalPriority.LOW: 0.75,
}
DEFAULT_PRIORITY_MULTIPLIER = 1.0

BUCKET_POINTS = {
    BucketDifficulty.EASY: 50,
    BucketDifficulty.MEDIUM: 100,
    BucketDifficulty.HARD: 200,
    BucketDifficulty.EPIC: 500,
}
DEFAULT_BUCKET_POINTS = 50

HABIT_POINTS_PER_DAY_MIN = 1
HABIT_POINTS_PER_DAY_MAX = 100
DEFAULT_HABIT_POINTS_PER_DAY = 5
DEFAULT_HABIT_DAILY_TARGET = 1


# ===== LEVELS =====
# (level, title, icon, min_xp) ascending; the last tier has no upper bound

LEVEL_TIERS = [
    (1, "Novice", "🌱", 0),
    (2, "Apprentice", "🌿", 501),
    (3, "Journeyman", "🌳", 1501),
    (4, "Expert", "⚔️", 3501),
    (5, "Master", "🛡️", 7001),
    (6, "Grandmaster", "👑", 12001),
    (7, "Legend", "🏆", 20001),
]


# ===== ACHIEVEMENTS =====

GOAL_GETTER = "GOAL_GETTER"
TRIPLE_THREAT = "TRIPLE_THREAT"
GOAL_MASTER = "GOAL_MASTER"
FIRST_STEPS = "FIRST_STEPS"
WEEK_WARRIOR = "WEEK_WARRIOR"
MONTH_MASTER = "MONTH_MASTER"
HABIT_LEGEND = "HABIT_LEGEND"
DREAM_STARTER = "DREAM_STARTER"
ADVENTURE_SEEKER = "ADVENTURE_SEEKER"
SAVERS_START = "SAVERS_START"
FIRST_LAKH = "FIRST_LAKH"
BUDGET_BOSS = "BUDGET_BOSS"
LIFE_TRACKER = "LIFE_TRACKER"

FIRST_LAKH_AMOUNT = 100000
