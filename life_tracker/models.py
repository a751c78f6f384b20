from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Float, Date, ForeignKey, UniqueConstraint
)
from sqlalchemy.orm import relationship
from datetime import datetime

from life_tracker.database import Base
from life_tracker.constants import (
    GoalStatus, GoalPriority, BucketCategory, HabitType,
    DEFAULT_HABIT_POINTS_PER_DAY, DEFAULT_HABIT_DAILY_TARGET
)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False, unique=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    profile = relationship("PlayerProfile", back_populates="user", uselist=False)


class PlayerProfile(Base):
    __tablename__ = "player_profiles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, unique=True)

    # XP is the source of truth; current_level is a cache of LevelService output
    total_xp = Column(Integer, default=0, nullable=False)
    current_level = Column(Integer, default=1, nullable=False)

    # Domain counters
    goals_completed = Column(Integer, default=0, nullable=False)
    bucket_completed = Column(Integer, default=0, nullable=False)
    habits_completed = Column(Integer, default=0, nullable=False)
    total_saved = Column(Float, default=0.0, nullable=False)

    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="profile")


class Goal(Base):
    __tablename__ = "goals"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(String, nullable=True)
    category = Column(String, nullable=True)
    timeline = Column(String, nullable=False)  # SHORT_TERM, MID_TERM, LONG_TERM
    priority = Column(String, default=GoalPriority.MEDIUM.value)  # HIGH, MEDIUM, LOW
    status = Column(String, default=GoalStatus.NOT_STARTED.value)
    progress = Column(Integer, default=0)  # 0-100
    start_date = Column(Date, nullable=True)
    target_date = Column(Date, nullable=True)

    # Set once at the transition into COMPLETED
    points_earned = Column(Integer, default=0)
    completed_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    deleted_at = Column(DateTime, nullable=True)


class BucketItem(Base):
    __tablename__ = "bucket_items"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    category = Column(String, default=BucketCategory.EXPERIENCES.value)
    difficulty = Column(String, nullable=False)  # EASY, MEDIUM, HARD, EPIC
    estimated_cost = Column(Float, nullable=True)
    notes = Column(String, nullable=True)

    is_completed = Column(Boolean, default=False)  # one-way
    completed_at = Column(DateTime, nullable=True)
    points_earned = Column(Integer, default=0)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    deleted_at = Column(DateTime, nullable=True)


class Habit(Base):
    __tablename__ = "habits"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    type = Column(String, default=HabitType.BINARY.value)  # BINARY or NUMERIC
    unit = Column(String, nullable=True)  # For NUMERIC habits, e.g. "pages"
    daily_target = Column(Float, default=DEFAULT_HABIT_DAILY_TARGET)
    points_per_day = Column(Integer, default=DEFAULT_HABIT_POINTS_PER_DAY)  # 1-100
    is_active = Column(Boolean, default=True)

    # Derived from logs after every log write
    current_streak = Column(Integer, default=0)
    best_streak = Column(Integer, default=0)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    deleted_at = Column(DateTime, nullable=True)

    logs = relationship(
        "HabitLog",
        back_populates="habit",
        order_by="HabitLog.date.desc()",
        cascade="all, delete-orphan"
    )


class HabitLog(Base):
    __tablename__ = "habit_logs"
    __table_args__ = (
        UniqueConstraint("habit_id", "date", name="uq_habit_log_habit_date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    habit_id = Column(Integer, ForeignKey("habits.id"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)  # UTC calendar day
    completed = Column(Boolean, default=False)
    value = Column(Float, nullable=True)  # For NUMERIC habits

    # Sticky once non-zero: never reclaimed, never re-granted
    points_earned = Column(Integer, default=0)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    habit = relationship("Habit", back_populates="logs")


class Achievement(Base):
    __tablename__ = "achievements"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String, nullable=False, unique=True, index=True)
    name = Column(String, nullable=False)
    description = Column(String, nullable=True)
    category = Column(String, nullable=False)  # GOALS, HABITS, BUCKET_LIST, FINANCE, OVERALL
    icon = Column(String, nullable=False)
    requirement = Column(String, nullable=True)
    bonus_points = Column(Integer, default=0)
    is_secret = Column(Boolean, default=False)


class UserAchievement(Base):
    __tablename__ = "user_achievements"
    __table_args__ = (
        UniqueConstraint("user_id", "achievement_id", name="uq_user_achievement"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    achievement_id = Column(Integer, ForeignKey("achievements.id"), nullable=False)
    unlocked_at = Column(DateTime, default=datetime.utcnow)
    points_awarded = Column(Integer, nullable=False)  # Frozen copy of bonus_points

    achievement = relationship("Achievement")


class SavingsGoal(Base):
    __tablename__ = "savings_goals"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    target_amount = Column(Float, nullable=False)
    current_amount = Column(Float, default=0.0)
    start_date = Column(Date, nullable=True)
    target_date = Column(Date, nullable=True)
    priority = Column(String, default=GoalPriority.MEDIUM.value)
    notes = Column(String, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    deleted_at = Column(DateTime, nullable=True)


class Expense(Base):
    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    amount = Column(Float, nullable=False)
    description = Column(String, nullable=True)
    category = Column(String, nullable=False, index=True)  # e.g. "Food", matches Budget.category
    date = Column(Date, nullable=False, index=True)
    payment_method = Column(String, nullable=True)
    notes = Column(String, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    deleted_at = Column(DateTime, nullable=True)


class Budget(Base):
    __tablename__ = "budgets"
    __table_args__ = (
        UniqueConstraint("user_id", "category", "year", "month", name="uq_budget_user_category_month"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    category = Column(String, nullable=False)
    amount = Column(Float, nullable=False)
    year = Column(Integer, nullable=False)
    month = Column(Integer, nullable=False)  # 1-12

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
