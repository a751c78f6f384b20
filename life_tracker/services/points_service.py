"""
Points calculation service.
Maps completed goals, bucket items and habit days to XP amounts.
Pure functions: invalid inputs fall back to documented defaults, nothing raises.
"""
import logging
import math
from typing import Optional, Type, TypeVar

from life_tracker.constants import (
    GoalTimeline, GoalPriority, BucketDifficulty, HabitType,
    GOAL_BASE_POINTS, DEFAULT_GOAL_BASE_POINTS,
    PRIORITY_MULTIPLIERS, DEFAULT_PRIORITY_MULTIPLIER,
    BUCKET_POINTS, DEFAULT_BUCKET_POINTS,
    DEFAULT_HABIT_POINTS_PER_DAY
)

logger = logging.getLogger("life_tracker.points")

E = TypeVar("E")


def coerce_enum(enum_cls: Type[E], value) -> Optional[E]:
    """Convert a raw value to an enum member, or None if it is not one"""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        return None


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative values (187.5 -> 188)"""
    return int(math.floor(value + 0.5))


class PointsService:
    """Service for points calculation"""

    @staticmethod
    def calculate_goal_points(timeline, priority) -> int:
        """
        Calculate points for completing a goal.

        Formula: round(BasePoints[timeline] × PriorityMultiplier[priority])

        SHORT_TERM 100, MID_TERM 250, LONG_TERM 500
        HIGH ×1.5, MEDIUM ×1.0, LOW ×0.75

        Unknown timeline falls back to 100 points, unknown priority to ×1.0.
        """
        timeline_member = coerce_enum(GoalTimeline, timeline)
        priority_member = coerce_enum(GoalPriority, priority)

        if timeline_member is None:
            logger.warning(f"Unknown goal timeline {timeline!r}, using default base points")
            base = DEFAULT_GOAL_BASE_POINTS
        else:
            base = GOAL_BASE_POINTS[timeline_member]

        if priority_member is None:
            logger.warning(f"Unknown goal priority {priority!r}, using default multiplier")
            multiplier = DEFAULT_PRIORITY_MULTIPLIER
        else:
            multiplier = PRIORITY_MULTIPLIERS[priority_member]

        return round_half_up(base * multiplier)

    @staticmethod
    def calculate_bucket_points(difficulty) -> int:
        """
        Calculate points for completing a bucket list item.

        EASY 50, MEDIUM 100, HARD 200, EPIC 500; anything else 50.
        """
        member = coerce_enum(BucketDifficulty, difficulty)
        if member is None:
            logger.warning(f"Unknown bucket difficulty {difficulty!r}, using default points")
            return DEFAULT_BUCKET_POINTS
        return BUCKET_POINTS[member]

    @staticmethod
    def meets_daily_target(
        habit_type,
        daily_target: Optional[float],
        completed: bool,
        value: Optional[float] = None
    ) -> bool:
        """
        Check whether a logged day satisfies the habit's completion condition.

        BINARY: the completed flag itself.
        NUMERIC: value >= daily_target when a value is logged; without a
        value the completed flag decides.
        """
        if coerce_enum(HabitType, habit_type) == HabitType.NUMERIC and value is not None:
            return value >= (daily_target or 0)
        return bool(completed)

    @staticmethod
    def calculate_habit_points(
        habit_type,
        daily_target: Optional[float],
        points_per_day: Optional[int],
        completed: bool,
        value: Optional[float] = None
    ) -> int:
        """
        Calculate points for one habit day.

        Returns the habit's points_per_day if the day's completion
        condition is met, otherwise 0.
        """
        if not PointsService.meets_daily_target(habit_type, daily_target, completed, value):
            return 0
        if points_per_day is None or points_per_day < 0:
            return DEFAULT_HABIT_POINTS_PER_DAY
        return points_per_day
