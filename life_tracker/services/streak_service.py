"""
Habit streak calculation.

Streaks are always recomputed from the full log set rather than patched
incrementally, so the result depends only on which days are logged, never
on the order they were written.
"""
import logging
from datetime import date
from typing import Iterable, Optional, Tuple

from sqlalchemy.orm import Session

from life_tracker.models import Habit
from life_tracker.repositories.habit_repository import HabitRepository, HabitLogRepository
from life_tracker.services.date_service import DateService

logger = logging.getLogger("life_tracker.streaks")


class StreakService:
    """Service for habit streak calculation"""

    def __init__(self, db: Session):
        self.db = db
        self.habit_repo = HabitRepository()
        self.log_repo = HabitLogRepository()
        self.date_service = DateService()

    @staticmethod
    def calculate_current_streak(logs: Iterable, today: date) -> int:
        """
        Count consecutive completed days ending today.

        Walks logs from most recent to oldest with an expected offset that
        starts at 0 (today). A matching completed day extends the streak; a
        log further back than expected means a gap, which ends the walk.
        A day logged but not completed fails to match, so the next older
        log lands past the expected offset and the walk stops there.
        Future-dated logs are ignored.

        Args:
            logs: Objects with .date and .completed, any order
            today: Reference day (UTC)

        Returns:
            Current streak (0 when today is not completed)
        """
        ordered = sorted(logs, key=lambda log: log.date, reverse=True)
        streak = 0

        for log in ordered:
            days_diff = DateService.days_between(today, log.date)
            if days_diff == streak and log.completed:
                streak += 1
            elif days_diff > streak:
                break

        return streak

    @staticmethod
    def calculate(logs: Iterable, today: date, previous_best: Optional[int] = 0) -> Tuple[int, int]:
        """
        Compute (current_streak, best_streak).

        best_streak never decreases: max(previous_best, current).
        """
        current = StreakService.calculate_current_streak(logs, today)
        return current, max(previous_best or 0, current)

    def refresh_habit_streaks(self, habit: Habit, today: Optional[date] = None) -> Habit:
        """
        Recompute and store a habit's streaks from all of its logs.

        Args:
            habit: Habit to refresh
            today: Reference day, defaults to today in UTC

        Returns:
            Updated habit
        """
        if today is None:
            today = self.date_service.get_today()

        logs = self.log_repo.get_logs(self.db, habit.id)
        current, best = self.calculate(logs, today, habit.best_streak)

        if current != habit.current_streak or best != habit.best_streak:
            logger.info(
                f"Habit {habit.id} streak {habit.current_streak} -> {current} (best {best})"
            )

        habit.current_streak = current
        habit.best_streak = best
        return self.habit_repo.update(self.db, habit)
