"""
Habit management service.
Queries, edits and deletion of habits. Logging a day lives in
ProgressService because it awards XP.
"""
from typing import List, Optional
from sqlalchemy.orm import Session

from life_tracker.constants import HabitType
from life_tracker.exceptions import NotFoundException
from life_tracker.models import Habit, HabitLog
from life_tracker.repositories.habit_repository import HabitRepository, HabitLogRepository
from life_tracker.services.date_service import DateService
from life_tracker.services.progress_service import UserLockRegistry


class HabitService:
    """Service for managing habits"""

    def __init__(self, db: Session, locks: Optional[UserLockRegistry] = None):
        self.db = db
        self.locks = locks or UserLockRegistry()
        self.habit_repo = HabitRepository()
        self.log_repo = HabitLogRepository()
        self.date_service = DateService()

    def get_habits(self, user_id: int, is_active: Optional[bool] = None) -> List[Habit]:
        return self.habit_repo.get_all(self.db, user_id, is_active)

    def get_habit(self, habit_id: int, user_id: int) -> Habit:
        habit = self.habit_repo.get_by_id(self.db, habit_id, user_id)
        if habit is None:
            raise NotFoundException("Habit", habit_id)
        return habit

    def update_habit(self, habit_id: int, user_id: int, habit_update) -> Habit:
        """Update habit settings; existing logs keep their points"""
        update_data = habit_update.model_dump(exclude_unset=True)
        if update_data.get("type") is not None:
            update_data["type"] = HabitType(update_data["type"]).value
        with self.locks.lock_for(user_id):
            habit = self.get_habit(habit_id, user_id)
            for key, value in update_data.items():
                setattr(habit, key, value)
            return self.habit_repo.update(self.db, habit)

    def delete_habit(self, habit_id: int, user_id: int) -> Habit:
        habit = self.get_habit(habit_id, user_id)
        return self.habit_repo.soft_delete(self.db, habit)

    def get_month_logs(self, habit_id: int, user_id: int, year: int, month: int) -> List[HabitLog]:
        """Logs of one habit for a calendar month, oldest first"""
        self.get_habit(habit_id, user_id)
        start_date, end_date = self.date_service.get_month_range(year, month)
        return self.log_repo.get_in_range(self.db, habit_id, start_date, end_date)

    def get_today_status(self, user_id: int) -> List[dict]:
        """Today's log state for every active habit"""
        today = self.date_service.get_today()
        statuses = []
        for habit in self.habit_repo.get_all(self.db, user_id, is_active=True):
            log = self.log_repo.get_by_date(self.db, habit.id, today)
            statuses.append({
                "habit": habit,
                "completed": bool(log and log.completed),
                "value": log.value if log else None,
            })
        return statuses

    def get_stats(self, user_id: int) -> dict:
        habits = self.habit_repo.get_all(self.db, user_id)
        active = [h for h in habits if h.is_active]

        current_streaks = sorted(
            [{"name": h.name, "streak": h.current_streak} for h in active if h.current_streak > 0],
            key=lambda item: item["streak"],
            reverse=True
        )[:5]

        return {
            "total_habits": len(habits),
            "active_habits": len(active),
            "total_completions": self.log_repo.count_completed(self.db, user_id),
            "total_points": self.log_repo.get_total_points(self.db, user_id),
            "best_streak": max([h.best_streak for h in habits], default=0),
            "current_streaks": current_streaks,
        }
