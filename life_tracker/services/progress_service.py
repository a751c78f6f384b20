"""
Progress coordinator.

Runs every XP-affecting mutation in a fixed order:
1. validate and apply the entity change
2. compute points
3. grant XP (refreshes cached level)
4. update the profile counter
5. evaluate the domain's achievements with the fresh counters
6. return entity, points and newly unlocked achievements

All mutations for one user are serialized through a per-user lock.
"""
import logging
import threading
from contextlib import contextmanager
from datetime import date, datetime
from typing import Dict, Optional

from sqlalchemy.orm import Session

from life_tracker.constants import (
    GoalStatus, GoalTimeline, GoalPriority, BucketDifficulty, BucketCategory, HabitType
)
from life_tracker.exceptions import (
    NotFoundException, AlreadyCompletedException, InvalidStateException, ValidationException
)
from life_tracker.models import Goal, Habit, BucketItem, SavingsGoal
from life_tracker.repositories.goal_repository import GoalRepository
from life_tracker.repositories.habit_repository import HabitRepository, HabitLogRepository
from life_tracker.repositories.bucket_repository import BucketItemRepository
from life_tracker.repositories.savings_repository import SavingsGoalRepository
from life_tracker.repositories.user_repository import PlayerProfileRepository
from life_tracker.services.achievement_service import AchievementService
from life_tracker.services.date_service import DateService
from life_tracker.services.finance_service import FinanceService
from life_tracker.services.level_service import LevelService
from life_tracker.services.points_service import PointsService
from life_tracker.services.profile_service import ProfileService
from life_tracker.services.streak_service import StreakService

logger = logging.getLogger("life_tracker.progress")


class UserLockRegistry:
    """One re-entrant lock per user id, created on first use"""

    def __init__(self):
        self._locks: Dict[int, threading.RLock] = {}
        self._guard = threading.Lock()

    def lock_for(self, user_id: int) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(user_id)
            if lock is None:
                lock = threading.RLock()
                self._locks[user_id] = lock
            return lock


class ProgressService:
    """Coordinates entity changes, XP, counters, streaks and achievements"""

    def __init__(self, db: Session, locks: Optional[UserLockRegistry] = None):
        self.db = db
        self.locks = locks or UserLockRegistry()
        self.goal_repo = GoalRepository()
        self.habit_repo = HabitRepository()
        self.log_repo = HabitLogRepository()
        self.bucket_repo = BucketItemRepository()
        self.savings_repo = SavingsGoalRepository()
        self.profile_repo = PlayerProfileRepository()
        self.points_service = PointsService()
        self.date_service = DateService()
        self.level_service = LevelService(db)
        self.streak_service = StreakService(db)
        self.achievement_service = AchievementService(db, self.level_service)
        self.profile_service = ProfileService(db)
        self.finance_service = FinanceService(db)

    @contextmanager
    def _serialized(self, user_id: int):
        with self.locks.lock_for(user_id):
            yield

    # ===== GOALS =====

    def create_goal(self, user_id: int, data) -> dict:
        """Create a goal and check the overall achievement"""
        values = data.model_dump()
        start_date = values.get("start_date")
        target_date = values.get("target_date")
        if start_date and target_date and target_date <= start_date:
            raise ValidationException("target_date", "Target date must be after start date")

        with self._serialized(user_id):
            goal = Goal(
                user_id=user_id,
                title=values["title"],
                description=values.get("description"),
                category=values.get("category"),
                timeline=GoalTimeline(values["timeline"]).value,
                priority=GoalPriority(values.get("priority") or GoalPriority.MEDIUM).value,
                status=GoalStatus.NOT_STARTED.value,
                progress=0,
                start_date=start_date,
                target_date=target_date,
                points_earned=0
            )
            goal = self.goal_repo.create(self.db, goal)
            unlocked = self.achievement_service.check_overall_achievements(user_id)

        return {"goal": goal, "unlocked_achievements": unlocked}

    def update_goal_progress(self, goal_id: int, user_id: int, progress: int) -> Goal:
        """
        Set goal progress (0-100).

        Status follows progress between NOT_STARTED and IN_PROGRESS; reaching
        100 does not complete the goal, completion is an explicit action.
        """
        if progress is None or not 0 <= progress <= 100:
            raise InvalidStateException(f"Progress must be between 0 and 100, got {progress}")

        with self._serialized(user_id):
            goal = self.goal_repo.get_by_id(self.db, goal_id, user_id)
            if goal is None:
                raise NotFoundException("Goal", goal_id)
            if goal.status == GoalStatus.COMPLETED.value:
                raise InvalidStateException("Cannot change progress of a completed goal")

            if progress == 0 and goal.status == GoalStatus.IN_PROGRESS.value:
                goal.status = GoalStatus.NOT_STARTED.value
            elif 0 < progress < 100 and goal.status == GoalStatus.NOT_STARTED.value:
                goal.status = GoalStatus.IN_PROGRESS.value
            goal.progress = progress
            return self.goal_repo.update(self.db, goal)

    def complete_goal(self, goal_id: int, user_id: int) -> dict:
        """
        Complete a goal - awards points once and checks goal achievements.

        Raises:
            NotFoundException: Goal missing or not owned by user
            AlreadyCompletedException: Goal was completed before
        """
        with self._serialized(user_id):
            goal = self.goal_repo.get_by_id(self.db, goal_id, user_id)
            if goal is None:
                raise NotFoundException("Goal", goal_id)
            if goal.status == GoalStatus.COMPLETED.value:
                logger.warning(f"Rejected re-completion of goal {goal_id}")
                raise AlreadyCompletedException("Goal", goal_id)

            points = self.points_service.calculate_goal_points(goal.timeline, goal.priority)

            goal.status = GoalStatus.COMPLETED.value
            goal.progress = 100
            goal.points_earned = points
            goal.completed_at = datetime.utcnow()
            goal = self.goal_repo.update(self.db, goal)

            self.level_service.grant_xp(user_id, points, reason=f"goal {goal_id} completed")
            profile = self.profile_repo.increment_counter(self.db, user_id, "goals_completed")

            unlocked = self.achievement_service.check_goal_achievements(
                user_id, profile.goals_completed
            )

        return {"goal": goal, "points_awarded": points, "unlocked_achievements": unlocked}

    # ===== HABITS =====

    def create_habit(self, user_id: int, data) -> dict:
        """Create a habit and check the overall achievement"""
        values = data.model_dump()
        with self._serialized(user_id):
            habit = Habit(
                user_id=user_id,
                name=values["name"],
                type=HabitType(values.get("type") or HabitType.BINARY).value,
                unit=values.get("unit"),
                daily_target=values["daily_target"],
                points_per_day=values["points_per_day"],
                is_active=True,
                current_streak=0,
                best_streak=0
            )
            habit = self.habit_repo.create(self.db, habit)
            unlocked = self.achievement_service.check_overall_achievements(user_id)

        return {"habit": habit, "unlocked_achievements": unlocked}

    def log_habit(
        self,
        habit_id: int,
        user_id: int,
        log_date,
        completed: bool,
        value: Optional[float] = None,
        today: Optional[date] = None
    ) -> dict:
        """
        Log a habit for one calendar day.

        Points for a (habit, day) are paid at most once: the stored
        points_earned is read first and carried forward, so toggling a day
        off keeps it and toggling back on does not pay again.

        For NUMERIC habits with a value the stored completed flag is
        value >= daily_target, whatever the caller sent.

        Raises:
            NotFoundException: Habit missing or not owned by user
            ValidationException: Malformed or future date
        """
        if isinstance(log_date, str):
            log_date = self.date_service.parse_date(log_date)
        if today is None:
            today = self.date_service.get_today()
        if log_date > today:
            raise ValidationException("date", "Cannot log a habit for a future date")

        with self._serialized(user_id):
            habit = self.habit_repo.get_by_id(self.db, habit_id, user_id)
            if habit is None:
                raise NotFoundException("Habit", habit_id)

            existing = self.log_repo.get_by_date(self.db, habit_id, log_date)
            points_already_earned = existing.points_earned if existing and existing.points_earned else 0

            meets_target = self.points_service.meets_daily_target(
                habit.type, habit.daily_target, completed, value
            )
            is_new_completion = meets_target and points_already_earned == 0
            points_to_award = 0
            if is_new_completion:
                points_to_award = self.points_service.calculate_habit_points(
                    habit.type, habit.daily_target, habit.points_per_day, completed, value
                )

            # completed is stored as the scored condition
            log = self.log_repo.upsert(
                self.db,
                habit_id,
                log_date,
                meets_target,
                value,
                points_to_award if points_to_award > 0 else points_already_earned
            )

            habit = self.streak_service.refresh_habit_streaks(habit, today)

            if points_to_award > 0:
                self.level_service.grant_xp(
                    user_id, points_to_award, reason=f"habit {habit_id} on {log_date.isoformat()}"
                )
                self.profile_repo.increment_counter(self.db, user_id, "habits_completed")

            unlocked = []
            if meets_target:
                total_completions = self.log_repo.count_completed(self.db, user_id)
                unlocked = self.achievement_service.check_habit_achievements(
                    user_id, total_completions, habit.current_streak
                )

        return {
            "log": log,
            "habit": habit,
            "points_earned": points_to_award,
            "is_new_completion": points_to_award > 0,
            "unlocked_achievements": unlocked,
        }

    # ===== BUCKET LIST =====

    def create_bucket_item(self, user_id: int, data) -> dict:
        """Create a bucket list item and check the overall achievement"""
        values = data.model_dump()
        with self._serialized(user_id):
            item = BucketItem(
                user_id=user_id,
                title=values["title"],
                category=BucketCategory(values.get("category") or BucketCategory.EXPERIENCES).value,
                difficulty=BucketDifficulty(values["difficulty"]).value,
                estimated_cost=values.get("estimated_cost"),
                notes=values.get("notes"),
                is_completed=False,
                points_earned=0
            )
            item = self.bucket_repo.create(self.db, item)
            unlocked = self.achievement_service.check_overall_achievements(user_id)

        return {"item": item, "unlocked_achievements": unlocked}

    def complete_bucket_item(self, item_id: int, user_id: int, notes: Optional[str] = None) -> dict:
        """
        Complete a bucket list item - awards points once.

        Raises:
            NotFoundException: Item missing or not owned by user
            AlreadyCompletedException: Item was completed before
        """
        with self._serialized(user_id):
            item = self.bucket_repo.get_by_id(self.db, item_id, user_id)
            if item is None:
                raise NotFoundException("Bucket item", item_id)
            if item.is_completed:
                logger.warning(f"Rejected re-completion of bucket item {item_id}")
                raise AlreadyCompletedException("Bucket item", item_id)

            points = self.points_service.calculate_bucket_points(item.difficulty)

            item.is_completed = True
            item.completed_at = datetime.utcnow()
            item.points_earned = points
            if notes:
                item.notes = notes
            item = self.bucket_repo.update(self.db, item)

            self.level_service.grant_xp(user_id, points, reason=f"bucket item {item_id} completed")
            profile = self.profile_repo.increment_counter(self.db, user_id, "bucket_completed")

            unlocked = self.achievement_service.check_bucket_achievements(
                user_id, profile.bucket_completed
            )

        return {"item": item, "points_awarded": points, "unlocked_achievements": unlocked}

    # ===== FINANCE =====

    def _finance_checks(self, user_id: int) -> list:
        total_saved = self.profile_service.recompute_total_saved(user_id)
        has_savings_goal = self.savings_repo.count_all(self.db, user_id) > 0
        return self.achievement_service.check_finance_achievements(
            user_id,
            has_savings_goal=has_savings_goal,
            total_saved=total_saved
        )

    def create_savings_goal(self, user_id: int, data) -> dict:
        """Create a savings goal, recompute total saved and check finance/overall achievements"""
        values = data.model_dump()
        start_date = values.get("start_date")
        target_date = values.get("target_date")
        if start_date and target_date and target_date <= start_date:
            raise ValidationException("target_date", "Target date must be after start date")

        with self._serialized(user_id):
            goal = SavingsGoal(
                user_id=user_id,
                name=values["name"],
                target_amount=values["target_amount"],
                current_amount=values.get("current_amount") or 0.0,
                start_date=start_date,
                target_date=target_date,
                priority=GoalPriority(values.get("priority") or GoalPriority.MEDIUM).value,
                notes=values.get("notes")
            )
            goal = self.savings_repo.create(self.db, goal)
            unlocked = self._finance_checks(user_id)
            unlocked += self.achievement_service.check_overall_achievements(user_id)

        return {"goal": goal, "unlocked_achievements": unlocked}

    def update_savings_goal(self, goal_id: int, user_id: int, data) -> dict:
        """Update a savings goal and recompute total saved"""
        update_data = data.model_dump(exclude_unset=True)
        with self._serialized(user_id):
            goal = self.savings_repo.get_by_id(self.db, goal_id, user_id)
            if goal is None:
                raise NotFoundException("Savings goal", goal_id)
            for key, value in update_data.items():
                if key == "priority" and value is not None:
                    value = GoalPriority(value).value
                setattr(goal, key, value)
            goal = self.savings_repo.update(self.db, goal)
            unlocked = self._finance_checks(user_id)

        return {"goal": goal, "unlocked_achievements": unlocked}

    def deposit_savings(self, goal_id: int, user_id: int, amount: float) -> dict:
        """
        Add money to a savings goal.

        Raises:
            ValidationException: amount is not positive
            NotFoundException: Savings goal missing or not owned by user
        """
        if amount is None or amount <= 0:
            raise ValidationException("amount", "Must be greater than 0")

        with self._serialized(user_id):
            goal = self.savings_repo.get_by_id(self.db, goal_id, user_id)
            if goal is None:
                raise NotFoundException("Savings goal", goal_id)
            goal = self.savings_repo.add_amount(self.db, goal, amount)
            unlocked = self._finance_checks(user_id)

        return {"goal": goal, "unlocked_achievements": unlocked}

    def delete_savings_goal(self, goal_id: int, user_id: int) -> dict:
        """Soft delete a savings goal, recompute total saved and run finance checks"""
        with self._serialized(user_id):
            goal = self.savings_repo.get_by_id(self.db, goal_id, user_id)
            if goal is None:
                raise NotFoundException("Savings goal", goal_id)
            self.savings_repo.soft_delete(self.db, goal)
            unlocked = self._finance_checks(user_id)

        return {"unlocked_achievements": unlocked}

    def review_budget_month(
        self,
        user_id: int,
        year: int,
        month: int,
        today: Optional[date] = None
    ) -> dict:
        """
        Close a finished month and evaluate BUDGET_BOSS from its budget vs actual.

        The month counts as under budget when it has at least one budget and
        no category spent more than its budgeted amount.

        Raises:
            ValidationException: month outside 1-12
            InvalidStateException: the month has not ended yet
        """
        self.date_service.get_month_range(year, month)
        if today is None:
            today = self.date_service.get_today()
        if (year, month) >= (today.year, today.month):
            raise InvalidStateException(f"Budget month {year}-{month:02d} has not ended yet")

        with self._serialized(user_id):
            rows = self.finance_service.get_budget_vs_actual(user_id, year, month)
            under_budget = self.finance_service.is_under_budget(rows)
            unlocked = self.achievement_service.check_finance_achievements(
                user_id, under_budget=under_budget
            )

        logger.info(f"Budget review {year}-{month:02d} for user {user_id}: under_budget={under_budget}")
        return {
            "year": year,
            "month": month,
            "under_budget": under_budget,
            "budget_vs_actual": rows,
            "unlocked_achievements": unlocked,
        }
