"""
Tests for the goal, habit, bucket list and savings query services.
"""
import pytest
from datetime import date, timedelta
from unittest.mock import patch

from life_tracker.exceptions import NotFoundException, InvalidStateException, ValidationException
from life_tracker.schemas import (
    GoalCreate, GoalUpdate, HabitCreate, HabitUpdate,
    BucketItemCreate, BucketItemUpdate, SavingsGoalCreate
)
from life_tracker.services.bucket_service import BucketListService
from life_tracker.services.goal_service import GoalService
from life_tracker.services.habit_service import HabitService
from life_tracker.services.progress_service import ProgressService, UserLockRegistry
from life_tracker.services.savings_service import SavingsService


@pytest.fixture
def progress(seeded_db):
    return ProgressService(seeded_db)


class TestGoalService:
    """Tests for GoalService"""

    def test_filters_and_soft_delete(self, seeded_db, user, progress):
        short = progress.create_goal(user.id, GoalCreate(title="Short", timeline="SHORT_TERM"))["goal"]
        progress.create_goal(user.id, GoalCreate(title="Long", timeline="LONG_TERM"))
        service = GoalService(seeded_db)

        assert [g.title for g in service.get_goals(user.id, timeline="LONG_TERM")] == ["Long"]

        service.delete_goal(short.id, user.id)
        assert len(service.get_goals(user.id)) == 1
        with pytest.raises(NotFoundException):
            service.get_goal(short.id, user.id)

    def test_update_does_not_recalculate_points(self, seeded_db, user, progress):
        goal = progress.create_goal(user.id, GoalCreate(title="Run", timeline="SHORT_TERM"))["goal"]
        progress.complete_goal(goal.id, user.id)
        service = GoalService(seeded_db)

        updated = service.update_goal(goal.id, user.id, GoalUpdate(timeline="LONG_TERM", priority="HIGH"))

        assert updated.timeline == "LONG_TERM"
        assert updated.points_earned == 100
        assert service.potential_points(updated) == 100

    def test_status_cannot_be_set_to_completed(self, seeded_db, user, progress):
        goal = progress.create_goal(user.id, GoalCreate(title="Run", timeline="SHORT_TERM"))["goal"]
        with pytest.raises(InvalidStateException):
            GoalService(seeded_db).update_goal(goal.id, user.id, GoalUpdate(status="COMPLETED"))

    def test_completed_goal_cannot_be_reopened(self, seeded_db, user, progress):
        goal = progress.create_goal(user.id, GoalCreate(title="Run", timeline="SHORT_TERM"))["goal"]
        progress.complete_goal(goal.id, user.id)
        with pytest.raises(InvalidStateException):
            GoalService(seeded_db).update_goal(goal.id, user.id, GoalUpdate(status="IN_PROGRESS"))

    def test_update_keeps_target_after_start(self, seeded_db, user, progress):
        goal = progress.create_goal(user.id, GoalCreate(
            title="Marathon", timeline="MID_TERM",
            start_date=date(2026, 3, 1), target_date=date(2026, 6, 1)
        ))["goal"]
        service = GoalService(seeded_db)

        with pytest.raises(ValidationException):
            service.update_goal(goal.id, user.id, GoalUpdate(target_date=date(2026, 2, 1)))
        with pytest.raises(ValidationException):
            service.update_goal(goal.id, user.id, GoalUpdate(start_date=date(2026, 7, 1)))

        updated = service.update_goal(goal.id, user.id, GoalUpdate(target_date=date(2026, 9, 1)))
        assert updated.target_date == date(2026, 9, 1)
        assert service.get_goal(goal.id, user.id).start_date == date(2026, 3, 1)

    def test_stats(self, seeded_db, user, progress):
        first = progress.create_goal(user.id, GoalCreate(title="A", timeline="MID_TERM"))["goal"]
        progress.create_goal(user.id, GoalCreate(title="B", timeline="SHORT_TERM"))
        progress.complete_goal(first.id, user.id)

        stats = GoalService(seeded_db).get_stats(user.id)

        assert stats["total"] == 2
        assert stats["completed"] == 1
        assert stats["not_started"] == 1
        assert stats["completion_rate"] == 50
        assert stats["total_points"] == 250


class TestHabitService:
    """Tests for HabitService"""

    def test_month_logs_in_order(self, seeded_db, user, progress, today):
        habit = progress.create_habit(user.id, HabitCreate(name="Walk"))["habit"]
        for day in (date(2026, 3, 3), date(2026, 3, 1), date(2026, 2, 28)):
            progress.log_habit(habit.id, user.id, day, True, today=today)

        logs = HabitService(seeded_db).get_month_logs(habit.id, user.id, 2026, 3)

        assert [log.date for log in logs] == [date(2026, 3, 1), date(2026, 3, 3)]

    def test_update_and_deactivate(self, seeded_db, user, progress):
        habit = progress.create_habit(user.id, HabitCreate(name="Walk"))["habit"]
        service = HabitService(seeded_db)

        service.update_habit(habit.id, user.id, HabitUpdate(points_per_day=20, is_active=False))

        assert service.get_habits(user.id, is_active=True) == []
        assert service.get_habit(habit.id, user.id).points_per_day == 20

    def test_today_status(self, seeded_db, user, progress, today):
        done = progress.create_habit(user.id, HabitCreate(name="Done"))["habit"]
        progress.create_habit(user.id, HabitCreate(name="Pending"))
        progress.log_habit(done.id, user.id, today, True, today=today)

        with patch("life_tracker.services.date_service.datetime") as mock_dt:
            mock_dt.now.return_value.date.return_value = today
            statuses = HabitService(seeded_db).get_today_status(user.id)

        by_name = {status["habit"].name: status["completed"] for status in statuses}
        assert by_name == {"Done": True, "Pending": False}

    def test_stats(self, seeded_db, user, progress, today):
        habit = progress.create_habit(user.id, HabitCreate(name="Walk", points_per_day=7))["habit"]
        for offset in range(3):
            progress.log_habit(habit.id, user.id, today - timedelta(days=offset), True, today=today)

        stats = HabitService(seeded_db).get_stats(user.id)

        assert stats["total_completions"] == 3
        assert stats["total_points"] == 21
        assert stats["best_streak"] == 3
        assert stats["current_streaks"] == [{"name": "Walk", "streak": 3}]


class TestBucketListService:
    """Tests for BucketListService"""

    def test_completed_item_keeps_difficulty(self, seeded_db, user, progress):
        item = progress.create_bucket_item(
            user.id, BucketItemCreate(title="Skydive", difficulty="HARD")
        )["item"]
        progress.complete_bucket_item(item.id, user.id)

        with pytest.raises(InvalidStateException):
            BucketListService(seeded_db).update_item(
                item.id, user.id, BucketItemUpdate(difficulty="EASY")
            )

    def test_stats_by_category(self, seeded_db, user, progress):
        progress.create_bucket_item(user.id, BucketItemCreate(title="Japan", category="TRAVEL", difficulty="HARD"))
        progress.create_bucket_item(user.id, BucketItemCreate(title="Peru", category="TRAVEL", difficulty="HARD"))
        progress.create_bucket_item(user.id, BucketItemCreate(title="Piano", category="SKILLS", difficulty="MEDIUM"))

        stats = BucketListService(seeded_db).get_stats(user.id)

        assert stats["total"] == 3
        assert stats["pending"] == 3
        assert stats["by_category"] == {"TRAVEL": 2, "SKILLS": 1}


class TestSavingsService:
    """Tests for SavingsService"""

    def test_stats(self, seeded_db, user, progress):
        progress.create_savings_goal(
            user.id, SavingsGoalCreate(name="Laptop", target_amount=1000, current_amount=1000)
        )
        progress.create_savings_goal(
            user.id, SavingsGoalCreate(name="Trip", target_amount=3000, current_amount=1000)
        )

        stats = SavingsService(seeded_db).get_stats(user.id)

        assert stats["total_goals"] == 2
        assert stats["completed_goals"] == 1
        assert stats["total_saved"] == 2000
        assert stats["progress_percent"] == 50

    def test_missing_goal(self, seeded_db, user):
        with pytest.raises(NotFoundException):
            SavingsService(seeded_db).get_goal(1, user.id)


class RecordingLockRegistry(UserLockRegistry):
    def __init__(self):
        super().__init__()
        self.requested = []

    def lock_for(self, user_id):
        self.requested.append(user_id)
        return super().lock_for(user_id)


class TestEditsTakeUserLock:
    """Edits outside ProgressService still serialize on the user's lock"""

    def test_goal_habit_and_bucket_updates(self, seeded_db, user, progress):
        goal = progress.create_goal(user.id, GoalCreate(title="Run", timeline="SHORT_TERM"))["goal"]
        habit = progress.create_habit(user.id, HabitCreate(name="Walk"))["habit"]
        item = progress.create_bucket_item(user.id, BucketItemCreate(title="Japan", difficulty="HARD"))["item"]
        registry = RecordingLockRegistry()

        GoalService(seeded_db, registry).update_goal(goal.id, user.id, GoalUpdate(title="Run more"))
        HabitService(seeded_db, registry).update_habit(habit.id, user.id, HabitUpdate(name="Walk far"))
        BucketListService(seeded_db, registry).update_item(item.id, user.id, BucketItemUpdate(title="Kyoto"))

        assert registry.requested == [user.id, user.id, user.id]

    def test_shares_registry_with_progress_service(self, seeded_db):
        registry = UserLockRegistry()
        assert GoalService(seeded_db, registry).locks.lock_for(3) is ProgressService(seeded_db, registry).locks.lock_for(3)
