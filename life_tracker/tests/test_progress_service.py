"""
Tests for ProgressService.

Tests cover:
1. Goal completion and progress transitions
2. Habit logging with sticky points and streaks
3. Bucket list completion
4. Savings, monthly budget review and the overall achievement
5. Per-user lock registry
"""
import pytest
from datetime import date, timedelta

from life_tracker import constants
from life_tracker.exceptions import (
    NotFoundException, AlreadyCompletedException, InvalidStateException, ValidationException
)
from life_tracker.models import SavingsGoal
from life_tracker.repositories.user_repository import UserRepository, PlayerProfileRepository
from life_tracker.schemas import (
    GoalCreate, HabitCreate, BucketItemCreate, SavingsGoalCreate, SavingsGoalUpdate,
    ExpenseCreate, BudgetSet
)
from life_tracker.services.finance_service import FinanceService
from life_tracker.services.progress_service import ProgressService, UserLockRegistry


def profile_of(db, user_id):
    return PlayerProfileRepository.get_by_user(db, user_id)


def codes(result):
    return [a["code"] for a in result["unlocked_achievements"]]


@pytest.fixture
def service(seeded_db):
    return ProgressService(seeded_db)


class TestGoals:
    """Tests for goal creation, progress and completion"""

    def make_goal(self, service, user, timeline="MID_TERM", priority="HIGH"):
        data = GoalCreate(title="Learn Spanish", timeline=timeline, priority=priority)
        return service.create_goal(user.id, data)["goal"]

    def test_create_goal_starts_not_started(self, service, user):
        goal = self.make_goal(service, user)
        assert goal.status == "NOT_STARTED"
        assert goal.progress == 0
        assert goal.points_earned == 0

    def test_target_date_must_follow_start(self, service, user):
        data = GoalCreate(
            title="Bad dates",
            timeline="SHORT_TERM",
            start_date=date(2026, 5, 1),
            target_date=date(2026, 4, 1)
        )
        with pytest.raises(ValidationException):
            service.create_goal(user.id, data)

    def test_complete_goal_awards_points(self, service, seeded_db, user):
        goal = self.make_goal(service, user)

        result = service.complete_goal(goal.id, user.id)

        assert result["points_awarded"] == 375
        assert result["goal"].status == "COMPLETED"
        assert result["goal"].progress == 100
        assert result["goal"].points_earned == 375
        assert result["goal"].completed_at is not None
        assert codes(result) == [constants.GOAL_GETTER]

        profile = profile_of(seeded_db, user.id)
        assert profile.total_xp == 375 + 25
        assert profile.goals_completed == 1

    def test_second_completion_rejected(self, service, seeded_db, user):
        goal = self.make_goal(service, user)
        service.complete_goal(goal.id, user.id)

        with pytest.raises(AlreadyCompletedException):
            service.complete_goal(goal.id, user.id)

        profile = profile_of(seeded_db, user.id)
        assert profile.total_xp == 400
        assert profile.goals_completed == 1

    def test_other_users_goal_not_found(self, service, seeded_db, user):
        goal = self.make_goal(service, user)
        other = UserRepository.create(seeded_db, "Other", "other@example.com")

        with pytest.raises(NotFoundException):
            service.complete_goal(goal.id, other.id)

    def test_tenth_goal_unlocks_all_goal_achievements(self, service, seeded_db, user):
        goals = [self.make_goal(service, user, "SHORT_TERM", "MEDIUM") for _ in range(10)]
        unlocked = []
        for goal in goals:
            unlocked += codes(service.complete_goal(goal.id, user.id))

        assert unlocked == [constants.GOAL_GETTER, constants.TRIPLE_THREAT, constants.GOAL_MASTER]
        profile = profile_of(seeded_db, user.id)
        assert profile.total_xp == 1000 + 25 + 50 + 200
        assert profile.current_level == 2

    def test_progress_moves_status(self, service, user):
        goal = self.make_goal(service, user)

        goal = service.update_goal_progress(goal.id, user.id, 40)
        assert goal.status == "IN_PROGRESS"

        goal = service.update_goal_progress(goal.id, user.id, 0)
        assert goal.status == "NOT_STARTED"

    def test_full_progress_does_not_complete(self, service, seeded_db, user):
        goal = self.make_goal(service, user)
        goal = service.update_goal_progress(goal.id, user.id, 100)
        assert goal.status != "COMPLETED"
        assert profile_of(seeded_db, user.id).total_xp == 0

    def test_progress_out_of_range(self, service, user):
        goal = self.make_goal(service, user)
        with pytest.raises(InvalidStateException):
            service.update_goal_progress(goal.id, user.id, 101)

    def test_completed_goal_progress_locked(self, service, user):
        goal = self.make_goal(service, user)
        service.complete_goal(goal.id, user.id)
        with pytest.raises(InvalidStateException):
            service.update_goal_progress(goal.id, user.id, 50)


class TestHabitLogging:
    """Tests for log_habit"""

    def make_habit(self, service, user, **overrides):
        values = {"name": "Meditate", "type": "BINARY", "points_per_day": 10}
        values.update(overrides)
        return service.create_habit(user.id, HabitCreate(**values))["habit"]

    def test_first_completion_awards_points(self, service, seeded_db, user, today):
        habit = self.make_habit(service, user)

        result = service.log_habit(habit.id, user.id, today, True, today=today)

        assert result["points_earned"] == 10
        assert result["is_new_completion"] is True
        assert result["log"].points_earned == 10
        assert result["habit"].current_streak == 1
        assert codes(result) == [constants.FIRST_STEPS]

        profile = profile_of(seeded_db, user.id)
        assert profile.total_xp == 10 + 10
        assert profile.habits_completed == 1

    def test_points_are_sticky_across_toggles(self, service, seeded_db, user, today):
        habit = self.make_habit(service, user)
        service.log_habit(habit.id, user.id, today, True, today=today)

        # Results share ORM rows that later calls refresh
        off = service.log_habit(habit.id, user.id, today, False, today=today)
        off_points, off_log_points = off["points_earned"], off["log"].points_earned
        off_streak = off["habit"].current_streak

        on_again = service.log_habit(habit.id, user.id, today, True, today=today)

        assert off_points == 0
        assert off_log_points == 10
        assert off_streak == 0
        assert on_again["points_earned"] == 0
        assert on_again["is_new_completion"] is False
        assert on_again["habit"].current_streak == 1

        profile = profile_of(seeded_db, user.id)
        assert profile.total_xp == 20
        assert profile.habits_completed == 1

    def test_uncompleted_log_awards_nothing(self, service, seeded_db, user, today):
        habit = self.make_habit(service, user)

        result = service.log_habit(habit.id, user.id, today, False, today=today)

        assert result["points_earned"] == 0
        assert result["unlocked_achievements"] == []
        assert profile_of(seeded_db, user.id).total_xp == 0

    def test_numeric_below_target(self, service, seeded_db, user, today):
        habit = self.make_habit(service, user, type="NUMERIC", unit="pages", daily_target=20)

        result = service.log_habit(habit.id, user.id, today, True, value=12, today=today)

        assert result["points_earned"] == 0
        assert result["log"].value == 12
        assert result["log"].completed is False
        assert result["habit"].current_streak == 0
        assert result["unlocked_achievements"] == []
        assert profile_of(seeded_db, user.id).total_xp == 0

    def test_numeric_reaching_target(self, service, user, today):
        habit = self.make_habit(service, user, type="NUMERIC", unit="pages", daily_target=20)

        result = service.log_habit(habit.id, user.id, today, True, value=25, today=today)

        assert result["points_earned"] == 10

    def test_numeric_value_overrides_unchecked_flag(self, service, seeded_db, user, today):
        habit = self.make_habit(service, user, type="NUMERIC", unit="pages", daily_target=20)

        result = service.log_habit(habit.id, user.id, today, False, value=25, today=today)

        assert result["points_earned"] == 10
        assert result["log"].completed is True
        assert result["habit"].current_streak == 1
        assert codes(result) == [constants.FIRST_STEPS]
        assert profile_of(seeded_db, user.id).habits_completed == 1

    def test_below_target_days_do_not_count_toward_streak(self, service, user, today):
        habit = self.make_habit(service, user, type="NUMERIC", unit="pages", daily_target=20)
        below_target = []

        for offset in range(6, 0, -1):
            result = service.log_habit(
                habit.id, user.id, today - timedelta(days=offset), True, value=1, today=today
            )
            below_target.append(result["log"].completed)
            assert codes(result) == []

        result = service.log_habit(habit.id, user.id, today, True, value=25, today=today)

        assert below_target == [False] * 6
        assert result["habit"].current_streak == 1
        assert result["habit"].best_streak == 1
        assert constants.WEEK_WARRIOR not in codes(result)
        assert codes(result) == [constants.FIRST_STEPS]

    def test_future_date_rejected(self, service, seeded_db, user, today):
        habit = self.make_habit(service, user)

        with pytest.raises(ValidationException):
            service.log_habit(habit.id, user.id, today + timedelta(days=1), True, today=today)

        assert profile_of(seeded_db, user.id).total_xp == 0
        assert profile_of(seeded_db, user.id).habits_completed == 0

    def test_accepts_date_string(self, service, user, today):
        habit = self.make_habit(service, user)
        result = service.log_habit(habit.id, user.id, today.isoformat(), True, today=today)
        assert result["log"].date == today

    def test_malformed_date(self, service, user, today):
        habit = self.make_habit(service, user)
        with pytest.raises(ValidationException):
            service.log_habit(habit.id, user.id, "15/03/2026", True, today=today)

    def test_unknown_habit(self, service, user, today):
        with pytest.raises(NotFoundException):
            service.log_habit(424242, user.id, today, True, today=today)

    def test_week_streak_regardless_of_log_order(self, service, user, today):
        habit = self.make_habit(service, user)
        unlocked = []

        # Backfill the previous six days first; streak stays 0 until today is logged
        for offset in range(6, 0, -1):
            result = service.log_habit(habit.id, user.id, today - timedelta(days=offset), True, today=today)
            assert result["habit"].current_streak == 0
            unlocked += codes(result)

        result = service.log_habit(habit.id, user.id, today, True, today=today)
        unlocked += codes(result)

        assert result["habit"].current_streak == 7
        assert result["habit"].best_streak == 7
        assert constants.WEEK_WARRIOR in unlocked
        assert unlocked.count(constants.FIRST_STEPS) == 1


class TestBucketList:
    """Tests for bucket item completion"""

    def make_item(self, service, user, difficulty="EPIC"):
        data = BucketItemCreate(title="See the aurora", category="TRAVEL", difficulty=difficulty)
        return service.create_bucket_item(user.id, data)["item"]

    def test_complete_epic_item(self, service, seeded_db, user):
        item = self.make_item(service, user)

        result = service.complete_bucket_item(item.id, user.id, notes="Norway, February")

        assert result["points_awarded"] == 500
        assert result["item"].is_completed is True
        assert result["item"].notes == "Norway, February"
        assert codes(result) == [constants.DREAM_STARTER]

        profile = profile_of(seeded_db, user.id)
        assert profile.total_xp == 550
        assert profile.bucket_completed == 1

    def test_second_completion_rejected(self, service, seeded_db, user):
        item = self.make_item(service, user, "EASY")
        service.complete_bucket_item(item.id, user.id)

        with pytest.raises(AlreadyCompletedException):
            service.complete_bucket_item(item.id, user.id)

        assert profile_of(seeded_db, user.id).total_xp == 100

    def test_fifth_item_unlocks_adventure_seeker(self, service, user):
        items = [self.make_item(service, user, "EASY") for _ in range(5)]
        results = [service.complete_bucket_item(item.id, user.id) for item in items]
        assert codes(results[-1]) == [constants.ADVENTURE_SEEKER]


class TestFinance:
    """Tests for savings goals and budget review"""

    def test_first_savings_goal(self, service, seeded_db, user):
        data = SavingsGoalCreate(name="Emergency fund", target_amount=50000)
        result = service.create_savings_goal(user.id, data)

        assert codes(result) == [constants.SAVERS_START]
        assert profile_of(seeded_db, user.id).total_saved == 0

    def test_deposits_reach_first_lakh(self, service, seeded_db, user):
        goal = service.create_savings_goal(
            user.id, SavingsGoalCreate(name="House", target_amount=500000, current_amount=60000)
        )["goal"]

        first = service.deposit_savings(goal.id, user.id, 39000)
        first_codes, first_amount = codes(first), first["goal"].current_amount
        second = service.deposit_savings(goal.id, user.id, 1000)

        assert first_codes == []
        assert first_amount == 99000
        assert codes(second) == [constants.FIRST_LAKH]
        assert second["goal"].current_amount == 100000
        assert profile_of(seeded_db, user.id).total_saved == 100000

    def test_deposit_must_be_positive(self, service, user):
        goal = service.create_savings_goal(
            user.id, SavingsGoalCreate(name="Car", target_amount=1000)
        )["goal"]
        with pytest.raises(ValidationException):
            service.deposit_savings(goal.id, user.id, 0)

    def test_update_and_delete_recompute_total(self, service, seeded_db, user):
        goal = service.create_savings_goal(
            user.id, SavingsGoalCreate(name="Trip", target_amount=3000, current_amount=500)
        )["goal"]

        service.update_savings_goal(goal.id, user.id, SavingsGoalUpdate(current_amount=1200))
        assert profile_of(seeded_db, user.id).total_saved == 1200

        service.delete_savings_goal(goal.id, user.id)
        assert profile_of(seeded_db, user.id).total_saved == 0

    def test_delete_runs_finance_checks(self, service, seeded_db, user):
        # Rows written directly, so no finance check has run for them yet
        kept = SavingsGoal(user_id=user.id, name="Pension", target_amount=500000, current_amount=100000)
        dropped = SavingsGoal(user_id=user.id, name="Gadget", target_amount=2000, current_amount=300)
        seeded_db.add_all([kept, dropped])
        seeded_db.commit()

        result = service.delete_savings_goal(dropped.id, user.id)

        assert set(codes(result)) == {constants.SAVERS_START, constants.FIRST_LAKH}
        assert profile_of(seeded_db, user.id).total_saved == 100000


class TestBudgetReview:
    """Tests for the monthly budget review"""

    @pytest.fixture
    def finance(self, seeded_db):
        return FinanceService(seeded_db)

    def spend(self, finance, user, amount, day, category="Food"):
        finance.create_expense(user.id, ExpenseCreate(amount=amount, category=category, date=day))

    def test_under_budget_unlocks_budget_boss(self, service, finance, seeded_db, user, today):
        finance.set_budget(user.id, BudgetSet(category="Food", year=2026, month=1, amount=5000))
        self.spend(finance, user, 1200, date(2026, 1, 10))

        result = service.review_budget_month(user.id, 2026, 1, today=today)

        assert result["under_budget"] is True
        assert result["budget_vs_actual"][0]["spent"] == 1200
        assert codes(result) == [constants.BUDGET_BOSS]
        assert profile_of(seeded_db, user.id).total_xp == 100

    def test_review_is_awarded_once(self, service, finance, user, today):
        finance.set_budget(user.id, BudgetSet(category="Food", year=2026, month=1, amount=5000))
        service.review_budget_month(user.id, 2026, 1, today=today)

        again = service.review_budget_month(user.id, 2026, 1, today=today)

        assert again["under_budget"] is True
        assert codes(again) == []

    def test_one_category_over_budget(self, service, finance, seeded_db, user, today):
        finance.set_budget(user.id, BudgetSet(category="Food", year=2026, month=2, amount=5000))
        finance.set_budget(user.id, BudgetSet(category="Travel", year=2026, month=2, amount=1000))
        self.spend(finance, user, 800, date(2026, 2, 3))
        self.spend(finance, user, 1500, date(2026, 2, 20), category="Travel")

        result = service.review_budget_month(user.id, 2026, 2, today=today)

        assert result["under_budget"] is False
        assert codes(result) == []
        assert profile_of(seeded_db, user.id).total_xp == 0

    def test_month_without_budgets_is_not_under_budget(self, service, finance, user, today):
        self.spend(finance, user, 100, date(2026, 1, 5))

        result = service.review_budget_month(user.id, 2026, 1, today=today)

        assert result["under_budget"] is False
        assert result["budget_vs_actual"] == []
        assert codes(result) == []

    def test_current_month_cannot_be_reviewed(self, service, finance, user, today):
        finance.set_budget(user.id, BudgetSet(category="Food", year=2026, month=3, amount=5000))

        with pytest.raises(InvalidStateException):
            service.review_budget_month(user.id, today.year, today.month, today=today)
        with pytest.raises(InvalidStateException):
            service.review_budget_month(user.id, 2026, 4, today=today)

    def test_invalid_month(self, service, user, today):
        with pytest.raises(ValidationException):
            service.review_budget_month(user.id, 2025, 13, today=today)


class TestOverall:
    """Tests for the cross-domain achievement"""

    def test_life_tracker_after_all_four_domains(self, service, user):
        first = service.create_goal(user.id, GoalCreate(title="Goal", timeline="SHORT_TERM"))
        second = service.create_habit(user.id, HabitCreate(name="Habit"))
        third = service.create_bucket_item(user.id, BucketItemCreate(title="Item", difficulty="EASY"))
        fourth = service.create_savings_goal(user.id, SavingsGoalCreate(name="Fund", target_amount=100))

        assert codes(first) == codes(second) == codes(third) == []
        assert constants.LIFE_TRACKER in codes(fourth)


class TestUserLockRegistry:
    """Tests for the per-user lock registry"""

    def test_same_user_same_lock(self):
        registry = UserLockRegistry()
        assert registry.lock_for(1) is registry.lock_for(1)
        assert registry.lock_for(1) is not registry.lock_for(2)

    def test_lock_is_reentrant(self):
        lock = UserLockRegistry().lock_for(1)
        with lock:
            with lock:
                pass

    def test_services_share_registry(self, seeded_db):
        registry = UserLockRegistry()
        first = ProgressService(seeded_db, registry)
        second = ProgressService(seeded_db, registry)
        assert first.locks.lock_for(5) is second.locks.lock_for(5)
