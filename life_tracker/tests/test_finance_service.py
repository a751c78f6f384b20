"""
Tests for FinanceService.

Tests cover:
1. Expense create, update, soft delete and filters
2. Budget upsert per category and month
3. Budget vs actual rows and the under-budget rule
4. Dashboard totals
"""
import pytest
from datetime import date

from life_tracker.exceptions import NotFoundException, ValidationException
from life_tracker.repositories.user_repository import UserRepository
from life_tracker.schemas import BudgetSet, ExpenseCreate, ExpenseUpdate
from life_tracker.services.finance_service import FinanceService


@pytest.fixture
def finance(seeded_db):
    return FinanceService(seeded_db)


def spend(finance, user, amount, day, category="Food"):
    return finance.create_expense(user.id, ExpenseCreate(amount=amount, category=category, date=day))


def budget(finance, user, amount, category="Food", year=2026, month=1):
    return finance.set_budget(user.id, BudgetSet(category=category, year=year, month=month, amount=amount))


class TestExpenses:
    """Tests for expense records"""

    def test_update_and_soft_delete(self, finance, user):
        expense = spend(finance, user, 300, date(2026, 1, 5))

        updated = finance.update_expense(expense.id, user.id, ExpenseUpdate(amount=350, notes="split bill"))
        assert updated.amount == 350
        assert updated.category == "Food"

        finance.delete_expense(expense.id, user.id)
        assert finance.get_expenses(user.id) == []
        with pytest.raises(NotFoundException):
            finance.get_expense(expense.id, user.id)

    def test_newest_first_with_filters(self, finance, user):
        spend(finance, user, 10, date(2026, 1, 2))
        spend(finance, user, 20, date(2026, 1, 9), category="Transport")
        spend(finance, user, 30, date(2026, 2, 1))

        assert [e.amount for e in finance.get_expenses(user.id)] == [30, 20, 10]
        assert [e.amount for e in finance.get_expenses(user.id, category="Food")] == [30, 10]
        january = finance.get_expenses(user.id, start_date=date(2026, 1, 1), end_date=date(2026, 1, 31))
        assert [e.amount for e in january] == [20, 10]

    def test_other_users_expense_not_found(self, finance, seeded_db, user):
        expense = spend(finance, user, 10, date(2026, 1, 2))
        stranger = UserRepository.create(seeded_db, "Stranger", "stranger@example.com")
        with pytest.raises(NotFoundException):
            finance.get_expense(expense.id, stranger.id)


class TestBudgets:
    """Tests for monthly category budgets"""

    def test_set_budget_replaces_amount(self, finance, user):
        first = budget(finance, user, 4000)
        second = budget(finance, user, 4500)

        assert first.id == second.id
        assert [b.amount for b in finance.get_budgets(user.id, 2026, 1)] == [4500]

    def test_budgets_are_per_month(self, finance, user):
        budget(finance, user, 4000, month=1)
        budget(finance, user, 3000, month=2)

        assert [b.amount for b in finance.get_budgets(user.id, 2026, 2)] == [3000]

    def test_delete_budget(self, finance, user):
        row = budget(finance, user, 4000)
        finance.delete_budget(row.id, user.id)

        assert finance.get_budgets(user.id, 2026, 1) == []
        with pytest.raises(NotFoundException):
            finance.delete_budget(row.id, user.id)


class TestBudgetVsActual:
    """Tests for the budget vs actual rows"""

    def test_rows_per_budgeted_category(self, finance, user):
        budget(finance, user, 2000)
        budget(finance, user, 800, category="Transport")
        spend(finance, user, 500, date(2026, 1, 3))
        spend(finance, user, 250, date(2026, 1, 28))
        spend(finance, user, 90, date(2026, 1, 12), category="Gifts")
        spend(finance, user, 999, date(2026, 2, 1))

        rows = finance.get_budget_vs_actual(user.id, 2026, 1)

        assert rows == [
            {"category": "Food", "budgeted": 2000, "spent": 750, "remaining": 1250, "percent_used": 38},
            {"category": "Transport", "budgeted": 800, "spent": 0.0, "remaining": 800, "percent_used": 0},
        ]
        assert FinanceService.is_under_budget(rows) is True

    def test_deleted_expenses_do_not_count(self, finance, user):
        budget(finance, user, 100)
        expense = spend(finance, user, 150, date(2026, 1, 3))
        assert FinanceService.is_under_budget(finance.get_budget_vs_actual(user.id, 2026, 1)) is False

        finance.delete_expense(expense.id, user.id)

        assert FinanceService.is_under_budget(finance.get_budget_vs_actual(user.id, 2026, 1)) is True

    def test_spending_exactly_the_budget_is_under(self, finance, user):
        budget(finance, user, 1000)
        spend(finance, user, 1000, date(2026, 1, 31))

        rows = finance.get_budget_vs_actual(user.id, 2026, 1)

        assert rows[0]["percent_used"] == 100
        assert FinanceService.is_under_budget(rows) is True

    def test_no_budgets_is_not_under_budget(self):
        assert FinanceService.is_under_budget([]) is False

    def test_invalid_month(self, finance, user):
        with pytest.raises(ValidationException):
            finance.get_budget_vs_actual(user.id, 2026, 0)


class TestDashboard:
    """Tests for the monthly finance dashboard"""

    def test_totals(self, finance, user):
        budget(finance, user, 2000)
        spend(finance, user, 400, date(2026, 1, 3))
        spend(finance, user, 100, date(2026, 1, 4), category="Transport")

        dashboard = finance.get_dashboard(user.id, 2026, 1)

        assert dashboard["total_expenses"] == 500
        assert dashboard["expenses_by_category"] == {"Food": 400, "Transport": 100}
        assert dashboard["budget_vs_actual"][0]["remaining"] == 1600
        assert dashboard["savings"]["total_goals"] == 0
