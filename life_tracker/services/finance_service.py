"""
Finance service.
Expenses, monthly category budgets and the budget-vs-actual view that
decides whether a month stayed under budget.
"""
import logging
from typing import List, Optional
from sqlalchemy.orm import Session

from life_tracker.exceptions import NotFoundException
from life_tracker.models import Expense, Budget
from life_tracker.repositories.budget_repository import BudgetRepository
from life_tracker.repositories.expense_repository import ExpenseRepository
from life_tracker.services.date_service import DateService
from life_tracker.services.points_service import round_half_up
from life_tracker.services.savings_service import SavingsService

logger = logging.getLogger("life_tracker.finance")


class FinanceService:
    """Service for expenses and budgets"""

    def __init__(self, db: Session):
        self.db = db
        self.expense_repo = ExpenseRepository()
        self.budget_repo = BudgetRepository()
        self.date_service = DateService()

    # ===== EXPENSES =====

    def get_expenses(
        self,
        user_id: int,
        category: Optional[str] = None,
        start_date=None,
        end_date=None
    ) -> List[Expense]:
        return self.expense_repo.get_all(self.db, user_id, category, start_date, end_date)

    def get_expense(self, expense_id: int, user_id: int) -> Expense:
        expense = self.expense_repo.get_by_id(self.db, expense_id, user_id)
        if expense is None:
            raise NotFoundException("Expense", expense_id)
        return expense

    def create_expense(self, user_id: int, data) -> Expense:
        expense = Expense(user_id=user_id, **data.model_dump())
        return self.expense_repo.create(self.db, expense)

    def update_expense(self, expense_id: int, user_id: int, data) -> Expense:
        expense = self.get_expense(expense_id, user_id)
        for key, value in data.model_dump(exclude_unset=True).items():
            setattr(expense, key, value)
        return self.expense_repo.update(self.db, expense)

    def delete_expense(self, expense_id: int, user_id: int) -> Expense:
        expense = self.get_expense(expense_id, user_id)
        return self.expense_repo.soft_delete(self.db, expense)

    # ===== BUDGETS =====

    def get_budgets(self, user_id: int, year: int, month: int) -> List[Budget]:
        return self.budget_repo.get_by_month(self.db, user_id, year, month)

    def set_budget(self, user_id: int, data) -> Budget:
        """Create or replace the budget of one category for one month"""
        self.date_service.get_month_range(data.year, data.month)
        budget = self.budget_repo.upsert(
            self.db, user_id, data.category, data.year, data.month, data.amount
        )
        logger.info(f"Budget {data.category} {data.year}-{data.month:02d} set to {data.amount}")
        return budget

    def delete_budget(self, budget_id: int, user_id: int) -> None:
        budget = self.budget_repo.get_by_id(self.db, budget_id, user_id)
        if budget is None:
            raise NotFoundException("Budget", budget_id)
        self.budget_repo.delete(self.db, budget)

    def get_budget_vs_actual(self, user_id: int, year: int, month: int) -> List[dict]:
        """
        Spending against each budgeted category of a month.

        Returns:
            One row per budget: category, budgeted, spent, remaining, percent_used
        """
        start_date, end_date = self.date_service.get_month_range(year, month)
        spent_by_category = self.expense_repo.get_totals_by_category(
            self.db, user_id, start_date, end_date
        )

        rows = []
        for budget in self.get_budgets(user_id, year, month):
            spent = spent_by_category.get(budget.category, 0.0)
            rows.append({
                "category": budget.category,
                "budgeted": budget.amount,
                "spent": spent,
                "remaining": budget.amount - spent,
                "percent_used": round_half_up(spent / budget.amount * 100) if budget.amount > 0 else 0,
            })
        return rows

    @staticmethod
    def is_under_budget(rows: List[dict]) -> bool:
        """True when the month has budgets and no category spent more than its budget"""
        return bool(rows) and all(row["spent"] <= row["budgeted"] for row in rows)

    def get_dashboard(self, user_id: int, year: int, month: int) -> dict:
        start_date, end_date = self.date_service.get_month_range(year, month)
        return {
            "year": year,
            "month": month,
            "total_expenses": self.expense_repo.get_total_for_period(self.db, user_id, start_date, end_date),
            "expenses_by_category": self.expense_repo.get_totals_by_category(
                self.db, user_id, start_date, end_date
            ),
            "budget_vs_actual": self.get_budget_vs_actual(user_id, year, month),
            "savings": SavingsService(self.db).get_stats(user_id),
        }
