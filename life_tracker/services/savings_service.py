"""
Savings goal queries.
Writes go through ProgressService so the profile's total_saved stays in sync.
"""
from typing import List
from sqlalchemy.orm import Session

from life_tracker.exceptions import NotFoundException
from life_tracker.models import SavingsGoal
from life_tracker.repositories.savings_repository import SavingsGoalRepository


class SavingsService:
    """Service for reading savings goals"""

    def __init__(self, db: Session):
        self.db = db
        self.savings_repo = SavingsGoalRepository()

    def get_goals(self, user_id: int) -> List[SavingsGoal]:
        return self.savings_repo.get_all(self.db, user_id)

    def get_goal(self, goal_id: int, user_id: int) -> SavingsGoal:
        goal = self.savings_repo.get_by_id(self.db, goal_id, user_id)
        if goal is None:
            raise NotFoundException("Savings goal", goal_id)
        return goal

    def get_stats(self, user_id: int) -> dict:
        goals = self.savings_repo.get_all(self.db, user_id)
        total_target = sum(g.target_amount or 0 for g in goals)
        total_saved = sum(g.current_amount or 0 for g in goals)
        completed = len([g for g in goals if (g.current_amount or 0) >= g.target_amount])

        return {
            "total_goals": len(goals),
            "completed_goals": completed,
            "total_target": total_target,
            "total_saved": total_saved,
            "progress_percent": round(total_saved / total_target * 100) if total_target > 0 else 0,
        }
