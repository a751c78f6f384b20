"""
Goal management service.
Queries, edits and deletion of goals. Completion and progress live in
ProgressService because they touch XP.
"""
from typing import List, Optional
from sqlalchemy.orm import Session

from life_tracker.constants import GoalStatus, GoalTimeline, GoalPriority
from life_tracker.exceptions import NotFoundException, InvalidStateException, ValidationException
from life_tracker.models import Goal
from life_tracker.repositories.goal_repository import GoalRepository
from life_tracker.services.points_service import PointsService
from life_tracker.services.progress_service import UserLockRegistry


class GoalService:
    """Service for managing goals"""

    def __init__(self, db: Session, locks: Optional[UserLockRegistry] = None):
        self.db = db
        self.locks = locks or UserLockRegistry()
        self.goal_repo = GoalRepository()

    def get_goals(
        self,
        user_id: int,
        status: Optional[str] = None,
        timeline: Optional[str] = None,
        priority: Optional[str] = None
    ) -> List[Goal]:
        return self.goal_repo.get_all(self.db, user_id, status, timeline, priority)

    def get_goal(self, goal_id: int, user_id: int) -> Goal:
        goal = self.goal_repo.get_by_id(self.db, goal_id, user_id)
        if goal is None:
            raise NotFoundException("Goal", goal_id)
        return goal

    def potential_points(self, goal: Goal) -> int:
        """Points the goal would award if completed now (earned points once completed)"""
        if goal.status == GoalStatus.COMPLETED.value:
            return goal.points_earned
        return PointsService.calculate_goal_points(goal.timeline, goal.priority)

    def update_goal(self, goal_id: int, user_id: int, goal_update) -> Goal:
        """
        Update goal fields.

        points_earned is never recalculated here, even if timeline or
        priority change after completion.

        Raises:
            ValidationException: Resulting target date is not after the start date
            InvalidStateException: Status change would complete or reopen the goal
        """
        update_data = goal_update.model_dump(exclude_unset=True)

        with self.locks.lock_for(user_id):
            goal = self.get_goal(goal_id, user_id)

            start_date = update_data.get("start_date", goal.start_date)
            target_date = update_data.get("target_date", goal.target_date)
            if start_date and target_date and target_date <= start_date:
                raise ValidationException("target_date", "Target date must be after start date")

            status = update_data.get("status")
            if status is not None:
                status = GoalStatus(status)
                if status == GoalStatus.COMPLETED and goal.status != GoalStatus.COMPLETED.value:
                    raise InvalidStateException("Use the complete action to complete a goal")
                if goal.status == GoalStatus.COMPLETED.value and status != GoalStatus.COMPLETED:
                    raise InvalidStateException("Goal is already completed")
                update_data["status"] = status.value

            if update_data.get("timeline") is not None:
                update_data["timeline"] = GoalTimeline(update_data["timeline"]).value
            if update_data.get("priority") is not None:
                update_data["priority"] = GoalPriority(update_data["priority"]).value

            for key, value in update_data.items():
                setattr(goal, key, value)

            return self.goal_repo.update(self.db, goal)

    def delete_goal(self, goal_id: int, user_id: int) -> Goal:
        goal = self.get_goal(goal_id, user_id)
        return self.goal_repo.soft_delete(self.db, goal)

    def get_stats(self, user_id: int) -> dict:
        goals = self.goal_repo.get_all(self.db, user_id)
        completed = self.goal_repo.count_completed(self.db, user_id)
        in_progress = len([g for g in goals if g.status == GoalStatus.IN_PROGRESS.value])
        not_started = len([g for g in goals if g.status == GoalStatus.NOT_STARTED.value])

        return {
            "total": len(goals),
            "completed": completed,
            "in_progress": in_progress,
            "not_started": not_started,
            "completion_rate": round(completed / len(goals) * 100) if goals else 0,
            "total_points": self.goal_repo.get_total_points(self.db, user_id),
        }
