from pydantic import BaseModel, Field
from datetime import datetime, date
import datetime as dt
from typing import Optional, List, Dict

from life_tracker.constants import (
    GoalTimeline, GoalPriority, GoalStatus, BucketDifficulty, BucketCategory, HabitType,
    HABIT_POINTS_PER_DAY_MIN, HABIT_POINTS_PER_DAY_MAX,
    DEFAULT_HABIT_POINTS_PER_DAY, DEFAULT_HABIT_DAILY_TARGET
)


# Achievement notifications

class UnlockedAchievement(BaseModel):
    code: str
    name: str
    description: str
    icon: str
    points_awarded: int


class AchievementResponse(BaseModel):
    code: str
    name: str
    description: str
    category: str
    icon: str
    requirement: Optional[str] = None
    bonus_points: int
    is_secret: bool = False
    unlocked: bool = False
    unlocked_at: Optional[datetime] = None
    points_awarded: Optional[int] = None


class AchievementStatsResponse(BaseModel):
    total: int
    unlocked: int
    total_points: int
    recent_unlock: Optional[AchievementResponse] = None


# Goal schemas

class GoalBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    category: Optional[str] = None
    timeline: GoalTimeline
    priority: GoalPriority = GoalPriority.MEDIUM
    start_date: Optional[date] = None
    target_date: Optional[date] = None


class GoalCreate(GoalBase):
    pass


class GoalUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    category: Optional[str] = None
    timeline: Optional[GoalTimeline] = None
    priority: Optional[GoalPriority] = None
    status: Optional[GoalStatus] = None
    start_date: Optional[date] = None
    target_date: Optional[date] = None


class GoalProgressUpdate(BaseModel):
    progress: int = Field(..., ge=0, le=100)


class GoalResponse(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    category: Optional[str] = None
    timeline: str
    priority: str
    status: str
    progress: int = 0
    start_date: Optional[date] = None
    target_date: Optional[date] = None
    points_earned: int = 0
    completed_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class GoalMutationResponse(BaseModel):
    goal: GoalResponse
    unlocked_achievements: List[UnlockedAchievement] = []


class GoalCompletionResponse(BaseModel):
    goal: GoalResponse
    points_awarded: int
    unlocked_achievements: List[UnlockedAchievement] = []


class GoalStatsResponse(BaseModel):
    total: int
    completed: int
    in_progress: int
    not_started: int
    completion_rate: int
    total_points: int


# Habit schemas

class HabitBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    type: HabitType = HabitType.BINARY
    unit: Optional[str] = None
    daily_target: float = Field(default=DEFAULT_HABIT_DAILY_TARGET, gt=0)
    points_per_day: int = Field(
        default=DEFAULT_HABIT_POINTS_PER_DAY,
        ge=HABIT_POINTS_PER_DAY_MIN,
        le=HABIT_POINTS_PER_DAY_MAX
    )


class HabitCreate(HabitBase):
    pass


class HabitUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    type: Optional[HabitType] = None
    unit: Optional[str] = None
    daily_target: Optional[float] = Field(None, gt=0)
    points_per_day: Optional[int] = Field(
        None, ge=HABIT_POINTS_PER_DAY_MIN, le=HABIT_POINTS_PER_DAY_MAX
    )
    is_active: Optional[bool] = None


class HabitResponse(BaseModel):
    id: int
    name: str
    type: str
    unit: Optional[str] = None
    daily_target: float
    points_per_day: int
    is_active: bool = True
    current_streak: int = 0
    best_streak: int = 0
    created_at: datetime

    class Config:
        from_attributes = True


class HabitLogRequest(BaseModel):
    date: str  # YYYY-MM-DD
    completed: bool = True
    value: Optional[float] = Field(None, ge=0)


class HabitLogResponse(BaseModel):
    id: int
    habit_id: int
    date: date
    completed: bool
    value: Optional[float] = None
    points_earned: int = 0

    class Config:
        from_attributes = True


class HabitLogResult(BaseModel):
    log: HabitLogResponse
    habit: HabitResponse
    points_earned: int
    is_new_completion: bool
    unlocked_achievements: List[UnlockedAchievement] = []


class HabitMutationResponse(BaseModel):
    habit: HabitResponse
    unlocked_achievements: List[UnlockedAchievement] = []


class HabitTodayStatus(BaseModel):
    habit: HabitResponse
    completed: bool
    value: Optional[float] = None


class HabitStreakEntry(BaseModel):
    name: str
    streak: int


class HabitStatsResponse(BaseModel):
    total_habits: int
    active_habits: int
    total_completions: int
    total_points: int
    best_streak: int
    current_streaks: List[HabitStreakEntry] = []


# Bucket list schemas

class BucketItemBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    category: BucketCategory = BucketCategory.EXPERIENCES
    difficulty: BucketDifficulty
    estimated_cost: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None


class BucketItemCreate(BucketItemBase):
    pass


class BucketItemUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    category: Optional[BucketCategory] = None
    difficulty: Optional[BucketDifficulty] = None
    estimated_cost: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None


class BucketItemComplete(BaseModel):
    notes: Optional[str] = None


class BucketItemResponse(BaseModel):
    id: int
    title: str
    category: str
    difficulty: str
    estimated_cost: Optional[float] = None
    notes: Optional[str] = None
    is_completed: bool = False
    completed_at: Optional[datetime] = None
    points_earned: int = 0
    created_at: datetime

    class Config:
        from_attributes = True


class BucketItemMutationResponse(BaseModel):
    item: BucketItemResponse
    unlocked_achievements: List[UnlockedAchievement] = []


class BucketItemCompletionResponse(BaseModel):
    item: BucketItemResponse
    points_awarded: int
    unlocked_achievements: List[UnlockedAchievement] = []


class BucketStatsResponse(BaseModel):
    total: int
    completed: int
    pending: int
    total_points: int
    by_category: Dict[str, int] = {}


# Savings schemas

class SavingsGoalBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    target_amount: float = Field(..., gt=0)
    current_amount: float = Field(default=0.0, ge=0)
    start_date: Optional[date] = None
    target_date: Optional[date] = None
    priority: GoalPriority = GoalPriority.MEDIUM
    notes: Optional[str] = None


class SavingsGoalCreate(SavingsGoalBase):
    pass


class SavingsGoalUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    target_amount: Optional[float] = Field(None, gt=0)
    current_amount: Optional[float] = Field(None, ge=0)
    target_date: Optional[date] = None
    priority: Optional[GoalPriority] = None
    notes: Optional[str] = None


class SavingsDeposit(BaseModel):
    amount: float = Field(..., gt=0)


class SavingsGoalResponse(BaseModel):
    id: int
    name: str
    target_amount: float
    current_amount: float = 0.0
    start_date: Optional[date] = None
    target_date: Optional[date] = None
    priority: str
    notes: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class SavingsGoalMutationResponse(BaseModel):
    goal: SavingsGoalResponse
    unlocked_achievements: List[UnlockedAchievement] = []


class SavingsStatsResponse(BaseModel):
    total_goals: int
    completed_goals: int
    total_target: float
    total_saved: float
    progress_percent: int


# Expense and budget schemas

class ExpenseBase(BaseModel):
    amount: float = Field(..., gt=0)
    description: Optional[str] = Field(None, max_length=500)
    category: str = Field(..., min_length=1, max_length=50)
    date: date
    payment_method: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = None


class ExpenseCreate(ExpenseBase):
    pass


class ExpenseUpdate(BaseModel):
    amount: Optional[float] = Field(None, gt=0)
    description: Optional[str] = Field(None, max_length=500)
    category: Optional[str] = Field(None, min_length=1, max_length=50)
    date: Optional[dt.date] = None
    payment_method: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = None


class ExpenseResponse(ExpenseBase):
    id: int
    created_at: datetime

    class Config:
        from_attributes = True


class BudgetSet(BaseModel):
    category: str = Field(..., min_length=1, max_length=50)
    year: int = Field(..., ge=2000, le=2100)
    month: int = Field(..., ge=1, le=12)
    amount: float = Field(..., gt=0)


class BudgetResponse(BaseModel):
    id: int
    category: str
    year: int
    month: int
    amount: float

    class Config:
        from_attributes = True


class BudgetVsActualRow(BaseModel):
    category: str
    budgeted: float
    spent: float
    remaining: float
    percent_used: int


class FinanceDashboardResponse(BaseModel):
    year: int
    month: int
    total_expenses: float
    expenses_by_category: Dict[str, float] = {}
    budget_vs_actual: List[BudgetVsActualRow] = []
    savings: SavingsStatsResponse


class BudgetReviewRequest(BaseModel):
    year: int = Field(..., ge=2000, le=2100)
    month: int = Field(..., ge=1, le=12)


class BudgetReviewResponse(BaseModel):
    year: int
    month: int
    under_budget: bool
    budget_vs_actual: List[BudgetVsActualRow] = []
    unlocked_achievements: List[UnlockedAchievement] = []


# Profile schemas

class PlayerProfileResponse(BaseModel):
    total_xp: int
    current_level: int
    level_title: str
    level_icon: str
    xp_to_next_level: int
    level_progress: int
    goals_completed: int
    bucket_completed: int
    habits_completed: int
    total_saved: float


class UserProfileResponse(BaseModel):
    id: int
    name: str
    email: str
    profile: PlayerProfileResponse


class ProfileUpdate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)


class LevelProgressResponse(BaseModel):
    current_xp: int
    current_level: int
    level_title: str
    level_icon: str
    xp_for_current_level: int
    xp_for_next_level: Optional[int] = None
    xp_to_next_level: int
    level_progress: int
