from fastapi import FastAPI, Depends, Request, Query, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date
import logging
import os
from pathlib import Path

from life_tracker.database import engine, get_db, Base, SessionLocal
from life_tracker import models  # Import all models to register them with Base
from life_tracker.schemas import (
    GoalCreate, GoalUpdate, GoalProgressUpdate, GoalResponse,
    GoalMutationResponse, GoalCompletionResponse, GoalStatsResponse,
    HabitCreate, HabitUpdate, HabitResponse, HabitLogRequest, HabitLogResponse,
    HabitLogResult, HabitMutationResponse, HabitTodayStatus, HabitStatsResponse,
    BucketItemCreate, BucketItemUpdate, BucketItemComplete, BucketItemResponse,
    BucketItemMutationResponse, BucketItemCompletionResponse, BucketStatsResponse,
    SavingsGoalCreate, SavingsGoalUpdate, SavingsDeposit, SavingsGoalResponse,
    SavingsGoalMutationResponse, SavingsStatsResponse,
    ExpenseCreate, ExpenseUpdate, ExpenseResponse, BudgetSet, BudgetResponse,
    BudgetVsActualRow, FinanceDashboardResponse, BudgetReviewRequest, BudgetReviewResponse,
    AchievementResponse, AchievementStatsResponse,
    UserProfileResponse, ProfileUpdate, LevelProgressResponse
)
from life_tracker.auth import verify_api_key
from life_tracker.exceptions import (
    LifeTrackerException, NotFoundException, InvalidStateException,
    ValidationException, DatabaseException
)
from life_tracker.seed import seed_achievements
from life_tracker.services.achievement_service import AchievementService
from life_tracker.services.bucket_service import BucketListService
from life_tracker.services.finance_service import FinanceService
from life_tracker.services.goal_service import GoalService
from life_tracker.services.habit_service import HabitService
from life_tracker.services.profile_service import ProfileService
from life_tracker.services.progress_service import ProgressService, UserLockRegistry
from life_tracker.services.savings_service import SavingsService

from life_tracker.constants import DEFAULT_LOG_DIRECTORY_PROD, DEFAULT_LOG_DIRECTORY_DEV

LOG_DIR = os.getenv("LIFE_TRACKER_LOG_DIR", DEFAULT_LOG_DIRECTORY_PROD)
LOG_FILE = os.getenv("LIFE_TRACKER_LOG_FILE", "app.log")

try:
    Path(LOG_DIR).mkdir(parents=True, exist_ok=True)
    log_path = Path(LOG_DIR) / LOG_FILE
except PermissionError:
    # Fallback to local directory if no permissions for /var/log
    LOG_DIR = DEFAULT_LOG_DIRECTORY_DEV
    Path(LOG_DIR).mkdir(parents=True, exist_ok=True)
    log_path = Path(LOG_DIR) / LOG_FILE

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(log_path),
        logging.StreamHandler()
    ]
)

logger = logging.getLogger("life_tracker")

# Create database tables
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="Life Tracker API",
    description="Goals, habits, bucket list and savings with XP, levels and achievements",
    version="1.0.0"
)

# One lock registry per process so every request for a user shares it
app.state.user_locks = UserLockRegistry()

from life_tracker.constants import CORS_ALLOWED_ORIGINS

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ===== ERROR HANDLING =====

def _error_response(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


@app.exception_handler(NotFoundException)
async def not_found_handler(request: Request, exc: NotFoundException):
    return _error_response(status.HTTP_404_NOT_FOUND, exc)


@app.exception_handler(InvalidStateException)
async def invalid_state_handler(request: Request, exc: InvalidStateException):
    logger.warning(f"{request.method} {request.url.path} rejected: {exc}")
    return _error_response(status.HTTP_400_BAD_REQUEST, exc)


@app.exception_handler(ValidationException)
async def validation_handler(request: Request, exc: ValidationException):
    return _error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, exc)


@app.exception_handler(DatabaseException)
async def database_error_handler(request: Request, exc: DatabaseException):
    logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, exc)


@app.exception_handler(LifeTrackerException)
async def life_tracker_error_handler(request: Request, exc: LifeTrackerException):
    logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, exc)


# ===== LIFECYCLE =====

@app.on_event("startup")
async def startup_event():
    db = SessionLocal()
    try:
        seed_achievements(db)
        ProfileService(db).get_or_create_current_user()
    finally:
        db.close()
    logger.info(f"Life Tracker API started. Logging to: {log_path}")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down Life Tracker API")


# ===== DEPENDENCIES =====

def get_current_user_id(db: Session = Depends(get_db)) -> int:
    """Single-user app: the first user, created on demand"""
    return ProfileService(db).get_or_create_current_user().id


def get_progress_service(request: Request, db: Session = Depends(get_db)) -> ProgressService:
    return ProgressService(db, request.app.state.user_locks)


# Health check (no auth required)
@app.get("/")
async def root():
    return {"message": "Life Tracker API", "status": "active"}


# ===== PROFILE ENDPOINTS =====

@app.get("/api/profile", response_model=UserProfileResponse, dependencies=[Depends(verify_api_key)])
def get_profile_endpoint(
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Get the player profile with live level fields"""
    return ProfileService(db).get_profile(user_id)


@app.put("/api/profile", response_model=UserProfileResponse, dependencies=[Depends(verify_api_key)])
def update_profile_endpoint(
    profile_update: ProfileUpdate,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Update the display name"""
    return ProfileService(db).update_name(user_id, profile_update.name)


@app.get("/api/profile/level", response_model=LevelProgressResponse, dependencies=[Depends(verify_api_key)])
def get_level_progress_endpoint(
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Get progress through the current level"""
    return ProfileService(db).get_level_progress(user_id)


# ===== GOAL ENDPOINTS =====

@app.get("/api/goals", response_model=List[GoalResponse], dependencies=[Depends(verify_api_key)])
def get_goals_endpoint(
    status_filter: Optional[str] = None,
    timeline: Optional[str] = None,
    priority: Optional[str] = None,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Get goals with optional filtering"""
    return GoalService(db).get_goals(user_id, status_filter, timeline, priority)


@app.get("/api/goals/stats", response_model=GoalStatsResponse, dependencies=[Depends(verify_api_key)])
def get_goal_stats_endpoint(
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    return GoalService(db).get_stats(user_id)


@app.get("/api/goals/{goal_id}", response_model=GoalResponse, dependencies=[Depends(verify_api_key)])
def get_goal_endpoint(
    goal_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    return GoalService(db).get_goal(goal_id, user_id)


@app.post("/api/goals", response_model=GoalMutationResponse, status_code=status.HTTP_201_CREATED, dependencies=[Depends(verify_api_key)])
def create_goal_endpoint(
    goal: GoalCreate,
    user_id: int = Depends(get_current_user_id),
    progress: ProgressService = Depends(get_progress_service)
):
    """Create a new goal"""
    return progress.create_goal(user_id, goal)


@app.put("/api/goals/{goal_id}", response_model=GoalResponse, dependencies=[Depends(verify_api_key)])
def update_goal_endpoint(
    goal_id: int,
    request: Request,
    goal_update: GoalUpdate,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Update goal fields (completion has its own endpoint)"""
    return GoalService(db, request.app.state.user_locks).update_goal(goal_id, user_id, goal_update)


@app.patch("/api/goals/{goal_id}/progress", response_model=GoalResponse, dependencies=[Depends(verify_api_key)])
def update_goal_progress_endpoint(
    goal_id: int,
    progress_update: GoalProgressUpdate,
    user_id: int = Depends(get_current_user_id),
    progress: ProgressService = Depends(get_progress_service)
):
    return progress.update_goal_progress(goal_id, user_id, progress_update.progress)


@app.post("/api/goals/{goal_id}/complete", response_model=GoalCompletionResponse, dependencies=[Depends(verify_api_key)])
def complete_goal_endpoint(
    goal_id: int,
    user_id: int = Depends(get_current_user_id),
    progress: ProgressService = Depends(get_progress_service)
):
    """Complete a goal, award points and check achievements"""
    return progress.complete_goal(goal_id, user_id)


@app.delete("/api/goals/{goal_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(verify_api_key)])
def delete_goal_endpoint(
    goal_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    GoalService(db).delete_goal(goal_id, user_id)


# ===== HABIT ENDPOINTS =====

@app.get("/api/habits", response_model=List[HabitResponse], dependencies=[Depends(verify_api_key)])
def get_habits_endpoint(
    is_active: Optional[bool] = None,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    return HabitService(db).get_habits(user_id, is_active)


@app.get("/api/habits/today", response_model=List[HabitTodayStatus], dependencies=[Depends(verify_api_key)])
def get_habits_today_endpoint(
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Today's log state for every active habit"""
    return HabitService(db).get_today_status(user_id)


@app.get("/api/habits/stats", response_model=HabitStatsResponse, dependencies=[Depends(verify_api_key)])
def get_habit_stats_endpoint(
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    return HabitService(db).get_stats(user_id)


@app.get("/api/habits/{habit_id}", response_model=HabitResponse, dependencies=[Depends(verify_api_key)])
def get_habit_endpoint(
    habit_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    return HabitService(db).get_habit(habit_id, user_id)


@app.get("/api/habits/{habit_id}/logs", response_model=List[HabitLogResponse], dependencies=[Depends(verify_api_key)])
def get_habit_logs_endpoint(
    habit_id: int,
    year: int = Query(..., ge=1970, le=9999),
    month: int = Query(..., ge=1, le=12),
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Get a habit's logs for one month"""
    return HabitService(db).get_month_logs(habit_id, user_id, year, month)


@app.post("/api/habits", response_model=HabitMutationResponse, status_code=status.HTTP_201_CREATED, dependencies=[Depends(verify_api_key)])
def create_habit_endpoint(
    habit: HabitCreate,
    user_id: int = Depends(get_current_user_id),
    progress: ProgressService = Depends(get_progress_service)
):
    return progress.create_habit(user_id, habit)


@app.put("/api/habits/{habit_id}", response_model=HabitResponse, dependencies=[Depends(verify_api_key)])
def update_habit_endpoint(
    habit_id: int,
    request: Request,
    habit_update: HabitUpdate,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    return HabitService(db, request.app.state.user_locks).update_habit(habit_id, user_id, habit_update)


@app.post("/api/habits/{habit_id}/log", response_model=HabitLogResult, dependencies=[Depends(verify_api_key)])
def log_habit_endpoint(
    habit_id: int,
    log_request: HabitLogRequest,
    user_id: int = Depends(get_current_user_id),
    progress: ProgressService = Depends(get_progress_service)
):
    """Log a habit day, award points on first completion and refresh streaks"""
    return progress.log_habit(
        habit_id,
        user_id,
        log_request.date,
        log_request.completed,
        log_request.value
    )


@app.delete("/api/habits/{habit_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(verify_api_key)])
def delete_habit_endpoint(
    habit_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    HabitService(db).delete_habit(habit_id, user_id)


# ===== BUCKET LIST ENDPOINTS =====

@app.get("/api/bucket-list", response_model=List[BucketItemResponse], dependencies=[Depends(verify_api_key)])
def get_bucket_items_endpoint(
    category: Optional[str] = None,
    difficulty: Optional[str] = None,
    is_completed: Optional[bool] = None,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    return BucketListService(db).get_items(user_id, category, difficulty, is_completed)


@app.get("/api/bucket-list/stats", response_model=BucketStatsResponse, dependencies=[Depends(verify_api_key)])
def get_bucket_stats_endpoint(
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    return BucketListService(db).get_stats(user_id)


@app.get("/api/bucket-list/{item_id}", response_model=BucketItemResponse, dependencies=[Depends(verify_api_key)])
def get_bucket_item_endpoint(
    item_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    return BucketListService(db).get_item(item_id, user_id)


@app.post("/api/bucket-list", response_model=BucketItemMutationResponse, status_code=status.HTTP_201_CREATED, dependencies=[Depends(verify_api_key)])
def create_bucket_item_endpoint(
    item: BucketItemCreate,
    user_id: int = Depends(get_current_user_id),
    progress: ProgressService = Depends(get_progress_service)
):
    return progress.create_bucket_item(user_id, item)


@app.put("/api/bucket-list/{item_id}", response_model=BucketItemResponse, dependencies=[Depends(verify_api_key)])
def update_bucket_item_endpoint(
    item_id: int,
    request: Request,
    item_update: BucketItemUpdate,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    return BucketListService(db, request.app.state.user_locks).update_item(item_id, user_id, item_update)


@app.post("/api/bucket-list/{item_id}/complete", response_model=BucketItemCompletionResponse, dependencies=[Depends(verify_api_key)])
def complete_bucket_item_endpoint(
    item_id: int,
    completion: Optional[BucketItemComplete] = None,
    user_id: int = Depends(get_current_user_id),
    progress: ProgressService = Depends(get_progress_service)
):
    """Complete a bucket list item, award points and check achievements"""
    notes = completion.notes if completion else None
    return progress.complete_bucket_item(item_id, user_id, notes)


@app.delete("/api/bucket-list/{item_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(verify_api_key)])
def delete_bucket_item_endpoint(
    item_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    BucketListService(db).delete_item(item_id, user_id)


# ===== SAVINGS ENDPOINTS =====

@app.get("/api/savings", response_model=List[SavingsGoalResponse], dependencies=[Depends(verify_api_key)])
def get_savings_goals_endpoint(
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    return SavingsService(db).get_goals(user_id)


@app.get("/api/savings/stats", response_model=SavingsStatsResponse, dependencies=[Depends(verify_api_key)])
def get_savings_stats_endpoint(
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    return SavingsService(db).get_stats(user_id)


@app.get("/api/savings/{goal_id}", response_model=SavingsGoalResponse, dependencies=[Depends(verify_api_key)])
def get_savings_goal_endpoint(
    goal_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    return SavingsService(db).get_goal(goal_id, user_id)


@app.post("/api/savings", response_model=SavingsGoalMutationResponse, status_code=status.HTTP_201_CREATED, dependencies=[Depends(verify_api_key)])
def create_savings_goal_endpoint(
    goal: SavingsGoalCreate,
    user_id: int = Depends(get_current_user_id),
    progress: ProgressService = Depends(get_progress_service)
):
    return progress.create_savings_goal(user_id, goal)


@app.put("/api/savings/{goal_id}", response_model=SavingsGoalMutationResponse, dependencies=[Depends(verify_api_key)])
def update_savings_goal_endpoint(
    goal_id: int,
    goal_update: SavingsGoalUpdate,
    user_id: int = Depends(get_current_user_id),
    progress: ProgressService = Depends(get_progress_service)
):
    return progress.update_savings_goal(goal_id, user_id, goal_update)


@app.post("/api/savings/{goal_id}/deposit", response_model=SavingsGoalMutationResponse, dependencies=[Depends(verify_api_key)])
def deposit_savings_endpoint(
    goal_id: int,
    deposit: SavingsDeposit,
    user_id: int = Depends(get_current_user_id),
    progress: ProgressService = Depends(get_progress_service)
):
    """Add money to a savings goal"""
    return progress.deposit_savings(goal_id, user_id, deposit.amount)


@app.delete("/api/savings/{goal_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(verify_api_key)])
def delete_savings_goal_endpoint(
    goal_id: int,
    user_id: int = Depends(get_current_user_id),
    progress: ProgressService = Depends(get_progress_service)
):
    progress.delete_savings_goal(goal_id, user_id)


# ===== EXPENSE AND BUDGET ENDPOINTS =====

@app.get("/api/expenses", response_model=List[ExpenseResponse], dependencies=[Depends(verify_api_key)])
def get_expenses_endpoint(
    category: Optional[str] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    return FinanceService(db).get_expenses(user_id, category, start_date, end_date)


@app.get("/api/expenses/{expense_id}", response_model=ExpenseResponse, dependencies=[Depends(verify_api_key)])
def get_expense_endpoint(
    expense_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    return FinanceService(db).get_expense(expense_id, user_id)


@app.post("/api/expenses", response_model=ExpenseResponse, status_code=status.HTTP_201_CREATED, dependencies=[Depends(verify_api_key)])
def create_expense_endpoint(
    expense: ExpenseCreate,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    return FinanceService(db).create_expense(user_id, expense)


@app.put("/api/expenses/{expense_id}", response_model=ExpenseResponse, dependencies=[Depends(verify_api_key)])
def update_expense_endpoint(
    expense_id: int,
    expense_update: ExpenseUpdate,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    return FinanceService(db).update_expense(expense_id, user_id, expense_update)


@app.delete("/api/expenses/{expense_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(verify_api_key)])
def delete_expense_endpoint(
    expense_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    FinanceService(db).delete_expense(expense_id, user_id)


@app.get("/api/budgets", response_model=List[BudgetResponse], dependencies=[Depends(verify_api_key)])
def get_budgets_endpoint(
    year: int = Query(..., ge=2000, le=2100),
    month: int = Query(..., ge=1, le=12),
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    return FinanceService(db).get_budgets(user_id, year, month)


@app.put("/api/budgets", response_model=BudgetResponse, dependencies=[Depends(verify_api_key)])
def set_budget_endpoint(
    budget: BudgetSet,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Create or replace a category budget for a month"""
    return FinanceService(db).set_budget(user_id, budget)


@app.delete("/api/budgets/{budget_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(verify_api_key)])
def delete_budget_endpoint(
    budget_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    FinanceService(db).delete_budget(budget_id, user_id)


@app.get("/api/budgets/vs-actual", response_model=List[BudgetVsActualRow], dependencies=[Depends(verify_api_key)])
def get_budget_vs_actual_endpoint(
    year: int = Query(..., ge=2000, le=2100),
    month: int = Query(..., ge=1, le=12),
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    return FinanceService(db).get_budget_vs_actual(user_id, year, month)


@app.get("/api/finance/dashboard", response_model=FinanceDashboardResponse, dependencies=[Depends(verify_api_key)])
def get_finance_dashboard_endpoint(
    year: int = Query(..., ge=2000, le=2100),
    month: int = Query(..., ge=1, le=12),
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    return FinanceService(db).get_dashboard(user_id, year, month)


@app.post("/api/budget/review", response_model=BudgetReviewResponse, dependencies=[Depends(verify_api_key)])
def budget_review_endpoint(
    review: BudgetReviewRequest,
    user_id: int = Depends(get_current_user_id),
    progress: ProgressService = Depends(get_progress_service)
):
    """Review a finished month against its budgets"""
    return progress.review_budget_month(user_id, review.year, review.month)


# ===== ACHIEVEMENT ENDPOINTS =====

@app.get("/api/achievements", response_model=List[AchievementResponse], dependencies=[Depends(verify_api_key)])
def get_achievements_endpoint(
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Full catalog with unlock status"""
    return AchievementService(db).get_all_with_status(user_id)


@app.get("/api/achievements/unlocked", response_model=List[AchievementResponse], dependencies=[Depends(verify_api_key)])
def get_unlocked_achievements_endpoint(
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    return AchievementService(db).get_unlocked(user_id)


@app.get("/api/achievements/stats", response_model=AchievementStatsResponse, dependencies=[Depends(verify_api_key)])
def get_achievement_stats_endpoint(
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    return AchievementService(db).get_stats(user_id)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("LIFE_TRACKER_PORT", "8000")))
