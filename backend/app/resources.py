"""Registry of the per-user tracker tables that share one CRUD shape."""

from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel

from . import schemas


@dataclass(frozen=True)
class Resource:
    name: str
    path: str
    table: str
    create_model: type[BaseModel]
    response_model: type[BaseModel]
    update_model: Optional[type[BaseModel]] = None
    order_by: Optional[str] = None
    stamp_created_at: bool = False

    @property
    def columns(self) -> list[str]:
        cols = list(self.create_model.model_fields.keys())
        if self.stamp_created_at:
            cols.append("created_at")
        return cols


WEIGHT = Resource("weight", "/api/weight", "weight_entries", schemas.WeightEntryCreate, schemas.WeightEntryResponse, order_by="date")
DIET = Resource("diet", "/api/diet", "diet_entries", schemas.DietEntryCreate, schemas.DietEntryResponse, order_by="date")
WORKOUTS = Resource("workouts", "/api/workouts", "workouts", schemas.WorkoutCreate, schemas.WorkoutResponse, order_by="date")
RECOVERY = Resource("recovery", "/api/recovery", "recovery_entries", schemas.RecoveryEntryCreate, schemas.RecoveryEntryResponse, order_by="date")
SLEEP = Resource("sleep", "/api/sleep", "sleep_entries", schemas.SleepEntryCreate, schemas.SleepEntryResponse, order_by="date")
JOURNAL = Resource(
    "journal",
    "/api/journal",
    "journal_entries",
    schemas.JournalEntryCreate,
    schemas.JournalEntryResponse,
    update_model=schemas.JournalEntryUpdate,
    order_by="date",
)
PROGRESS_PHOTOS = Resource(
    "progress-photos",
    "/api/progress-photos",
    "progress_photos",
    schemas.ProgressPhotoCreate,
    schemas.ProgressPhotoResponse,
    order_by="date",
)
BUDGET_CATEGORIES = Resource(
    "budget-categories",
    "/api/budget/categories",
    "budget_categories",
    schemas.BudgetCategoryCreate,
    schemas.BudgetCategoryResponse,
    update_model=schemas.BudgetCategoryUpdate,
)
BUDGET_SCENARIOS = Resource(
    "budget-scenarios",
    "/api/budget/scenarios",
    "budget_scenarios",
    schemas.BudgetScenarioCreate,
    schemas.BudgetScenarioResponse,
    update_model=schemas.BudgetScenarioUpdate,
)
CALENDAR_EVENTS = Resource(
    "calendar",
    "/api/calendar",
    "calendar_events",
    schemas.CalendarEventCreate,
    schemas.CalendarEventResponse,
    update_model=schemas.CalendarEventUpdate,
    order_by="start_date",
)
TODOS = Resource(
    "todos",
    "/api/todos",
    "todos",
    schemas.TodoCreate,
    schemas.TodoResponse,
    update_model=schemas.TodoUpdate,
    order_by="created_at",
    stamp_created_at=True,
)
QUOTES = Resource(
    "quotes",
    "/api/quotes",
    "motivational_quotes",
    schemas.QuoteCreate,
    schemas.QuoteResponse,
    update_model=schemas.QuoteUpdate,
    order_by="created_at",
    stamp_created_at=True,
)
RECORDS = Resource(
    "records",
    "/api/records",
    "martial_arts_records",
    schemas.MartialArtsRecordCreate,
    schemas.MartialArtsRecordResponse,
    update_model=schemas.MartialArtsRecordUpdate,
    order_by="date",
    stamp_created_at=True,
)
BELTS = Resource(
    "belts",
    "/api/belts",
    "martial_arts_belts",
    schemas.MartialArtsBeltCreate,
    schemas.MartialArtsBeltResponse,
    update_model=schemas.MartialArtsBeltUpdate,
    order_by="created_at",
    stamp_created_at=True,
)
JOBS = Resource(
    "jobs",
    "/api/jobs",
    "jobs",
    schemas.JobCreate,
    schemas.JobResponse,
    update_model=schemas.JobUpdate,
    order_by="created_at",
    stamp_created_at=True,
)
PAYCHECK_HISTORY = Resource(
    "paycheck-history",
    "/api/paycheck-history",
    "paycheck_history",
    schemas.PaycheckHistoryCreate,
    schemas.PaycheckHistoryResponse,
    order_by="week_start",
    stamp_created_at=True,
)
BUDGET_PLAN = Resource(
    "budget-plan",
    "/api/budget-plan",
    "budget_plan_entries",
    schemas.BudgetPlanEntryCreate,
    schemas.BudgetPlanEntryResponse,
    order_by="date",
    stamp_created_at=True,
)

TRACKER_RESOURCES: tuple[Resource, ...] = (
    WEIGHT,
    DIET,
    WORKOUTS,
    RECOVERY,
    SLEEP,
    JOURNAL,
    PROGRESS_PHOTOS,
    BUDGET_CATEGORIES,
    BUDGET_SCENARIOS,
    CALENDAR_EVENTS,
    TODOS,
    QUOTES,
    RECORDS,
    BELTS,
    JOBS,
    PAYCHECK_HISTORY,
    BUDGET_PLAN,
)
