from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, create_model, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .config import local_zone


def _now() -> datetime:
    return datetime.now().replace(microsecond=0)


class ApiModel(BaseModel):
    """Snake_case attributes on the Python side, camelCase keys on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, use_enum_values=True, validate_default=True
    )

    @field_validator("*")
    @classmethod
    def naive_local_datetimes(cls, value: Any) -> Any:
        # stored datetimes are naive wall-clock times in the configured zone
        if isinstance(value, datetime) and value.tzinfo is not None:
            return value.astimezone(local_zone()).replace(tzinfo=None)
        return value


def partial_model(model: type[BaseModel], name: str) -> type[ApiModel]:
    """Build an update model: every field of ``model`` optional, constraints kept."""
    fields = {}
    for field_name, info in model.model_fields.items():
        annotation = info.annotation
        if info.metadata:
            annotation = Annotated[(annotation, *info.metadata)]
        fields[field_name] = (Optional[annotation], None)
    return create_model(name, __base__=ApiModel, **fields)


class TransactionType(str, Enum):
    income = "income"
    expense = "expense"


class AccountType(str, Enum):
    checking = "checking"
    savings = "savings"
    credit = "credit"
    cash = "cash"


class RecurringFrequency(str, Enum):
    weekly = "weekly"
    monthly = "monthly"
    yearly = "yearly"


class MealType(str, Enum):
    breakfast = "breakfast"
    lunch = "lunch"
    dinner = "dinner"
    snack = "snack"


class Intensity(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"


class Priority(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"


class Mood(str, Enum):
    great = "great"
    good = "good"
    okay = "okay"
    bad = "bad"
    terrible = "terrible"


class BoutResult(str, Enum):
    win = "win"
    loss = "loss"
    draw = "draw"


class Weekday(str, Enum):
    monday = "Monday"
    tuesday = "Tuesday"
    wednesday = "Wednesday"
    thursday = "Thursday"
    friday = "Friday"
    saturday = "Saturday"
    sunday = "Sunday"


class ApiErrorDetail(BaseModel):
    field: str
    message: str


class ApiErrorPayload(BaseModel):
    code: str
    message: str
    details: list[ApiErrorDetail] = Field(default_factory=list)


class ApiErrorResponse(BaseModel):
    error: ApiErrorPayload


class HealthResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")
    status: str


# --- ledger ---------------------------------------------------------------


class AccountCreate(ApiModel):
    name: str = Field(min_length=1, max_length=120)
    type: AccountType = AccountType.checking
    balance: Decimal = Field(default=Decimal("0"), allow_inf_nan=False)
    color: Optional[str] = None


class AccountUpdate(ApiModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    type: Optional[AccountType] = None
    color: Optional[str] = None
    # applied through the balance override, never merged directly
    balance: Optional[Decimal] = Field(default=None, allow_inf_nan=False)


class AccountResponse(ApiModel):
    id: UUID
    name: str
    type: AccountType
    balance: Decimal
    color: Optional[str] = None
    created_at: datetime


class TransactionCreate(ApiModel):
    type: TransactionType
    amount: str = Field(min_length=1)
    account_id: Optional[UUID] = None
    category_id: Optional[UUID] = None
    description: Optional[str] = None
    date: datetime = Field(default_factory=_now)
    is_recurring: bool = False
    recurring_frequency: Optional[RecurringFrequency] = None


class TransactionResponse(ApiModel):
    id: UUID
    type: TransactionType
    amount: Decimal
    account_id: Optional[UUID] = None
    category_id: Optional[UUID] = None
    description: Optional[str] = None
    date: datetime
    is_recurring: bool = False
    recurring_frequency: Optional[RecurringFrequency] = None


class TransferRequest(ApiModel):
    from_account_id: UUID
    to_account_id: UUID
    amount: str
    description: Optional[str] = None


class TransferResponse(BaseModel):
    success: bool


class BudgetCategoryCreate(ApiModel):
    name: str = Field(min_length=1, max_length=120)
    type: TransactionType
    color: Optional[str] = None
    icon: Optional[str] = None


class BudgetCategoryResponse(BudgetCategoryCreate):
    id: UUID


BudgetCategoryUpdate = partial_model(BudgetCategoryCreate, "BudgetCategoryUpdate")


# --- calendar -------------------------------------------------------------


class CalendarEventCreate(ApiModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    start_date: datetime
    end_date: Optional[datetime] = None
    all_day: bool = False
    location: Optional[str] = None
    color: Optional[str] = "#D4AF37"
    category: Optional[str] = None
    reminder: Optional[str] = None
    recurring: Optional[str] = None
    recurring_end_date: Optional[datetime] = None
    external_id: Optional[str] = None
    source_calendar: Optional[str] = None

    @model_validator(mode="after")
    def validate_range(self) -> "CalendarEventCreate":
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("endDate must be >= startDate")
        return self


class CalendarEventResponse(CalendarEventCreate):
    id: UUID


CalendarEventUpdate = partial_model(CalendarEventCreate, "CalendarEventUpdate")


class CalendarImportRequest(ApiModel):
    ics_data: str = Field(min_length=1)
    source_calendar: Optional[str] = None


class CalendarImportResponse(BaseModel):
    imported: int


# --- fitness and journal --------------------------------------------------


class WeightEntryCreate(ApiModel):
    weight: Decimal = Field(gt=Decimal("0"), allow_inf_nan=False)
    date: datetime = Field(default_factory=_now)
    note: Optional[str] = None


class WeightEntryResponse(WeightEntryCreate):
    id: UUID


class DietEntryCreate(ApiModel):
    date: datetime = Field(default_factory=_now)
    meal_type: MealType
    food_name: str = Field(min_length=1)
    serving_size: Optional[Decimal] = Field(default=None, ge=Decimal("0"))
    serving_unit: Optional[str] = None
    calories: int = Field(ge=0)
    protein: Optional[int] = Field(default=None, ge=0)
    carbs: Optional[int] = Field(default=None, ge=0)
    fats: Optional[int] = Field(default=None, ge=0)
    fiber: Optional[int] = Field(default=None, ge=0)
    sugar: Optional[int] = Field(default=None, ge=0)


class DietEntryResponse(DietEntryCreate):
    id: UUID


class WorkoutCreate(ApiModel):
    date: datetime = Field(default_factory=_now)
    exercise_name: str = Field(min_length=1)
    category: str = Field(min_length=1)
    duration: int = Field(gt=0)
    calories_burned: Optional[int] = Field(default=None, ge=0)
    intensity: Optional[Intensity] = None
    sets: Optional[int] = Field(default=None, ge=0)
    reps: Optional[int] = Field(default=None, ge=0)
    weight: Optional[Decimal] = Field(default=None, ge=Decimal("0"))
    notes: Optional[str] = None


class WorkoutResponse(WorkoutCreate):
    id: UUID


class RecoveryEntryCreate(ApiModel):
    date: datetime = Field(default_factory=_now)
    type: str = Field(min_length=1)
    duration: int = Field(gt=0)
    notes: Optional[str] = None


class RecoveryEntryResponse(RecoveryEntryCreate):
    id: UUID


class SleepEntryCreate(ApiModel):
    date: datetime = Field(default_factory=_now)
    duration: Decimal = Field(gt=Decimal("0"), le=Decimal("24"))
    quality: Optional[int] = Field(default=None, ge=1, le=10)
    notes: Optional[str] = None


class SleepEntryResponse(SleepEntryCreate):
    id: UUID


class JournalEntryCreate(ApiModel):
    date: datetime = Field(default_factory=_now)
    title: Optional[str] = None
    content: str = Field(min_length=1)
    mood: Optional[Mood] = None
    tags: Optional[str] = None


class JournalEntryResponse(JournalEntryCreate):
    id: UUID


JournalEntryUpdate = partial_model(JournalEntryCreate, "JournalEntryUpdate")


class ProgressPhotoCreate(ApiModel):
    date: datetime = Field(default_factory=_now)
    image_url: str = Field(min_length=1)
    weight: Optional[Decimal] = Field(default=None, gt=Decimal("0"))
    notes: Optional[str] = None


class ProgressPhotoResponse(ProgressPhotoCreate):
    id: UUID


class TodoCreate(ApiModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    completed: bool = False
    priority: Priority = Priority.medium
    due_date: Optional[datetime] = None


class TodoResponse(TodoCreate):
    id: UUID
    created_at: datetime


TodoUpdate = partial_model(TodoCreate, "TodoUpdate")


class QuoteCreate(ApiModel):
    text: str = Field(min_length=1)
    author: Optional[str] = None
    is_custom: bool = True


class QuoteResponse(QuoteCreate):
    id: UUID
    created_at: datetime


QuoteUpdate = partial_model(QuoteCreate, "QuoteUpdate")


class MartialArtsRecordCreate(ApiModel):
    date: datetime = Field(default_factory=_now)
    sport: str = Field(min_length=1)
    result: BoutResult
    method: Optional[str] = None
    opponent: Optional[str] = None
    event: Optional[str] = None
    location: Optional[str] = None
    round: Optional[int] = Field(default=None, ge=1)
    notes: Optional[str] = None


class MartialArtsRecordResponse(MartialArtsRecordCreate):
    id: UUID
    created_at: datetime


MartialArtsRecordUpdate = partial_model(MartialArtsRecordCreate, "MartialArtsRecordUpdate")


class MartialArtsBeltCreate(ApiModel):
    sport: str = Field(min_length=1)
    belt: str = Field(min_length=1)
    stripes: int = Field(default=0, ge=0)
    date_achieved: Optional[datetime] = None
    notes: Optional[str] = None


class MartialArtsBeltResponse(MartialArtsBeltCreate):
    id: UUID
    created_at: datetime


MartialArtsBeltUpdate = partial_model(MartialArtsBeltCreate, "MartialArtsBeltUpdate")


# --- budgeting and paycheck -----------------------------------------------


class BudgetScenarioCreate(ApiModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    projected_income: Decimal = Field(ge=Decimal("0"))
    projected_expenses: Decimal = Field(ge=Decimal("0"))
    start_date: datetime
    end_date: datetime

    @model_validator(mode="after")
    def validate_period(self) -> "BudgetScenarioCreate":
        if self.end_date < self.start_date:
            raise ValueError("endDate must be >= startDate")
        return self


class BudgetScenarioResponse(BudgetScenarioCreate):
    id: UUID


BudgetScenarioUpdate = partial_model(BudgetScenarioCreate, "BudgetScenarioUpdate")


class BudgetPlanEntryCreate(ApiModel):
    date: date
    type: TransactionType
    description: str = Field(min_length=1)
    amount: Decimal = Field(gt=Decimal("0"), allow_inf_nan=False)
    is_from_paycheck: bool = False


class BudgetPlanEntryResponse(BudgetPlanEntryCreate):
    id: UUID
    created_at: datetime


class JobCreate(ApiModel):
    name: str = Field(min_length=1)
    hourly_rate: Decimal = Field(ge=Decimal("0"), allow_inf_nan=False)
    color: Optional[str] = None
    is_active: bool = True


class JobResponse(JobCreate):
    id: UUID
    created_at: datetime


JobUpdate = partial_model(JobCreate, "JobUpdate")


class PaycheckHistoryCreate(ApiModel):
    week_start: date
    total_hours: Decimal = Field(ge=Decimal("0"))
    total_gross: Decimal = Field(ge=Decimal("0"))
    job_breakdown: str

    @field_validator("week_start")
    @classmethod
    def validate_week_start(cls, value: date) -> date:
        if value.weekday() != 0:
            raise ValueError("weekStart must be a Monday")
        return value


class PaycheckHistoryResponse(PaycheckHistoryCreate):
    id: UUID
    created_at: datetime


class DailyHoursUpsert(ApiModel):
    job_id: UUID
    week_start: date
    day: Weekday
    hours: Decimal = Field(default=Decimal("0"), ge=Decimal("0"), le=Decimal("24"))


class DailyHoursResponse(DailyHoursUpsert):
    id: UUID
    updated_at: datetime


class DayHours(ApiModel):
    job_id: UUID
    hours: Decimal = Field(default=Decimal("0"), ge=Decimal("0"), le=Decimal("24"))


class SaveDayRequest(ApiModel):
    week_start: date
    day: Weekday
    hours_data: list[DayHours]


class JobPrediction(ApiModel):
    job_id: UUID
    job_name: str
    rate: Decimal
    hours: Decimal
    gross: Decimal


class PaycheckPredictionResponse(ApiModel):
    week_start: date
    total_hours: Decimal
    total_gross: Decimal
    jobs: list[JobPrediction]
