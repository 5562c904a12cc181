import logging
from datetime import date
from uuid import UUID

from fastapi import FastAPI, Header, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .config import settings
from .crud import build_router
from .errors import AppError
from .persistence import get_persistence
from .resources import TRACKER_RESOURCES
from .schemas import (
    AccountCreate,
    AccountResponse,
    AccountUpdate,
    ApiErrorDetail,
    ApiErrorPayload,
    ApiErrorResponse,
    CalendarImportRequest,
    CalendarImportResponse,
    DailyHoursResponse,
    DailyHoursUpsert,
    HealthResponse,
    PaycheckHistoryResponse,
    PaycheckPredictionResponse,
    SaveDayRequest,
    TransactionCreate,
    TransactionResponse,
    TransferRequest,
    TransferResponse,
)
from .services import ics, paycheck
from .services.ledger import Ledger, parse_balance

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Life Tracker API",
    version="0.1.0",
    description="Personal tracker API: budget ledger, calendar, fitness, journal and paycheck planning.",
)

persistence = get_persistence()
ledger = Ledger(persistence)

EXPORT_FILENAME = "life-tracker-calendar.ics"


def build_error_response(
    status_code: int, code: str, message: str, details: list[ApiErrorDetail] | None = None
) -> JSONResponse:
    payload = ApiErrorResponse(error=ApiErrorPayload(code=code, message=message, details=details or []))
    return JSONResponse(status_code=status_code, content=payload.model_dump())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details: list[ApiErrorDetail] = []
    for err in exc.errors():
        loc = ".".join(str(item) for item in err.get("loc", []) if item != "body")
        details.append(ApiErrorDetail(field=loc or "body", message=err.get("msg", "validation error")))
    return build_error_response(status.HTTP_400_BAD_REQUEST, "VALIDATION_ERROR", "Invalid request payload", details)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    details = []
    if exc.field:
        details.append(ApiErrorDetail(field=exc.field, message=getattr(exc, "reason", exc.message)))
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return build_error_response(exc.status_code, exc.code, exc.message, details)


def current_user(x_user_id: str | None = Header(default=None)) -> str:
    user_id = (x_user_id or "").strip()
    return user_id or settings.default_user_id


@app.get("/api/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse(status="ok")


@app.get("/api/budget/accounts", response_model=list[AccountResponse])
async def list_accounts(x_user_id: str | None = Header(default=None)) -> list[AccountResponse]:
    user_id = current_user(x_user_id)
    return [AccountResponse.model_validate(row) for row in persistence.list_accounts(user_id)]


@app.post("/api/budget/accounts", response_model=AccountResponse, status_code=201)
async def create_account(payload: AccountCreate, x_user_id: str | None = Header(default=None)) -> AccountResponse:
    user_id = current_user(x_user_id)
    values = payload.model_dump()
    values["balance"] = parse_balance(values["balance"])
    row = persistence.create_account(user_id, values)
    logger.info("account created user=%s id=%s balance=%s", user_id, row["id"], row["balance"])
    return AccountResponse.model_validate(row)


@app.post("/api/budget/accounts/transfer", response_model=TransferResponse)
async def transfer(payload: TransferRequest, x_user_id: str | None = Header(default=None)) -> TransferResponse:
    user_id = current_user(x_user_id)
    ledger.transfer(user_id, payload.from_account_id, payload.to_account_id, payload.amount)
    return TransferResponse(success=True)


@app.put("/api/budget/accounts/{account_id}", response_model=AccountResponse)
async def update_account(
    account_id: UUID, payload: AccountUpdate, x_user_id: str | None = Header(default=None)
) -> AccountResponse:
    user_id = current_user(x_user_id)
    updates = payload.model_dump(exclude_none=True)
    balance = updates.pop("balance", None)
    if balance is not None:
        parse_balance(balance)
    row = persistence.update_account(user_id, account_id, updates)
    if balance is not None:
        row = ledger.update_account_balance(user_id, account_id, balance)
    return AccountResponse.model_validate(row)


@app.delete("/api/budget/accounts/{account_id}", status_code=204)
async def delete_account(account_id: UUID, x_user_id: str | None = Header(default=None)) -> Response:
    user_id = current_user(x_user_id)
    if persistence.delete_account(user_id, account_id):
        logger.info("account deleted user=%s id=%s", user_id, account_id)
    return Response(status_code=204)


@app.get("/api/budget/transactions", response_model=list[TransactionResponse])
async def list_transactions(x_user_id: str | None = Header(default=None)) -> list[TransactionResponse]:
    user_id = current_user(x_user_id)
    return [TransactionResponse.model_validate(row) for row in persistence.list_transactions(user_id)]


@app.post("/api/budget/transactions", response_model=TransactionResponse, status_code=201)
async def create_transaction(
    payload: TransactionCreate, x_user_id: str | None = Header(default=None)
) -> TransactionResponse:
    user_id = current_user(x_user_id)
    row = ledger.create_transaction(user_id, payload.model_dump())
    return TransactionResponse.model_validate(row)


@app.delete("/api/budget/transactions/{transaction_id}", status_code=204)
async def delete_transaction(transaction_id: UUID, x_user_id: str | None = Header(default=None)) -> Response:
    user_id = current_user(x_user_id)
    ledger.delete_transaction(user_id, transaction_id)
    return Response(status_code=204)


@app.post("/api/calendar/import", response_model=CalendarImportResponse)
async def import_calendar(
    payload: CalendarImportRequest, x_user_id: str | None = Header(default=None)
) -> CalendarImportResponse:
    user_id = current_user(x_user_id)
    imported = ics.import_ics(persistence, user_id, payload.ics_data, payload.source_calendar)
    return CalendarImportResponse(imported=imported)


@app.get("/api/calendar/export")
async def export_calendar(x_user_id: str | None = Header(default=None)) -> Response:
    user_id = current_user(x_user_id)
    return Response(
        content=ics.export_ics(persistence, user_id),
        media_type="text/calendar",
        headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'},
    )


@app.get("/api/paycheck-daily-hours/{week_start}", response_model=list[DailyHoursResponse])
async def list_daily_hours(week_start: date, x_user_id: str | None = Header(default=None)) -> list[DailyHoursResponse]:
    user_id = current_user(x_user_id)
    return [DailyHoursResponse.model_validate(row) for row in persistence.list_daily_hours(user_id, week_start)]


@app.post("/api/paycheck-daily-hours", response_model=DailyHoursResponse)
async def upsert_daily_hours(
    payload: DailyHoursUpsert, x_user_id: str | None = Header(default=None)
) -> DailyHoursResponse:
    user_id = current_user(x_user_id)
    row = persistence.upsert_daily_hours(user_id, [payload.model_dump()])[0]
    return DailyHoursResponse.model_validate(row)


@app.post("/api/paycheck-daily-hours/save-day", response_model=list[DailyHoursResponse])
async def save_day(payload: SaveDayRequest, x_user_id: str | None = Header(default=None)) -> list[DailyHoursResponse]:
    user_id = current_user(x_user_id)
    rows = paycheck.save_day(
        persistence, user_id, payload.week_start, payload.day, [item.model_dump() for item in payload.hours_data]
    )
    return [DailyHoursResponse.model_validate(row) for row in rows]


@app.delete("/api/paycheck-daily-hours/{week_start}", status_code=204)
async def clear_daily_hours(week_start: date, x_user_id: str | None = Header(default=None)) -> Response:
    user_id = current_user(x_user_id)
    persistence.clear_daily_hours(user_id, week_start)
    return Response(status_code=204)


@app.get("/api/paycheck-daily-hours/{week_start}/prediction", response_model=PaycheckPredictionResponse)
async def predict_paycheck(
    week_start: date, x_user_id: str | None = Header(default=None)
) -> PaycheckPredictionResponse:
    user_id = current_user(x_user_id)
    return PaycheckPredictionResponse.model_validate(paycheck.week_prediction(persistence, user_id, week_start))


@app.post("/api/paycheck-history/from-week/{week_start}", response_model=PaycheckHistoryResponse, status_code=201)
async def save_paycheck_week(
    week_start: date, x_user_id: str | None = Header(default=None)
) -> PaycheckHistoryResponse:
    user_id = current_user(x_user_id)
    row = paycheck.snapshot_week(persistence, user_id, week_start)
    return PaycheckHistoryResponse.model_validate(row)


# generic tracker routes go last so the fixed paths above win over "/{entry_id}"
for _resource in TRACKER_RESOURCES:
    app.include_router(build_router(_resource, persistence, current_user))


def run() -> None:
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
