from __future__ import annotations

import json
import logging
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Mapping

from ..errors import ValidationError
from ..persistence import Persistence
from ..resources import JOBS, PAYCHECK_HISTORY
from ..schemas import PaycheckHistoryCreate

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def _cents(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def predict_week(
    week_start: date, jobs: Iterable[Mapping[str, Any]], hours: Iterable[Mapping[str, Any]]
) -> dict[str, Any]:
    """Gross pay for one week: each job's logged hours times its hourly rate.

    Inactive jobs are listed only when hours were logged against them.
    """
    per_job: dict[Any, Decimal] = {}
    for row in hours:
        per_job[row["job_id"]] = per_job.get(row["job_id"], Decimal("0")) + Decimal(str(row["hours"]))

    breakdown = []
    for job in jobs:
        job_hours = per_job.get(job["id"], Decimal("0"))
        if not job.get("is_active", True) and job_hours == 0:
            continue
        rate = Decimal(str(job["hourly_rate"]))
        breakdown.append(
            {
                "job_id": job["id"],
                "job_name": job["name"],
                "rate": rate,
                "hours": _cents(job_hours),
                "gross": _cents(job_hours * rate),
            }
        )
    return {
        "week_start": week_start,
        "total_hours": _cents(sum((b["hours"] for b in breakdown), Decimal("0"))),
        "total_gross": _cents(sum((b["gross"] for b in breakdown), Decimal("0"))),
        "jobs": breakdown,
    }


def breakdown_json(prediction: Mapping[str, Any]) -> str:
    return json.dumps(
        [
            {"jobName": b["job_name"], "hours": str(b["hours"]), "gross": str(b["gross"]), "rate": str(b["rate"])}
            for b in prediction["jobs"]
            if b["hours"] > 0
        ]
    )


def week_prediction(persistence: Persistence, user_id: str, week_start: date) -> dict[str, Any]:
    jobs = persistence.list_entries(JOBS, user_id)
    hours = persistence.list_daily_hours(user_id, week_start)
    return predict_week(week_start, jobs, hours)


def save_day(
    persistence: Persistence, user_id: str, week_start: date, day: str, hours_data: Iterable[Mapping[str, Any]]
) -> list[dict[str, Any]]:
    entries = [
        {"job_id": item["job_id"], "week_start": week_start, "day": day, "hours": item["hours"]}
        for item in hours_data
    ]
    saved = persistence.upsert_daily_hours(user_id, entries)
    logger.info("paycheck hours saved user=%s week=%s day=%s jobs=%d", user_id, week_start, day, len(saved))
    return saved


def snapshot_week(persistence: Persistence, user_id: str, week_start: date) -> dict[str, Any]:
    if week_start.weekday() != 0:
        raise ValidationError("weekStart must be a Monday", field="weekStart")
    prediction = week_prediction(persistence, user_id, week_start)
    if prediction["total_hours"] == 0:
        raise ValidationError("no hours logged for this week", field="weekStart")
    entry = PaycheckHistoryCreate(
        week_start=week_start,
        total_hours=prediction["total_hours"],
        total_gross=prediction["total_gross"],
        job_breakdown=breakdown_json(prediction),
    )
    row = persistence.create_entry(PAYCHECK_HISTORY, user_id, entry.model_dump())
    logger.info("paycheck snapshot user=%s week=%s gross=%s", user_id, week_start, prediction["total_gross"])
    return row
