"""Daily analytics buckets: visits, orders and revenue per UTC day."""

from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from pymongo import ReturnDocument
from pymongo.database import Database

from database import now
from schemas import DailyBucket


def day_key(moment: Optional[datetime] = None) -> datetime:
    moment = moment or now()
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def increment_day(db: Database, increments: Dict[str, Any], moment: Optional[datetime] = None) -> Dict[str, Any]:
    """Idempotent upsert of the day's bucket followed by ``$inc``.

    Counters not being incremented are initialised on insert so a fresh bucket
    always carries every field.
    """
    key = day_key(moment)
    defaults = DailyBucket(date=key).model_dump(by_alias=True)
    on_insert = {k: v for k, v in defaults.items() if k not in increments and k != "date"}
    update: Dict[str, Any] = {"$inc": increments}
    if on_insert:
        update["$setOnInsert"] = on_insert
    return db["analytics"].find_one_and_update(
        {"date": key},
        update,
        upsert=True,
        return_document=ReturnDocument.AFTER,
    )


def record_visit(db: Database) -> Dict[str, Any]:
    return increment_day(db, {"visits": 1})


def record_order(db: Database, total: float) -> Dict[str, Any]:
    return increment_day(db, {"ordersCount": 1, "revenue": total})


def range_start(range_name: Optional[str], today: Optional[datetime] = None) -> datetime:
    today = day_key(today)
    if range_name == "week":
        return today - timedelta(days=7)
    if range_name == "month":
        year, month = (today.year, today.month - 1) if today.month > 1 else (today.year - 1, 12)
        # clamp e.g. March 31 -> February 28/29
        for day in (today.day, 30, 29, 28):
            try:
                return today.replace(year=year, month=month, day=day)
            except ValueError:
                continue
    return today


def dashboard(db: Database, range_name: Optional[str] = "today") -> Dict[str, Any]:
    start = range_start(range_name)
    buckets = list(db["analytics"].find({"date": {"$gte": start}}).sort("date", 1))

    chart_data = [
        {
            "date": bucket["date"].strftime("%Y-%m-%d"),
            "visits": bucket.get("visits", 0),
            "orders": bucket.get("ordersCount", 0),
            "revenue": bucket.get("revenue", 0),
        }
        for bucket in buckets
    ]

    return {
        "summary": {
            "visits": sum(day["visits"] for day in chart_data),
            "orders": sum(day["orders"] for day in chart_data),
            "revenue": sum(day["revenue"] for day in chart_data),
        },
        "chartData": chart_data,
    }
