from fastapi import HTTPException
from typing import Optional, List
from datetime import date, datetime, timezone
import logging

from config import DEFAULT_WEATHER
from controllers.catalogue_controller import update_catalogue
from core.reconciliation import reconcile_resources
from core.timestamps import to_wire_timestamp, from_wire_timestamp, log_id_for, log_datetime_for
from models.daily_log import DailyLog, DailyLogSave, DailyLogResponse, Weather
from models.project import RegisteredResource

logger = logging.getLogger(__name__)


def _log_from_doc(doc: dict) -> DailyLog:
    return DailyLog(**doc)


def default_daily_log(log_date: date) -> DailyLogResponse:
    """In-memory log shown for a date that has nothing stored yet."""
    return DailyLogResponse(
        id=log_id_for(log_date),
        date=log_datetime_for(log_date),
        weather=Weather(**DEFAULT_WEATHER),
        persisted=False,
    )


async def get_daily_log(db, project_id: str, log_date: date) -> Optional[DailyLog]:
    doc = await db.daily_logs.find_one({"project_id": project_id, "id": log_id_for(log_date)}, {"_id": 0})
    if not doc:
        return None
    return _log_from_doc(doc)


async def get_daily_logs_for_project(db, project_id: str) -> List[DailyLog]:
    docs = await db.daily_logs.find({"project_id": project_id}, {"_id": 0}).sort("date", 1).to_list(None)
    return [_log_from_doc(d) for d in docs]


async def get_default_log_date(db, project_id: str) -> date:
    """Date of the most recent log, or today when the project has none."""
    latest = await db.daily_logs.find(
        {"project_id": project_id}, {"_id": 0, "date": 1}
    ).sort("date", -1).limit(1).to_list(1)
    if latest:
        return from_wire_timestamp(latest[0]["date"]).date()
    return datetime.now(timezone.utc).date()


async def delete_daily_log(db, project_id: str, log_date: date) -> bool:
    result = await db.daily_logs.delete_one({"project_id": project_id, "id": log_id_for(log_date)})
    return result.deleted_count > 0


async def save_daily_log(
    db,
    project_id: str,
    log_date: date,
    log_data: DailyLogSave,
    current_catalogue: Optional[List[RegisteredResource]] = None,
) -> Optional[DailyLog]:
    """Persist one day's log and its side effects on the project.

    An empty log is deleted instead and None is returned. Otherwise the resources
    are reconciled against the stored catalogue, the catalogue is written back if
    it changed, the log is written with merge semantics and the project's
    last_log_date is moved to this log's date.
    """
    log_id = log_id_for(log_date)

    if log_data.is_empty:
        deleted = await delete_daily_log(db, project_id, log_date)
        logger.info(f"Empty log {project_id}/{log_id} {'deleted' if deleted else 'not stored, nothing to delete'}")
        return None

    if log_data.date is not None and from_wire_timestamp(log_data.date).date() != log_date:
        raise HTTPException(status_code=400, detail=f"Log date {log_data.date.date()} does not match {log_id}")
    log_dt = log_data.date or log_datetime_for(log_date)

    if current_catalogue is None:
        current_catalogue = log_data.registered_resources

    def reconcile(catalogue):
        if current_catalogue is not None and current_catalogue != catalogue:
            logger.info(f"Caller's resource register for {project_id} is stale, reconciling against the stored one")
        result = reconcile_resources(log_data.resources, catalogue)
        return result.updated_catalogue, result.catalogue_changed, result.resources

    updated = await update_catalogue(db, project_id, reconcile)
    if updated is None:
        raise HTTPException(status_code=404, detail="Project not found")
    _, resources = updated

    wire_date = to_wire_timestamp(log_dt)
    doc = {
        "project_id": project_id,
        "id": log_id,
        "date": wire_date,
        "weather": log_data.weather.model_dump(),
        "annotations": [
            {**a.model_dump(), "timestamp": to_wire_timestamp(a.timestamp)}
            for a in log_data.annotations
        ],
        "resources": [r.model_dump() for r in resources],
        "is_validated": log_data.is_validated,
    }
    await db.daily_logs.update_one({"project_id": project_id, "id": log_id}, {"$set": doc}, upsert=True)
    await db.projects.update_one({"id": project_id}, {"$set": {"last_log_date": wire_date}})
    return _log_from_doc(doc)


def to_save_payload(log: DailyLog) -> DailyLogSave:
    return DailyLogSave(
        date=log.date,
        weather=log.weather,
        annotations=log.annotations,
        resources=log.resources,
        is_validated=log.is_validated,
    )
