from fastapi import APIRouter, Depends, HTTPException, UploadFile, File, Form
from typing import List, Optional
from datetime import date
from models.auth import User
from models.daily_log import DailyLog, DailyLogSave, DailyLogResponse, AnnotationType, ResourceCreate
from core.auth import get_current_user
from core.storage import get_blob_store
from controllers import daily_log_controller, annotation_controller, export_controller
from controllers.project_controller import get_project
from database import get_db

router = APIRouter(prefix="/projects/{project_id}/logs", tags=["daily_logs"])


def _as_response(log: Optional[DailyLog], log_date: date) -> DailyLogResponse:
    if log is None:
        return daily_log_controller.default_daily_log(log_date)
    return DailyLogResponse(**log.model_dump(), persisted=True)


async def _require_project(db, project_id: str):
    if not await get_project(db, project_id):
        raise HTTPException(status_code=404, detail="Project not found")


@router.get("", response_model=List[DailyLog])
async def get_daily_logs(project_id: str, current_user: User = Depends(get_current_user), db=Depends(get_db)):
    await _require_project(db, project_id)
    return await daily_log_controller.get_daily_logs_for_project(db, project_id)


@router.get("/latest-date")
async def get_latest_log_date(project_id: str, current_user: User = Depends(get_current_user), db=Depends(get_db)):
    await _require_project(db, project_id)
    latest = await daily_log_controller.get_default_log_date(db, project_id)
    return {"date": latest.isoformat()}


@router.get("/{log_date}", response_model=DailyLogResponse)
async def get_daily_log(project_id: str, log_date: date, current_user: User = Depends(get_current_user), db=Depends(get_db)):
    await _require_project(db, project_id)
    log = await daily_log_controller.get_daily_log(db, project_id, log_date)
    return _as_response(log, log_date)


@router.put("/{log_date}", response_model=DailyLogResponse)
async def save_daily_log(project_id: str, log_date: date, log_data: DailyLogSave, current_user: User = Depends(get_current_user), db=Depends(get_db)):
    log = await daily_log_controller.save_daily_log(db, project_id, log_date, log_data)
    return _as_response(log, log_date)


@router.get("/{log_date}/export")
async def export_daily_log(project_id: str, log_date: date, format: str = "pdf", current_user: User = Depends(get_current_user), db=Depends(get_db)):
    return await export_controller.export_daily_log(db, project_id, log_date, format)


# ── Annotations ───────────────────────────────────────────

@router.post("/{log_date}/annotations", response_model=DailyLogResponse)
async def add_annotation(
    project_id: str,
    log_date: date,
    type: AnnotationType = Form(...),
    content: str = Form(...),
    files: Optional[List[UploadFile]] = File(None),
    current_user: User = Depends(get_current_user),
    db=Depends(get_db),
    blob_store=Depends(get_blob_store),
):
    log = await annotation_controller.add_annotation(db, blob_store, project_id, log_date, current_user, type, content, files)
    return _as_response(log, log_date)


@router.delete("/{log_date}/annotations/{annotation_id}", response_model=DailyLogResponse)
async def remove_annotation(project_id: str, log_date: date, annotation_id: str, current_user: User = Depends(get_current_user), db=Depends(get_db), blob_store=Depends(get_blob_store)):
    log = await annotation_controller.remove_annotation(db, blob_store, project_id, log_date, annotation_id)
    return _as_response(log, log_date)


# ── Resources ─────────────────────────────────────────────

@router.post("/{log_date}/resources", response_model=DailyLogResponse)
async def add_resource(project_id: str, log_date: date, data: ResourceCreate, current_user: User = Depends(get_current_user), db=Depends(get_db)):
    log = await annotation_controller.add_resource(db, project_id, log_date, data)
    return _as_response(log, log_date)


@router.delete("/{log_date}/resources/{resource_id}", response_model=DailyLogResponse)
async def remove_resource(project_id: str, log_date: date, resource_id: str, current_user: User = Depends(get_current_user), db=Depends(get_db)):
    log = await annotation_controller.remove_resource(db, project_id, log_date, resource_id)
    return _as_response(log, log_date)
