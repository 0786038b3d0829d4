from fastapi import HTTPException, UploadFile
from typing import List, Optional
from datetime import date
from pathlib import Path
import asyncio
import logging

from config import ALLOWED_EXTENSIONS, MAX_FILE_SIZE
from controllers.daily_log_controller import get_daily_log, default_daily_log, save_daily_log, to_save_payload
from controllers.project_controller import get_project
from core.storage import attachment_path, resource_type_for
from models.auth import User
from models.daily_log import Annotation, AnnotationType, Attachment, DailyLog, Resource, ResourceCreate
from models.project import Project, Stakeholder

logger = logging.getLogger(__name__)

_ATTACHMENT_TYPES = {"image": "image", "video": "video", "raw": "pdf"}


def author_for(project: Project, user: User) -> Stakeholder:
    for stakeholder in project.stakeholders:
        if stakeholder.id == user.id:
            return stakeholder
    return Stakeholder(id=user.id, name=user.display_name or "Utente Anonimo", role="Direttore dei Lavori (DL)")


async def _require_project(db, project_id: str) -> Project:
    project = await get_project(db, project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


async def _load_or_default(db, project_id: str, log_date: date) -> DailyLog:
    return await get_daily_log(db, project_id, log_date) or default_daily_log(log_date)


async def _read_attachment(file: UploadFile) -> bytes:
    ext = Path(file.filename or "").suffix.lower()
    if ext not in ALLOWED_EXTENSIONS:
        raise HTTPException(status_code=400, detail=f"File type {ext or '(none)'} not allowed")
    content = await file.read()
    if len(content) > MAX_FILE_SIZE:
        raise HTTPException(status_code=400, detail=f"{file.filename} exceeds the 20MB limit")
    return content


async def discard_attachments(blob_store, attachments: List[Attachment]) -> None:
    for attachment in attachments:
        try:
            await blob_store.delete(attachment.url)
        except Exception as e:
            logger.error(f"Could not clean up {attachment.url}: {e}")


async def upload_attachments(blob_store, project_id: str, log_date: date, user: User, files: List[UploadFile]) -> List[Attachment]:
    """Upload all files concurrently; either every upload lands or none is kept."""
    contents = [await _read_attachment(f) for f in files]

    async def upload(file: UploadFile, content: bytes) -> Attachment:
        path = attachment_path(project_id, log_date, user.id, file.filename)
        url = await blob_store.upload(path, content, file.filename)
        return Attachment(url=url, caption=file.filename, type=_ATTACHMENT_TYPES[resource_type_for(file.filename)])

    results = await asyncio.gather(*(upload(f, c) for f, c in zip(files, contents)), return_exceptions=True)
    failures = [r for r in results if isinstance(r, BaseException)]
    if failures:
        await discard_attachments(blob_store, [r for r in results if isinstance(r, Attachment)])
        logger.error(f"Attachment upload failed for {project_id}/{log_date}: {failures[0]}")
        raise HTTPException(status_code=502, detail="Attachment upload failed, the annotation was not added")
    return list(results)


async def add_annotation(
    db, blob_store, project_id: str, log_date: date, user: User,
    annotation_type: AnnotationType, content: str, files: Optional[List[UploadFile]] = None,
) -> DailyLog:
    project = await _require_project(db, project_id)
    attachments = await upload_attachments(blob_store, project_id, log_date, user, files or [])
    annotation = Annotation(
        author=author_for(project, user),
        type=annotation_type,
        content=content,
        attachments=attachments,
    )
    try:
        log = await _load_or_default(db, project_id, log_date)
        log.annotations = [annotation] + log.annotations
        return await save_daily_log(db, project_id, log_date, to_save_payload(log))
    except Exception:
        # the annotation never landed, so its uploads are unreferenced
        await discard_attachments(blob_store, attachments)
        raise


async def remove_annotation(db, blob_store, project_id: str, log_date: date, annotation_id: str) -> Optional[DailyLog]:
    log = await get_daily_log(db, project_id, log_date)
    removed = next((a for a in log.annotations if a.id == annotation_id), None) if log else None
    if removed is None:
        raise HTTPException(status_code=404, detail="Annotation not found")
    log.annotations = [a for a in log.annotations if a.id != annotation_id]
    saved = await save_daily_log(db, project_id, log_date, to_save_payload(log))

    # Blob cleanup is best effort; the annotation is already gone
    await discard_attachments(blob_store, removed.attachments)
    return saved


async def add_resource(db, project_id: str, log_date: date, data: ResourceCreate) -> DailyLog:
    await _require_project(db, project_id)
    log = await _load_or_default(db, project_id, log_date)
    log.resources = log.resources + [Resource(**data.model_dump())]
    return await save_daily_log(db, project_id, log_date, to_save_payload(log))


async def remove_resource(db, project_id: str, log_date: date, resource_id: str) -> Optional[DailyLog]:
    log = await get_daily_log(db, project_id, log_date)
    if not log or not any(r.id == resource_id for r in log.resources):
        raise HTTPException(status_code=404, detail="Resource not found")
    log.resources = [r for r in log.resources if r.id != resource_id]
    return await save_daily_log(db, project_id, log_date, to_save_payload(log))
