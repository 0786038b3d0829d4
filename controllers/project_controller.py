from fastapi import HTTPException
from typing import Optional, List
import logging

from config import DEFAULT_STAKEHOLDERS
from core.timestamps import from_wire_timestamp
from models.auth import User
from models.project import Project, ProjectCreate, ProjectUpdate, Stakeholder

logger = logging.getLogger(__name__)


# ── Projects ──────────────────────────────────────────────

async def add_project(db, project_data: ProjectCreate, owner: User) -> Project:
    project = Project(
        **project_data.model_dump(),
        owner_id=owner.id,
        stakeholders=[Stakeholder(**s) for s in DEFAULT_STAKEHOLDERS],
    )
    await db.projects.insert_one(project.model_dump())
    logger.info(f"Project {project.id} created by {owner.id}")
    return project


async def get_project(db, project_id: str) -> Optional[Project]:
    project = await db.projects.find_one({"id": project_id}, {"_id": 0})
    if not project:
        return None
    return Project(**project)


async def get_projects_by_owner(db, owner_id: str) -> List[Project]:
    projects = await db.projects.find({"owner_id": owner_id}, {"_id": 0}).to_list(None)
    result = []
    for doc in projects:
        project = Project(**doc)
        # The most recent stored log wins over the denormalised field
        latest = await db.daily_logs.find(
            {"project_id": project.id}, {"_id": 0, "date": 1}
        ).sort("date", -1).limit(1).to_list(1)
        if latest:
            project.last_log_date = from_wire_timestamp(latest[0]["date"])
        result.append(project)
    return result


async def update_project(db, project_id: str, data: ProjectUpdate) -> Optional[Project]:
    existing = await db.projects.find_one({"id": project_id}, {"_id": 0})
    if not existing:
        return None
    updates = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
    if updates:
        operation = {"$set": updates}
        if "registered_resources" in updates:
            operation["$inc"] = {"catalogue_version": 1}
        await db.projects.update_one({"id": project_id}, operation)
    return await get_project(db, project_id)


async def delete_project(db, project_id: str, current_user: User) -> Optional[dict]:
    """Deletes the project document only; its daily logs and attachments stay behind."""
    existing = await db.projects.find_one({"id": project_id}, {"_id": 0, "owner_id": 1})
    if not existing:
        return None
    if existing.get("owner_id") != current_user.id:
        raise HTTPException(status_code=403, detail="Only the project owner can delete it")
    await db.projects.delete_one({"id": project_id})
    logger.info(f"Project {project_id} deleted by {current_user.id}")
    return {"message": "Project deleted"}
