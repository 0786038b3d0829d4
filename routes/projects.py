from fastapi import APIRouter, Depends, HTTPException
from typing import List
from models.auth import User
from models.project import Project, ProjectCreate, ProjectUpdate
from core.auth import get_current_user
from controllers import project_controller
from database import get_db

router = APIRouter(tags=["projects"])


# ── Projects ──────────────────────────────────────────────

@router.get("/projects", response_model=List[Project])
async def get_my_projects(current_user: User = Depends(get_current_user), db=Depends(get_db)):
    return await project_controller.get_projects_by_owner(db, current_user.id)


@router.post("/projects", response_model=Project)
async def add_project(project_data: ProjectCreate, current_user: User = Depends(get_current_user), db=Depends(get_db)):
    return await project_controller.add_project(db, project_data, current_user)


@router.get("/projects/{project_id}", response_model=Project)
async def get_project(project_id: str, current_user: User = Depends(get_current_user), db=Depends(get_db)):
    project = await project_controller.get_project(db, project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


@router.patch("/projects/{project_id}", response_model=Project)
async def update_project(project_id: str, data: ProjectUpdate, current_user: User = Depends(get_current_user), db=Depends(get_db)):
    project = await project_controller.update_project(db, project_id, data)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


@router.delete("/projects/{project_id}")
async def delete_project(project_id: str, current_user: User = Depends(get_current_user), db=Depends(get_db)):
    result = await project_controller.delete_project(db, project_id, current_user)
    if result is None:
        raise HTTPException(status_code=404, detail="Project not found")
    return result
