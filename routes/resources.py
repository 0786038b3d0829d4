from fastapi import APIRouter, Depends, HTTPException
from typing import List
from models.auth import User
from models.project import RegisteredResource, RegisteredResourceCreate
from core.auth import get_current_user
from controllers import catalogue_controller
from database import get_db

router = APIRouter(prefix="/projects/{project_id}/resources", tags=["resources"])


@router.get("", response_model=List[RegisteredResource])
async def list_registered_resources(project_id: str, current_user: User = Depends(get_current_user), db=Depends(get_db)):
    catalogue = await catalogue_controller.list_registered_resources(db, project_id)
    if catalogue is None:
        raise HTTPException(status_code=404, detail="Project not found")
    return catalogue


@router.post("", response_model=RegisteredResource)
async def add_registered_resource(project_id: str, data: RegisteredResourceCreate, current_user: User = Depends(get_current_user), db=Depends(get_db)):
    return await catalogue_controller.add_registered_resource(db, project_id, data)


@router.put("/{resource_id}", response_model=RegisteredResource)
async def update_registered_resource(project_id: str, resource_id: str, data: RegisteredResourceCreate, current_user: User = Depends(get_current_user), db=Depends(get_db)):
    return await catalogue_controller.update_registered_resource(db, project_id, resource_id, data)


@router.delete("/{resource_id}")
async def delete_registered_resource(project_id: str, resource_id: str, current_user: User = Depends(get_current_user), db=Depends(get_db)):
    return await catalogue_controller.delete_registered_resource(db, project_id, resource_id)
