from fastapi import HTTPException
from typing import Callable, List, Optional, Tuple, Any
import logging

from config import CATALOGUE_MAX_RETRIES
from core.reconciliation import signature
from models.project import RegisteredResource, RegisteredResourceCreate

logger = logging.getLogger(__name__)

# mutate(catalogue) -> (new_catalogue, changed, outcome)
CatalogueMutation = Callable[[List[RegisteredResource]], Tuple[List[RegisteredResource], bool, Any]]


def _version_filter(version: int):
    # Projects written before versioning have no catalogue_version field
    return {"$in": [0, None]} if version == 0 else version


async def load_catalogue(db, project_id: str) -> Optional[Tuple[List[RegisteredResource], int]]:
    doc = await db.projects.find_one(
        {"id": project_id}, {"_id": 0, "registered_resources": 1, "catalogue_version": 1}
    )
    if not doc:
        return None
    catalogue = [RegisteredResource(**r) for r in doc.get("registered_resources") or []]
    return catalogue, doc.get("catalogue_version") or 0


async def update_catalogue(db, project_id: str, mutate: CatalogueMutation) -> Optional[Tuple[List[RegisteredResource], Any]]:
    """Read-modify-write of a project's catalogue as a compare-and-swap on catalogue_version.

    mutate runs against a fresh read on every attempt. Returns (catalogue, outcome),
    or None when the project does not exist.
    """
    for attempt in range(1, CATALOGUE_MAX_RETRIES + 1):
        loaded = await load_catalogue(db, project_id)
        if loaded is None:
            return None
        catalogue, version = loaded
        new_catalogue, changed, outcome = mutate(catalogue)
        if not changed:
            return new_catalogue, outcome
        result = await db.projects.update_one(
            {"id": project_id, "catalogue_version": _version_filter(version)},
            {
                "$set": {"registered_resources": [r.model_dump() for r in new_catalogue]},
                "$inc": {"catalogue_version": 1},
            },
        )
        if result.matched_count == 1:
            return new_catalogue, outcome
        logger.warning(f"Catalogue of project {project_id} changed concurrently, retrying ({attempt}/{CATALOGUE_MAX_RETRIES})")
    raise HTTPException(status_code=409, detail="The resource register was modified concurrently. Please retry.")


# ── Explicit catalogue management ─────────────────────────

async def list_registered_resources(db, project_id: str) -> Optional[List[RegisteredResource]]:
    loaded = await load_catalogue(db, project_id)
    return loaded[0] if loaded else None


async def add_registered_resource(db, project_id: str, data: RegisteredResourceCreate) -> RegisteredResource:
    entry = RegisteredResource(**data.model_dump())

    def mutate(catalogue):
        if any(signature(r) == signature(entry) for r in catalogue):
            raise HTTPException(status_code=400, detail=f"'{entry.description}' is already in the resource register")
        return catalogue + [entry], True, entry

    updated = await update_catalogue(db, project_id, mutate)
    if updated is None:
        raise HTTPException(status_code=404, detail="Project not found")
    return updated[1]


async def update_registered_resource(db, project_id: str, resource_id: str, data: RegisteredResourceCreate) -> RegisteredResource:
    def mutate(catalogue):
        target = next((r for r in catalogue if r.id == resource_id), None)
        if target is None:
            raise HTTPException(status_code=404, detail="Registered resource not found")
        new_entry = RegisteredResource(id=resource_id, **data.model_dump())
        if any(r.id != resource_id and signature(r) == signature(new_entry) for r in catalogue):
            raise HTTPException(status_code=400, detail=f"'{new_entry.description}' is already in the resource register")
        if signature(target) == signature(new_entry):
            return catalogue, False, target
        return [new_entry if r.id == resource_id else r for r in catalogue], True, new_entry

    updated = await update_catalogue(db, project_id, mutate)
    if updated is None:
        raise HTTPException(status_code=404, detail="Project not found")
    return updated[1]


async def delete_registered_resource(db, project_id: str, resource_id: str) -> dict:
    """Removes the entry only; daily logs keep their (now dangling) back-references."""
    def mutate(catalogue):
        remaining = [r for r in catalogue if r.id != resource_id]
        if len(remaining) == len(catalogue):
            raise HTTPException(status_code=404, detail="Registered resource not found")
        return remaining, True, None

    updated = await update_catalogue(db, project_id, mutate)
    if updated is None:
        raise HTTPException(status_code=404, detail="Project not found")
    return {"message": "Registered resource deleted"}
