"""
Deletes attachment blobs that no annotation references any more.
Run: python sweep_attachments.py [--dry-run] [--project PROJECT_ID]
"""
import argparse
import asyncio
import logging

from database import db, client
from core.storage import get_blob_store

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger("sweep_attachments")


async def referenced_urls(database, project_id: str) -> set:
    logs = await database.daily_logs.find(
        {"project_id": project_id}, {"_id": 0, "annotations": 1}
    ).to_list(None)
    return {
        attachment["url"]
        for log in logs
        for annotation in log.get("annotations") or []
        for attachment in annotation.get("attachments") or []
    }


async def sweep_project(database, blob_store, project_id: str, dry_run: bool = False) -> list:
    """Returns the URLs of the orphaned blobs found (and deleted unless dry_run)."""
    stored = await blob_store.list_urls(f"projects/{project_id}/")
    referenced = await referenced_urls(database, project_id)
    orphans = [url for url in stored if url not in referenced]
    for url in orphans:
        if dry_run:
            logger.info(f"[dry-run] would delete {url}")
            continue
        try:
            await blob_store.delete(url)
            logger.info(f"Deleted {url}")
        except Exception as e:
            logger.error(f"Failed to delete {url}: {e}")
    return orphans


async def sweep(project_id=None, dry_run=False):
    blob_store = get_blob_store()
    query = {"id": project_id} if project_id else {}
    projects = await db.projects.find(query, {"_id": 0, "id": 1}).to_list(None)
    total = 0
    for project in projects:
        total += len(await sweep_project(db, blob_store, project["id"], dry_run))
    logger.info(f"{total} orphaned attachment(s) across {len(projects)} project(s)")
    client.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--dry-run", action="store_true")
    parser.add_argument("--project")
    args = parser.parse_args()
    asyncio.run(sweep(args.project, args.dry_run))
