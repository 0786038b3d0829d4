import re
import logging
from urllib.parse import unquote
from datetime import date, datetime, timezone
from pathlib import Path
from typing import List, Optional, Tuple

import cloudinary
import cloudinary.api
import cloudinary.uploader
from fastapi.concurrency import run_in_threadpool

from config import (
    CLOUDINARY_CLOUD_NAME, CLOUDINARY_API_KEY, CLOUDINARY_API_SECRET,
    IMAGE_EXTENSIONS, VIDEO_EXTENSIONS,
)
from core.timestamps import log_id_for

logger = logging.getLogger(__name__)

_URL_PATTERN = re.compile(r"/(image|video|raw)/upload/(?:v\d+/)?(?P<public_id>.+)$")


class BlobStoreError(Exception):
    pass


def resource_type_for(filename: str) -> str:
    ext = Path(filename).suffix.lower()
    if ext in IMAGE_EXTENSIONS:
        return "image"
    if ext in VIDEO_EXTENSIONS:
        return "video"
    return "raw"


def attachment_path(project_id: str, log_date: date, uid: str, filename: str, now: Optional[datetime] = None) -> str:
    """projects/{project_id}/{YYYY-MM-DD}/{epoch-ms}-{uid}-{filename}"""
    now = now or datetime.now(timezone.utc)
    epoch_ms = int(now.timestamp() * 1000)
    return f"projects/{project_id}/{log_id_for(log_date)}/{epoch_ms}-{uid}-{filename}"


def public_id_from_url(url: str) -> Tuple[str, str]:
    """Extract (public_id, resource_type) from a Cloudinary delivery URL."""
    match = _URL_PATTERN.search(url.split("?", 1)[0])
    if not match:
        raise BlobStoreError(f"Not a Cloudinary URL: {url}")
    resource_type = match.group(1)
    # secure_url percent-encodes the public id
    public_id = unquote(match.group("public_id"))
    if resource_type != "raw":
        # image and video public ids are delivered with the format appended
        public_id = public_id.rsplit(".", 1)[0]
    return public_id, resource_type


class CloudinaryBlobStore:
    def __init__(self, cloud_name: str, api_key: str, api_secret: str):
        if not cloud_name:
            raise BlobStoreError("Cloudinary is not configured. Set CLOUDINARY_CLOUD_NAME, CLOUDINARY_API_KEY and CLOUDINARY_API_SECRET.")
        cloudinary.config(cloud_name=cloud_name, api_key=api_key, api_secret=api_secret, secure=True)

    async def upload(self, path: str, content: bytes, filename: str) -> str:
        resource_type = resource_type_for(filename)
        public_id = path if resource_type == "raw" else path.rsplit(".", 1)[0]
        result = await run_in_threadpool(
            cloudinary.uploader.upload, content, public_id=public_id, resource_type=resource_type
        )
        return result["secure_url"]

    async def delete(self, url: str) -> None:
        public_id, resource_type = public_id_from_url(url)
        result = await run_in_threadpool(cloudinary.uploader.destroy, public_id, resource_type=resource_type)
        outcome = result.get("result")
        if outcome == "not found":
            logger.warning(f"Blob already gone: {url}")
        elif outcome != "ok":
            raise BlobStoreError(f"Cloudinary refused to delete {public_id}: {outcome}")

    async def list_urls(self, prefix: str) -> List[str]:
        urls = []
        for resource_type in ("image", "video", "raw"):
            next_cursor = None
            while True:
                kwargs = {"type": "upload", "prefix": prefix, "resource_type": resource_type, "max_results": 500}
                if next_cursor:
                    kwargs["next_cursor"] = next_cursor
                page = await run_in_threadpool(cloudinary.api.resources, **kwargs)
                urls.extend(r["secure_url"] for r in page.get("resources", []))
                next_cursor = page.get("next_cursor")
                if not next_cursor:
                    break
        return urls


_blob_store: Optional[CloudinaryBlobStore] = None


def get_blob_store() -> CloudinaryBlobStore:
    global _blob_store
    if _blob_store is None:
        _blob_store = CloudinaryBlobStore(CLOUDINARY_CLOUD_NAME, CLOUDINARY_API_KEY, CLOUDINARY_API_SECRET)
    return _blob_store
