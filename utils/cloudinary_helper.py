"""
Cloudinary media storage for recipe images.

Uploads block the request until Cloudinary answers. Deletes are best-effort:
callers use delete_image_quietly so a failed cleanup never fails the request.
"""
import logging
import os
import re
import time
from typing import Optional, Protocol

import cloudinary
import cloudinary.uploader
from dotenv import load_dotenv
from fastapi import HTTPException
from fastapi.concurrency import run_in_threadpool

load_dotenv()

logger = logging.getLogger(__name__)

MAX_IMAGE_BYTES = 10 * 1024 * 1024
ALLOWED_FORMATS = ["jpeg", "jpg", "png"]
ALLOWED_MIME_TYPES = {"image/jpeg", "image/jpg", "image/png"}

_VERSION_SEGMENT = re.compile(r"^v\d+$")


class MediaStore(Protocol):
    async def upload(self, data: bytes, filename: str = "") -> str:
        ...

    async def delete(self, url: str) -> bool:
        ...


def extract_public_id(image_url: str) -> Optional[str]:
    """
    Derive the Cloudinary public id from a delivery URL.

    https://res.cloudinary.com/demo/image/upload/v1712/Recipedia-Images/recipe-1.jpg
    -> Recipedia-Images/recipe-1
    """
    if not image_url:
        return None

    path = image_url.split("?", 1)[0]
    if "/upload/" in path:
        parts = [p for p in path.split("/upload/", 1)[1].split("/") if p]
        if parts and _VERSION_SEGMENT.match(parts[0]):
            parts = parts[1:]
    else:
        parts = [p for p in path.split("/") if p][-1:]
    if not parts:
        return None

    # strip the file extension from the last segment only
    parts[-1] = parts[-1].rsplit(".", 1)[0]
    public_id = "/".join(parts)
    return public_id or None


class CloudinaryMediaStore:
    """MediaStore backed by the Cloudinary SDK, configured from the environment"""

    def __init__(self, folder: Optional[str] = None):
        self.folder = folder or os.getenv("CLOUDINARY_FOLDER", "Recipedia-Images")
        self.enabled = self._configure()

    @staticmethod
    def _configure() -> bool:
        cloud_name = os.getenv("CLOUDINARY_CLOUD_NAME")
        api_key = os.getenv("CLOUDINARY_API_KEY")
        api_secret = os.getenv("CLOUDINARY_API_SECRET")

        if not all([cloud_name, api_key, api_secret]):
            logger.warning("⚠️ Cloudinary env variables missing. Upload/delete will NOT work.")
            return False

        cloudinary.config(
            cloud_name=cloud_name,
            api_key=api_key,
            api_secret=api_secret,
            secure=True
        )
        logger.info("Cloudinary configured successfully")
        return True

    async def upload(self, data: bytes, filename: str = "") -> str:
        if not self.enabled:
            raise HTTPException(status_code=503, detail="Image upload service not available")

        upload_result = await run_in_threadpool(
            cloudinary.uploader.upload,
            data,
            folder=self.folder,
            public_id=f"recipe-{int(time.time() * 1000)}",
            resource_type="image",
            allowed_formats=ALLOWED_FORMATS,
            transformation=[{"width": 800, "height": 600, "crop": "limit"}],
        )
        logger.info(f"Successfully uploaded image: {upload_result['secure_url']}")
        return upload_result["secure_url"]

    async def delete(self, url: str) -> bool:
        if not self.enabled:
            logger.warning(f"Cloudinary disabled, skipping delete of {url}")
            return False

        public_id = extract_public_id(url)
        if not public_id:
            logger.warning(f"Could not derive public id from image URL: {url}")
            return False

        result = await run_in_threadpool(cloudinary.uploader.destroy, public_id)
        return result.get("result") == "ok"


_media_store: Optional[CloudinaryMediaStore] = None


def get_media_store() -> MediaStore:
    """FastAPI dependency returning the shared media store (overridden in tests)"""
    global _media_store
    if _media_store is None:
        _media_store = CloudinaryMediaStore()
    return _media_store


async def upload_image(media: MediaStore, upload_file) -> str:
    """
    Validate and upload an attached image, returning its URL.
    Any failure aborts the calling operation.
    """
    content_type = (upload_file.content_type or "").lower()
    if content_type and content_type not in ALLOWED_MIME_TYPES:
        raise HTTPException(status_code=400, detail="Only JPEG and PNG images are allowed")

    data = await upload_file.read()
    if not data:
        raise HTTPException(status_code=400, detail="Uploaded image is empty")
    if len(data) > MAX_IMAGE_BYTES:
        raise HTTPException(status_code=413, detail="Image too large. Max size is 10MB.")

    try:
        return await media.upload(data, upload_file.filename or "")
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to upload image to cloud storage: {e}")
        raise HTTPException(status_code=500, detail="Image upload failed")


async def delete_image_quietly(media: MediaStore, image_url: Optional[str]) -> bool:
    """Best-effort delete, failures are logged and never raised"""
    if not image_url:
        return False
    try:
        deleted = await media.delete(image_url)
        if deleted:
            logger.info(f"Deleted image {image_url}")
        return deleted
    except Exception as e:
        logger.error(f"Failed deleting image {image_url}: {e}")
        return False
