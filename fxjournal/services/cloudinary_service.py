"""
Cloudinary image storage: upload, delete, and URL helpers for chart images.
"""
from typing import Dict, Any, List, Optional
import logging
import re

import cloudinary
import cloudinary.api
import cloudinary.uploader

from fxjournal import config

logger = logging.getLogger(__name__)

CHART_FOLDER = "fxjournal/charts"

_VERSION_RE = re.compile(r"^v\d+$")
# c_fill,w_200,h_200 style transformation segments, built from Cloudinary parameter keys
_TRANSFORMATION_KEYS = "ar|b|bo|c|co|dpr|e|f|fl|g|h|l|o|q|r|t|w|x|y|z"
_TRANSFORMATION_RE = re.compile(rf"^({_TRANSFORMATION_KEYS})_[^/,]+(,({_TRANSFORMATION_KEYS})_[^/,]+)*$")


def configure():
    cloudinary.config(
        cloud_name=config.CLOUDINARY_CLOUD_NAME,
        api_key=config.CLOUDINARY_API_KEY,
        api_secret=config.CLOUDINARY_API_SECRET,
        secure=True,
    )


def is_configured() -> bool:
    return all([config.CLOUDINARY_CLOUD_NAME, config.CLOUDINARY_API_KEY, config.CLOUDINARY_API_SECRET])


configure()


def upload_image(
    file_path: str,
    folder: str = CHART_FOLDER,
    metadata: Optional[Dict[str, Any]] = None,
    public_id: Optional[str] = None,
    tags: Optional[List[str]] = None,
) -> Dict[str, Any]:
    """
    Upload a local image file to Cloudinary.

    Args:
        file_path: Path of the file to upload
        folder: Destination folder in Cloudinary
        metadata: Key/value context stored with the asset
        public_id: Optional explicit public id
        tags: Optional tags

    Returns:
        Dict with success, imageUrl, publicId and the asset details.
        Errors from the SDK are logged and re-raised.
    """
    options = {
        "folder": folder,
        "resource_type": "image",
        "use_filename": True,
        "unique_filename": True,
        "overwrite": True,
        "context": {k: str(v) for k, v in (metadata or {}).items() if v is not None},
        "timeout": config.CLOUDINARY_UPLOAD_TIMEOUT,
    }
    if public_id:
        options["public_id"] = public_id
    if tags:
        options["tags"] = tags

    try:
        logger.info(f"Uploading file to Cloudinary: {file_path}")
        result = cloudinary.uploader.upload(file_path, **options)
        logger.info(f"✅ Uploaded to Cloudinary: {result.get('public_id')}")
    except Exception as e:
        logger.error(f"❌ Error uploading to Cloudinary: {e}")
        raise

    return {
        "success": True,
        "imageUrl": result.get("secure_url"),
        "publicId": result.get("public_id"),
        "format": result.get("format"),
        "width": result.get("width"),
        "height": result.get("height"),
        "bytes": result.get("bytes"),
        "createdAt": result.get("created_at"),
        "tags": result.get("tags"),
    }


def delete_image(public_id: str) -> Dict[str, Any]:
    try:
        logger.info(f"Deleting image from Cloudinary: {public_id}")
        result = cloudinary.uploader.destroy(public_id)
    except Exception as e:
        logger.error(f"❌ Error deleting from Cloudinary: {e}")
        raise

    logger.info(f"Image delete result: {result.get('result')}")
    return {"success": result.get("result") == "ok", "result": result.get("result")}


def _split_upload_url(url: str):
    if not url or "cloudinary.com" not in url:
        return None
    parts = url.split("/upload/")
    if len(parts) != 2:
        return None
    return parts


def transform_image_url(original_url: str, transformations: str) -> str:
    """Insert a transformation string after /upload/. Non-Cloudinary URLs come back unchanged."""
    parts = _split_upload_url(original_url)
    if not parts:
        return original_url
    return f"{parts[0]}/upload/{transformations}/{parts[1]}"


def generate_thumbnail_url(original_url: str, width: int = 200, height: int = 200) -> str:
    return transform_image_url(original_url, f"c_fill,w_{width},h_{height}")


def get_public_id_from_url(url: str) -> Optional[str]:
    """
    https://res.cloudinary.com/<cloud>/image/upload/c_fill,w_200/v123/folder/name.png
    -> folder/name
    """
    parts = _split_upload_url(url)
    if not parts:
        return None

    segments = [s for s in parts[1].split("?")[0].split("/") if s]
    versions = [i for i, s in enumerate(segments[:-1]) if _VERSION_RE.match(s)]
    if versions:
        # The public id starts right after the version
        segments = segments[versions[0] + 1:]
    else:
        while len(segments) > 1 and _TRANSFORMATION_RE.match(segments[0]):
            segments = segments[1:]
    if not segments:
        return None

    public_id = "/".join(segments)
    if "." in segments[-1]:
        public_id = public_id[:public_id.rfind(".")]
    return public_id


def check_connection() -> Dict[str, Any]:
    try:
        result = cloudinary.api.ping()
        return {"connected": True, "status": result.get("status")}
    except Exception as e:
        logger.error(f"Cloudinary connection error: {e}")
        return {"connected": False, "error": str(e)}
