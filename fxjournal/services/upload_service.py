"""
Multipart image uploads: temp-file storage, Firebase auth, and the
Cloudinary upload with a local fallback.
"""
from typing import Dict, Any, List, Optional
import logging
import os
import re
import secrets
import string
import time

from fastapi import Form, Header, HTTPException, UploadFile

from fxjournal import config
from fxjournal.services import cloudinary_service, firebase_admin_service

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024
UPLOADS_URL_PREFIX = "/uploads"

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9\-_.]")
_RANDOM_ALPHABET = string.ascii_lowercase + string.digits


def ensure_temp_dir() -> str:
    os.makedirs(config.UPLOAD_TEMP_DIR, exist_ok=True)
    return config.UPLOAD_TEMP_DIR


def sanitize_filename(filename: str) -> str:
    return _UNSAFE_CHARS.sub("_", filename or "upload")


def build_temp_filename(uid: str, original_name: str) -> str:
    """{uid}-{timestamp}-{random}-{safe name}"""
    random_part = "".join(secrets.choice(_RANDOM_ALPHABET) for _ in range(13))
    safe_uid = sanitize_filename(str(uid))
    return f"{safe_uid}-{int(time.time() * 1000)}-{random_part}-{sanitize_filename(original_name)}"


def verify_firebase_token(
    authorization: Optional[str] = Header(None),
    userId: Optional[str] = Form(None),
) -> Dict[str, Any]:
    """
    FastAPI dependency for upload routes.

    In development the token check is skipped and the uid comes from the
    `userId` form field (or `anonymous-dev`). Otherwise a Firebase ID token
    is required as `Authorization: Bearer <token>`.
    """
    if config.IS_DEVELOPMENT:
        logger.info("DEV MODE: Skipping Firebase auth token verification")
        return {"uid": userId or "anonymous-dev"}

    if not authorization or not authorization.startswith("Bearer "):
        logger.warning("Unauthorized upload request: No token provided")
        raise HTTPException(status_code=401, detail="Unauthorized: No token provided")

    id_token = authorization.split("Bearer ", 1)[1].strip()
    try:
        decoded = firebase_admin_service.verify_id_token(id_token)
    except Exception as e:
        logger.warning(f"Firebase token verification failed: {e}")
        raise HTTPException(status_code=401, detail="Unauthorized: Invalid token")

    logger.info(f"Firebase token verified for user: {decoded.get('uid')}")
    return decoded


def save_upload_to_temp(file: UploadFile, uid: str) -> str:
    """Write an uploaded image to the temp dir and return its path"""
    content_type = file.content_type or ""
    if not content_type.startswith("image/"):
        logger.warning(f"Rejected upload {file.filename}: not an image ({content_type})")
        raise HTTPException(status_code=400, detail="Only image files are allowed!")

    path = os.path.join(ensure_temp_dir(), build_temp_filename(uid, file.filename))
    size = 0
    with open(path, "wb") as out:
        while True:
            chunk = file.file.read(CHUNK_SIZE)
            if not chunk:
                break
            size += len(chunk)
            if size > config.MAX_UPLOAD_BYTES:
                out.close()
                remove_temp_file(path)
                raise HTTPException(status_code=413, detail="File too large. Maximum size is 5MB")
            out.write(chunk)

    if size == 0:
        remove_temp_file(path)
        raise HTTPException(status_code=400, detail="No file uploaded")

    logger.info(f"Saved upload {file.filename} ({size} bytes) to {path}")
    return path


def save_bytes_to_temp(data: bytes, uid: str, filename: str) -> str:
    path = os.path.join(ensure_temp_dir(), build_temp_filename(uid, filename))
    with open(path, "wb") as out:
        out.write(data)
    return path


def remove_temp_file(path: str):
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"Could not delete temp file {path}: {e}")


def local_url(path: str) -> str:
    return f"{UPLOADS_URL_PREFIX}/{os.path.basename(path)}"


def store_upload(
    path: str,
    folder: str = cloudinary_service.CHART_FOLDER,
    metadata: Optional[Dict[str, Any]] = None,
    tags: Optional[List[str]] = None,
) -> Dict[str, Any]:
    """
    Upload the temp file to Cloudinary and delete it. When Cloudinary is not
    configured or the upload fails, keep the file and serve it from /uploads.
    """
    if cloudinary_service.is_configured():
        try:
            result = cloudinary_service.upload_image(path, folder, metadata, tags=tags)
            remove_temp_file(path)
            return {**result, "fallback": False}
        except Exception as e:
            logger.error(f"Cloudinary upload failed, serving local file instead: {e}")
    else:
        logger.warning("Cloudinary is not configured, serving local file")

    return {
        "success": True,
        "imageUrl": local_url(path),
        "publicId": None,
        "fallback": True,
    }
