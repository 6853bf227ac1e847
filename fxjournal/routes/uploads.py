from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from typing import Optional
import logging

from fxjournal.database import get_storage
from fxjournal.routes.trades import apply_trade_update, get_trade_or_404
from fxjournal.schemas.capture_schema import ImageDeleteRequest
from fxjournal.schemas.trade_schema import IMAGE_FIELDS
from fxjournal.services import cloudinary_service, upload_service
from fxjournal.services.thumbnail_checker import check_thumbnail
from fxjournal.storage.base import BaseStorage

logger = logging.getLogger(__name__)
router = APIRouter()


def _upload(file: UploadFile, uid: str, metadata: dict) -> dict:
    path = upload_service.save_upload_to_temp(file, uid)
    return upload_service.store_upload(
        path,
        folder=f"{cloudinary_service.CHART_FOLDER}/{uid}",
        metadata=metadata,
        tags=["chart", metadata.get("imageType") or "chart"],
    )


@router.post("/upload/chart")
def upload_chart(
    file: UploadFile = File(...),
    userId: Optional[str] = Form(None),
    tradeId: Optional[str] = Form(None),
    imageType: Optional[str] = Form(None),
    user: dict = Depends(upload_service.verify_firebase_token),
):
    uid = user.get("uid") or userId or "anonymous"
    stored = _upload(file, uid, {"userId": uid, "tradeId": tradeId, "imageType": imageType})
    return {
        "success": True,
        "imageUrl": stored["imageUrl"],
        "publicId": stored["publicId"],
        "fallback": stored["fallback"],
    }


@router.post("/trades/upload")
def upload_trade_image(
    file: UploadFile = File(...),
    tradeId: int = Form(...),
    imageType: str = Form(...),
    user: dict = Depends(upload_service.verify_firebase_token),
    storage: BaseStorage = Depends(get_storage),
):
    """Upload a chart image and store its URL on the trade's image field"""
    if imageType not in IMAGE_FIELDS:
        raise HTTPException(status_code=400, detail=f"imageType must be one of: {', '.join(IMAGE_FIELDS)}")
    get_trade_or_404(storage, tradeId)

    uid = user.get("uid") or "anonymous"
    stored = _upload(file, uid, {"userId": uid, "tradeId": tradeId, "imageType": imageType})
    trade = apply_trade_update(storage, tradeId, {imageType: stored["imageUrl"]})
    logger.info(f"Stored {imageType} for trade {tradeId}: {stored['imageUrl']}")

    return {
        "success": True,
        "imageUrl": stored["imageUrl"],
        "publicId": stored["publicId"],
        "fallback": stored["fallback"],
        "trade": trade,
    }


@router.get("/thumbnail")
def get_thumbnail(
    url: Optional[str] = None,
    width: int = Query(200, gt=0),
    height: int = Query(200, gt=0),
):
    if not url:
        raise HTTPException(status_code=400, detail="url is required")
    thumbnail_url = cloudinary_service.generate_thumbnail_url(url, width, height)
    return {
        "success": True,
        "thumbnailUrl": thumbnail_url,
        "accessible": check_thumbnail(thumbnail_url),
    }


@router.post("/images/delete")
def delete_image(request: ImageDeleteRequest):
    public_id = request.publicId or cloudinary_service.get_public_id_from_url(request.imageUrl)
    if not public_id:
        raise HTTPException(status_code=400, detail="publicId or a Cloudinary imageUrl is required")

    result = cloudinary_service.delete_image(public_id)
    return {"success": result["success"], "result": result["result"], "publicId": public_id}


@router.get("/cloudinary/status")
def cloudinary_status():
    status = cloudinary_service.check_connection()
    return {"success": status["connected"], "configured": cloudinary_service.is_configured(), **status}
