from fastapi import APIRouter, HTTPException
import logging

from fxjournal.schemas.capture_schema import CaptureAllRequest, CaptureRequest
from fxjournal.services import tradingview_capture, upload_service
from fxjournal.services.cloudinary_service import CHART_FOLDER

logger = logging.getLogger(__name__)
router = APIRouter()


def _store_capture(result, pair: str, timeframe: str, user_id: str = None, trade_id: str = None) -> dict:
    uid = user_id or "capture"
    path = upload_service.save_bytes_to_temp(result.image, uid, f"{pair}_{timeframe}.png")
    stored = upload_service.store_upload(
        path,
        folder=f"{CHART_FOLDER}/{uid}",
        metadata={"pair": pair, "timeframe": timeframe, "userId": user_id, "tradeId": trade_id},
        tags=["tradingview", pair, timeframe],
    )
    return {
        "success": True,
        "imageUrl": stored["imageUrl"],
        "publicId": stored["publicId"],
        "fallback": stored["fallback"],
        "timeframe": timeframe,
    }


@router.post("/capture")
def capture_chart(request: CaptureRequest):
    logger.info(f"📸 Capturing {request.pair} {request.timeframe} chart")
    result = tradingview_capture.capture_tradingview_chart(request.pair, request.timeframe)
    if not result.success:
        raise HTTPException(status_code=500, detail=f"Chart capture failed: {result.error}")
    return _store_capture(result, request.pair, request.timeframe, request.userId, request.tradeId)


@router.post("/capture-all")
def capture_all(request: CaptureAllRequest):
    logger.info(f"📸 Capturing H4 and M15 charts for {request.pair}")
    captures = tradingview_capture.capture_all_timeframes(request.pair)

    results = {}
    for key, result in captures.items():
        timeframe = key.upper()
        if result.success:
            results[key] = _store_capture(result, request.pair, timeframe, request.userId, request.tradeId)
        else:
            results[key] = {"success": False, "timeframe": timeframe, "error": result.error}

    if not any(r["success"] for r in results.values()):
        raise HTTPException(status_code=500, detail="Chart capture failed for all timeframes")
    return {"success": True, "results": results}


@router.get("/debug")
def capture_debug():
    return {"success": True, "debug": tradingview_capture.get_debug_info()}
