from fastapi import APIRouter, Depends, Header, HTTPException, Request
from fastapi.responses import JSONResponse
from typing import Optional
import logging

import requests

from fxjournal.services import twelvedata_service
from fxjournal.services.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

twelvedata_limiter = RateLimiter(
    requests=50,
    window_seconds=15 * 60,
    message="Too many requests from this IP, please try again after 15 minutes",
)

router = APIRouter(dependencies=[Depends(twelvedata_limiter)])


def _proxy(endpoint: str, request: Request, x_api_key: Optional[str]):
    params = dict(request.query_params)
    if not params.get("symbol"):
        raise HTTPException(status_code=400, detail="Symbol parameter is required")

    api_key = twelvedata_service.resolve_api_key(x_api_key)
    if not api_key:
        logger.error("TwelveData API key not found in request or environment variables")
        raise HTTPException(status_code=500, detail="API key not configured")

    try:
        return twelvedata_service.fetch(endpoint, params, api_key)
    except twelvedata_service.TwelveDataError as e:
        return JSONResponse(status_code=e.status_code, content=e.payload)
    except requests.RequestException as e:
        logger.error(f"Error proxying TwelveData request: {e}")
        raise HTTPException(status_code=502, detail="Error connecting to TwelveData API")


@router.get("/price")
def price(request: Request, x_api_key: Optional[str] = Header(None)):
    return _proxy("price", request, x_api_key)


@router.get("/time_series")
def time_series(request: Request, x_api_key: Optional[str] = Header(None)):
    return _proxy("time_series", request, x_api_key)
