from typing import Dict, Any, Optional
import logging

import requests

from fxjournal import config

logger = logging.getLogger(__name__)

SUPPORTED_ENDPOINTS = ("price", "time_series")
FOREX_DECIMALS = 4


class TwelveDataError(Exception):
    def __init__(self, status_code: int, payload: Any):
        self.status_code = status_code
        self.payload = payload
        super().__init__(f"TwelveData returned {status_code}")


def resolve_api_key(header_key: Optional[str]) -> Optional[str]:
    """Key from the X-API-KEY header wins over the server's key"""
    return header_key or config.TWELVEDATA_API_KEY


def fetch(endpoint: str, params: Dict[str, Any], api_key: str) -> Any:
    """
    Call a TwelveData endpoint with the caller's query params plus apikey and dp=4.
    Non-2xx responses raise TwelveDataError carrying the upstream body.
    """
    if endpoint not in SUPPORTED_ENDPOINTS:
        raise ValueError(f"Unsupported TwelveData endpoint: {endpoint}")

    query = {**params, "apikey": api_key, "dp": FOREX_DECIMALS}
    logger.info(f"Proxying TwelveData request: {endpoint} for symbol {params.get('symbol')}")

    response = requests.get(
        f"{config.TWELVEDATA_BASE_URL}/{endpoint}",
        params=query,
        headers={"Accept": "application/json"},
        timeout=10,
    )
    if not response.ok:
        try:
            payload = response.json()
        except ValueError:
            payload = {"message": response.text}
        raise TwelveDataError(response.status_code, payload)
    return response.json()
