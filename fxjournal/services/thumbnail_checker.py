import logging

import requests

logger = logging.getLogger(__name__)


def check_thumbnail(url: str) -> bool:
    """True when a HEAD request to the URL answers 200 within 5 seconds"""
    if not url:
        logger.info("Empty thumbnail URL, nothing to check")
        return False

    try:
        response = requests.head(url, timeout=5, allow_redirects=True)
    except requests.RequestException as e:
        logger.info(f"Thumbnail check failed for {url}: {e}")
        return False

    if response.status_code != 200:
        logger.info(f"Thumbnail not accessible ({response.status_code}): {url}")
        return False
    return True
