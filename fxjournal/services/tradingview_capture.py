"""
TradingView chart screenshots through the Browserless screenshot API.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Any, List, Optional
from urllib.parse import urlencode
import logging
import os
import secrets
import time

import requests

from fxjournal import config
from fxjournal.services.forex_calculator import normalize_pair

logger = logging.getLogger(__name__)

TRADINGVIEW_CHART_URL = "https://www.tradingview.com/chart/"
TIMEFRAME_INTERVALS = {"H4": "240", "M15": "15"}
DEFAULT_WIDTH = 1600
DEFAULT_HEIGHT = 900
MIN_EXPECTED_IMAGE_BYTES = 1000
REQUEST_TIMEOUT = 60

HIDDEN_FEATURES = (
    "header_symbol_search,header_resolutions,header_chart_type,header_settings,"
    "header_indicators,header_compare,header_undo_redo,header_screenshot,"
    "header_fullscreen_button,left_toolbar,timeframes_toolbar"
)


class CaptureLogger:
    """Collects the steps of one capture session, optionally saved to LOG_DIR"""

    def __init__(self, session_id: str, pair: str, timeframe: str):
        self.session_id = session_id
        self.pair = pair
        self.timeframe = timeframe
        self.entries: List[str] = []
        self._start = time.monotonic()
        self.started_at = datetime.now(timezone.utc)
        self.log("SESSION_START", f"Capturing {pair} {timeframe}")

    def elapsed_ms(self) -> int:
        return int((time.monotonic() - self._start) * 1000)

    def log(self, step: str, message: str, is_error: bool = False):
        line = f"[{datetime.now(timezone.utc).isoformat()}] [+{self.elapsed_ms()}ms] {step}: {message}"
        self.entries.append(line)
        if is_error:
            logger.error(line)
        else:
            logger.info(line)

    def error(self, step: str, error) -> None:
        self.log(step, str(error), is_error=True)

    def save_to_file(self) -> Optional[str]:
        if not config.LOG_TRADINGVIEW:
            return None
        try:
            os.makedirs(config.LOG_DIR, exist_ok=True)
            path = os.path.join(config.LOG_DIR, f"tradingview-capture-{self.session_id}.log")
            content = "\n".join([
                "=== TradingView Capture Log ===",
                f"Session: {self.session_id}",
                f"Pair: {self.pair}",
                f"Timeframe: {self.timeframe}",
                f"Start Time: {self.started_at.isoformat()}",
                f"Total Duration: {self.elapsed_ms()}ms",
                "",
                *self.entries,
                "",
                "=== End of Log ===",
            ])
            with open(path, "w", encoding="utf-8") as f:
                f.write(content)
            self.log("LOG_SAVED", f"Log file saved: {path}")
            return path
        except OSError as e:
            logger.error(f"Failed to save capture log file: {e}")
            return None

    def summary(self) -> Dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "pair": self.pair,
            "timeframe": self.timeframe,
            "duration": self.elapsed_ms(),
            "totalSteps": len(self.entries),
            "logs": list(self.entries),
        }


@dataclass
class CaptureResult:
    success: bool
    image: Optional[bytes] = None
    error: Optional[str] = None
    log_summary: Dict[str, Any] = field(default_factory=dict)


def _session_id(*parts: str) -> str:
    return "_".join([*parts, str(int(time.time() * 1000)), secrets.token_hex(4)])


def build_tradingview_url(pair: str, timeframe: str) -> str:
    params = {
        "symbol": f"FX:{normalize_pair(pair)}",
        "interval": TIMEFRAME_INTERVALS.get(timeframe, "240"),
        "theme": "light",
        "style": "1",
        "timezone": "Etc/UTC",
        "toolbar": "0",
        "withdateranges": "0",
        "hideideas": "1",
        "hidevolume": "1",
        "disabled_features": f"[{HIDDEN_FEATURES}]",
        "range": "auto",
        "time": str(int(time.time())),
        "hide_side_toolbar": "1",
    }
    return f"{TRADINGVIEW_CHART_URL}?{urlencode(params)}"


def build_screenshot_payload(url: str, width: int = DEFAULT_WIDTH, height: int = DEFAULT_HEIGHT) -> Dict[str, Any]:
    return {
        "url": url,
        "options": {
            "type": "png",
            "fullPage": False,
            "clip": {"x": 50, "y": 30, "width": width - 100, "height": height - 80},
        },
        "gotoOptions": {"waitUntil": "networkidle2", "timeout": 30000},
        "viewport": {"width": width, "height": height},
    }


def capture_tradingview_chart(pair: str, timeframe: str = "H4",
                              width: int = DEFAULT_WIDTH, height: int = DEFAULT_HEIGHT) -> CaptureResult:
    pair = normalize_pair(pair)
    capture_log = CaptureLogger(_session_id(pair, timeframe), pair, timeframe)

    try:
        if not config.BROWSERLESS_TOKEN:
            raise RuntimeError("BROWSERLESS_TOKEN is not configured")

        url = build_tradingview_url(pair, timeframe)
        capture_log.log("URL_BUILT", url)

        response = requests.post(
            config.BROWSERLESS_URL,
            params={"token": config.BROWSERLESS_TOKEN},
            json=build_screenshot_payload(url, width, height),
            headers={"Cache-Control": "no-cache"},
            timeout=REQUEST_TIMEOUT,
        )
        capture_log.log("API_REQUEST_COMPLETE", f"HTTP {response.status_code} after {capture_log.elapsed_ms()}ms")

        if response.status_code != 200:
            raise RuntimeError(f"Browserless API error: {response.status_code} {response.reason}")

        image = response.content or b""
        capture_log.log("BUFFER_INFO", f"Buffer size: {len(image)} bytes")
        if not image:
            raise RuntimeError("Received empty image buffer")
        if len(image) < MIN_EXPECTED_IMAGE_BYTES:
            capture_log.error("SUSPICIOUSLY_SMALL", f"Image buffer is only {len(image)} bytes")

        capture_log.log("CAPTURE_SUCCESS", f"Captured in {capture_log.elapsed_ms()}ms")
        capture_log.save_to_file()
        return CaptureResult(success=True, image=image, log_summary=capture_log.summary())

    except (requests.RequestException, RuntimeError) as e:
        capture_log.error("CAPTURE_FAILED", e)
        capture_log.save_to_file()
        return CaptureResult(success=False, error=str(e), log_summary=capture_log.summary())


def capture_all_timeframes(pair: str) -> Dict[str, CaptureResult]:
    pair = normalize_pair(pair)
    batch_log = CaptureLogger(_session_id("batch", pair), pair, "H4+M15")

    h4 = capture_tradingview_chart(pair, "H4")
    m15 = capture_tradingview_chart(pair, "M15")

    success_count = int(h4.success) + int(m15.success)
    batch_log.log("BATCH_SUMMARY", f"{success_count}/2 captures succeeded")
    batch_log.save_to_file()
    return {"h4": h4, "m15": m15}


def get_debug_info() -> Dict[str, Any]:
    return {
        "logToFile": config.LOG_TRADINGVIEW,
        "logDirectory": config.LOG_DIR,
        "environment": config.APP_ENV,
        "browserlessConfigured": bool(config.BROWSERLESS_TOKEN),
        "browserlessUrl": config.BROWSERLESS_URL,
        "timeframes": list(TIMEFRAME_INTERVALS),
    }
