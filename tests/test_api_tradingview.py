"""
Tests for TradingView chart capture through Browserless.
"""
from urllib.parse import parse_qs, urlparse

import pytest
import requests

from fxjournal import config
from fxjournal.services import cloudinary_service, tradingview_capture

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x01" * 4096


class FakeResponse:
    def __init__(self, status_code=200, content=PNG_BYTES, reason="OK"):
        self.status_code = status_code
        self.content = content
        self.reason = reason


@pytest.fixture(autouse=True)
def capture_env(monkeypatch, tmp_path):
    monkeypatch.setattr(config, "BROWSERLESS_TOKEN", "test-token")
    monkeypatch.setattr(config, "UPLOAD_TEMP_DIR", str(tmp_path / "uploads"))
    monkeypatch.setattr(config, "LOG_TRADINGVIEW", False)
    monkeypatch.setattr(cloudinary_service, "is_configured", lambda: False)


@pytest.fixture
def browserless(monkeypatch):
    calls = []
    responses = {}

    def fake_post(url, params=None, json=None, headers=None, timeout=None):
        calls.append({"url": url, "params": params, "json": json})
        interval = parse_qs(urlparse(json["url"]).query)["interval"][0]
        return responses.get(interval, FakeResponse())

    monkeypatch.setattr(requests, "post", fake_post)
    return calls, responses


class TestCaptureService:
    def test_tradingview_url(self):
        url = tradingview_capture.build_tradingview_url("eur/usd", "M15")
        query = parse_qs(urlparse(url).query)
        assert query["symbol"] == ["FX:EURUSD"]
        assert query["interval"] == ["15"]
        assert query["theme"] == ["light"]

    def test_screenshot_payload(self):
        payload = tradingview_capture.build_screenshot_payload("https://example.com")
        assert payload["viewport"] == {"width": 1600, "height": 900}
        assert payload["options"]["clip"] == {"x": 50, "y": 30, "width": 1500, "height": 820}

    def test_capture_success(self, browserless):
        calls, _ = browserless
        result = tradingview_capture.capture_tradingview_chart("GBPUSD", "H4")
        assert result.success is True
        assert result.image == PNG_BYTES
        assert calls[0]["params"] == {"token": "test-token"}
        assert result.log_summary["pair"] == "GBPUSD"
        assert result.log_summary["totalSteps"] > 0

    def test_missing_token(self, monkeypatch, browserless):
        monkeypatch.setattr(config, "BROWSERLESS_TOKEN", "")
        result = tradingview_capture.capture_tradingview_chart("GBPUSD")
        assert result.success is False
        assert "BROWSERLESS_TOKEN" in result.error
        assert browserless[0] == []

    def test_upstream_error(self, browserless):
        _, responses = browserless
        responses["240"] = FakeResponse(status_code=503, content=b"", reason="Service Unavailable")
        result = tradingview_capture.capture_tradingview_chart("GBPUSD", "H4")
        assert result.success is False
        assert "503" in result.error

    def test_empty_image(self, browserless):
        _, responses = browserless
        responses["240"] = FakeResponse(content=b"")
        result = tradingview_capture.capture_tradingview_chart("GBPUSD", "H4")
        assert result.error == "Received empty image buffer"

    def test_connection_error(self, monkeypatch):
        def fail(*args, **kwargs):
            raise requests.ConnectionError("no route")

        monkeypatch.setattr(requests, "post", fail)
        result = tradingview_capture.capture_tradingview_chart("GBPUSD")
        assert result.success is False
        assert "no route" in result.error

    def test_log_file(self, monkeypatch, tmp_path, browserless):
        monkeypatch.setattr(config, "LOG_TRADINGVIEW", True)
        monkeypatch.setattr(config, "LOG_DIR", str(tmp_path / "logs"))
        tradingview_capture.capture_tradingview_chart("GBPUSD", "M15")
        files = list((tmp_path / "logs").iterdir())
        assert len(files) == 1
        assert "Pair: GBPUSD" in files[0].read_text()


class TestCaptureRoutes:
    def test_capture(self, client, browserless):
        response = client.post("/api/tradingview/capture", json={"pair": "EUR/USD", "timeframe": "M15", "userId": "u1"})
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["timeframe"] == "M15"
        assert body["imageUrl"].startswith("/uploads/u1-")
        assert body["fallback"] is True

    def test_capture_failure(self, client, browserless):
        _, responses = browserless
        responses["240"] = FakeResponse(status_code=500, content=b"", reason="Server Error")
        response = client.post("/api/tradingview/capture", json={"pair": "EURUSD"})
        assert response.status_code == 500
        assert response.json()["message"].startswith("Chart capture failed")

    def test_invalid_timeframe(self, client):
        response = client.post("/api/tradingview/capture", json={"pair": "EURUSD", "timeframe": "D1"})
        assert response.status_code == 400

    def test_capture_all(self, client, browserless):
        body = client.post("/api/tradingview/capture-all", json={"pair": "EURUSD"}).json()
        assert body["results"]["h4"]["success"] is True
        assert body["results"]["m15"]["timeframe"] == "M15"

    def test_capture_all_partial_failure(self, client, browserless):
        _, responses = browserless
        responses["15"] = FakeResponse(status_code=502, content=b"", reason="Bad Gateway")
        response = client.post("/api/tradingview/capture-all", json={"pair": "EURUSD"})
        assert response.status_code == 200
        results = response.json()["results"]
        assert results["h4"]["success"] is True
        assert results["m15"]["success"] is False
        assert "502" in results["m15"]["error"]

    def test_capture_all_failure(self, client, monkeypatch):
        monkeypatch.setattr(config, "BROWSERLESS_TOKEN", "")
        response = client.post("/api/tradingview/capture-all", json={"pair": "EURUSD"})
        assert response.status_code == 500

    def test_debug(self, client):
        debug = client.get("/api/tradingview/debug").json()["debug"]
        assert debug["browserlessConfigured"] is True
        assert debug["timeframes"] == ["H4", "M15"]
