"""
Shared test fixtures for the FX Journal test suite.
"""
from datetime import datetime

import mongomock
import pytest
from fastapi.testclient import TestClient

from fxjournal.config import TRADE_NOTIFY_DEBOUNCE_SECONDS
from fxjournal.database import reset_storage
from fxjournal.main import app
from fxjournal.routes.market_data import twelvedata_limiter
from fxjournal.services import analytics_service
from fxjournal.services.trade_update_service import trade_update_service
from fxjournal.storage.memory import MemStorage
from fxjournal.storage.mongo import MongoStorage


@pytest.fixture(autouse=True)
def clean_state():
    """Fresh caches, observers and rate limits for every test."""
    analytics_service.analytics_cache.clear()
    trade_update_service.reset()
    trade_update_service.debounce_seconds = 0
    twelvedata_limiter.reset()
    yield
    trade_update_service.reset()
    trade_update_service.debounce_seconds = TRADE_NOTIFY_DEBOUNCE_SECONDS


@pytest.fixture
def storage():
    """Process-wide MemStorage used by the app."""
    return reset_storage(MemStorage())


@pytest.fixture(params=["memory", "mongo"])
def any_storage(request):
    """Each storage backend, the Mongo one running on mongomock."""
    if request.param == "memory":
        return MemStorage()
    mongo = MongoStorage(mongomock.MongoClient().get_database("fxjournal_test"))
    mongo.ensure_indexes()
    return mongo


@pytest.fixture
def client(storage):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def user(storage):
    return storage.create_user({
        "username": "trader",
        "password": "secret123",
        "email": "trader@example.com",
        "initial_balance": 10000,
    })


def trade_payload(user_id, **overrides):
    """Open EURUSD buy: 50 pips risk, 100 pips target"""
    data = {
        "user_id": user_id,
        "pair": "EURUSD",
        "direction": "BUY",
        "entry_price": 1.1000,
        "stop_loss": 1.0950,
        "take_profit": 1.1100,
        "lot_size": 1.0,
        "entry_date": datetime(2024, 1, 2, 9, 0),
        "strategy": "Breakout",
    }
    data.update(overrides)
    return data


def closed_payload(user_id, profit_loss, **overrides):
    return trade_payload(
        user_id,
        close_date=datetime(2024, 1, 2, 15, 0),
        result="win" if profit_loss > 0 else "loss",
        profit_loss=profit_loss,
        **overrides,
    )


def trade_json(user_id, **overrides):
    data = trade_payload(user_id, **overrides)
    return {k: v.isoformat() if isinstance(v, datetime) else v for k, v in data.items()}
