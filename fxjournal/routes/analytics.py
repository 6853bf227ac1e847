from fastapi import APIRouter, Depends, Query
from typing import Optional

from fxjournal.database import get_storage
from fxjournal.routes.users import get_user_or_404, require_user_id
from fxjournal.services.analytics_service import cache_analytics, get_cached_analytics, serialize_stats
from fxjournal.storage.base import BaseStorage

router = APIRouter()


@router.get("/stats")
def get_stats(user_id: Optional[int] = Query(None, alias="userId"), storage: BaseStorage = Depends(get_storage)):
    """Win rate, profit factor, averages and extremes over closed trades"""
    require_user_id(user_id)
    get_user_or_404(storage, user_id)

    stats = get_cached_analytics(user_id, "stats")
    if stats is None:
        stats = serialize_stats(storage.get_trade_stats(user_id))
        cache_analytics(user_id, "stats", stats)
    return {"success": True, "stats": stats}


@router.get("/performance")
def get_performance(user_id: Optional[int] = Query(None, alias="userId"), storage: BaseStorage = Depends(get_storage)):
    """Breakdowns by pair, strategy, emotion, session and discipline flag"""
    require_user_id(user_id)
    get_user_or_404(storage, user_id)

    performance = get_cached_analytics(user_id, "performance")
    if performance is None:
        performance = storage.get_performance_data(user_id)
        cache_analytics(user_id, "performance", performance)
    return {"success": True, "performance": performance}


@router.get("/goals-progress")
def get_goals_progress(user_id: Optional[int] = Query(None, alias="userId"), storage: BaseStorage = Depends(get_storage)):
    require_user_id(user_id)
    get_user_or_404(storage, user_id)
    return {"success": True, "progress": storage.get_goals_progress(user_id)}
