from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Optional

from fxjournal.database import get_storage
from fxjournal.routes.users import get_user_or_404, require_user_id
from fxjournal.schemas.strategy_schema import DefaultStrategiesRequest, StrategyCreate, StrategyUpdate
from fxjournal.storage.base import BaseStorage

router = APIRouter()


def get_strategy_or_404(storage: BaseStorage, strategy_id: int) -> dict:
    strategy = storage.get_strategy_by_id(strategy_id)
    if not strategy:
        raise HTTPException(status_code=404, detail="Strategy not found")
    return strategy


@router.get("")
def list_strategies(user_id: Optional[int] = Query(None, alias="userId"), storage: BaseStorage = Depends(get_storage)):
    require_user_id(user_id)
    return {"success": True, "strategies": storage.get_strategies_by_user_id(user_id)}


@router.post("", status_code=201)
def create_strategy(strategy: StrategyCreate, storage: BaseStorage = Depends(get_storage)):
    get_user_or_404(storage, strategy.user_id)
    return {"success": True, "strategy": storage.create_strategy(strategy.model_dump())}


@router.post("/defaults")
def create_default_strategies(request: DefaultStrategiesRequest, storage: BaseStorage = Depends(get_storage)):
    """Seed the template strategies for a user who has none"""
    get_user_or_404(storage, request.user_id)
    created = storage.create_default_strategies_if_needed(request.user_id)
    return {"success": True, "created": len(created), "strategies": storage.get_strategies_by_user_id(request.user_id)}


@router.get("/{strategy_id}")
def get_strategy(strategy_id: int, storage: BaseStorage = Depends(get_storage)):
    return {"success": True, "strategy": get_strategy_or_404(storage, strategy_id)}


@router.put("/{strategy_id}")
def update_strategy(strategy_id: int, strategy_update: StrategyUpdate, storage: BaseStorage = Depends(get_storage)):
    get_strategy_or_404(storage, strategy_id)
    updated = storage.update_strategy(strategy_id, strategy_update.model_dump(exclude_unset=True))
    return {"success": True, "strategy": updated}


@router.delete("/{strategy_id}")
def delete_strategy(strategy_id: int, storage: BaseStorage = Depends(get_storage)):
    get_strategy_or_404(storage, strategy_id)
    storage.delete_strategy(strategy_id)
    return {"success": True, "message": "Strategy deleted successfully"}
