from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from datetime import datetime
from typing import Optional
import logging

from fxjournal.database import get_storage
from fxjournal.routes.users import get_user_or_404, require_user_id
from fxjournal.schemas.trade_schema import TradeCreate, TradeUpdate, TradeClose
from fxjournal.services.analytics_service import is_closed_trade
from fxjournal.services.export_service import export_filename, export_trades_csv
from fxjournal.services.trade_update_service import trade_update_service
from fxjournal.storage.base import BaseStorage

logger = logging.getLogger(__name__)
router = APIRouter()


def get_trade_or_404(storage: BaseStorage, trade_id: int) -> dict:
    trade = storage.get_trade_by_id(trade_id)
    if not trade:
        raise HTTPException(status_code=404, detail="Trade not found")
    return trade


def apply_trade_update(storage: BaseStorage, trade_id: int, changes: dict) -> dict:
    """Update a trade and broadcast it as closed or updated"""
    before = get_trade_or_404(storage, trade_id)
    updated = storage.update_trade(trade_id, changes)

    if is_closed_trade(updated) and not is_closed_trade(before):
        logger.info(f"Trade {trade_id} closed with P/L {updated.get('profit_loss')}")
        trade_update_service.notify_trade_closed(updated["user_id"], trade_id)
    else:
        trade_update_service.notify_trade_updated(updated["user_id"], trade_id)
    return updated


@router.get("")
def list_trades(user_id: Optional[int] = Query(None, alias="userId"), storage: BaseStorage = Depends(get_storage)):
    require_user_id(user_id)
    return {"success": True, "trades": storage.get_trades_by_user_id(user_id)}


@router.post("", status_code=201)
def create_trade(trade: TradeCreate, storage: BaseStorage = Depends(get_storage)):
    get_user_or_404(storage, trade.user_id)
    new_trade = storage.create_trade(trade.model_dump())
    logger.info(f"✅ Created trade {new_trade['id']} ({new_trade['pair']} {new_trade['direction']}) for user {trade.user_id}")
    trade_update_service.notify_trade_created(new_trade["user_id"], new_trade["id"])
    return {"success": True, "trade": new_trade}


@router.get("/export")
def export_trades(user_id: Optional[int] = Query(None, alias="userId"), storage: BaseStorage = Depends(get_storage)):
    require_user_id(user_id)
    get_user_or_404(storage, user_id)
    trades = storage.get_trades_by_user_id(user_id)
    return Response(
        content=export_trades_csv(trades),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{export_filename()}"'},
    )


@router.get("/{trade_id}")
def get_trade(trade_id: int, storage: BaseStorage = Depends(get_storage)):
    return {"success": True, "trade": get_trade_or_404(storage, trade_id)}


@router.put("/{trade_id}")
def update_trade(trade_id: int, trade_update: TradeUpdate, storage: BaseStorage = Depends(get_storage)):
    updated = apply_trade_update(storage, trade_id, trade_update.model_dump(exclude_unset=True))
    return {"success": True, "trade": updated}


@router.post("/{trade_id}/close")
def close_trade(trade_id: int, trade_close: TradeClose, storage: BaseStorage = Depends(get_storage)):
    trade = get_trade_or_404(storage, trade_id)
    if is_closed_trade(trade):
        raise HTTPException(status_code=400, detail="Trade is already closed")

    changes = trade_close.model_dump(exclude_none=True)
    changes.setdefault("close_date", datetime.now())
    updated = apply_trade_update(storage, trade_id, changes)
    return {"success": True, "trade": updated}


@router.delete("/{trade_id}")
def delete_trade(trade_id: int, storage: BaseStorage = Depends(get_storage)):
    trade = get_trade_or_404(storage, trade_id)
    storage.delete_trade(trade_id)
    trade_update_service.notify_trade_deleted(trade["user_id"], trade_id)
    return {"success": True, "message": f"Trade {trade_id} deleted successfully"}
