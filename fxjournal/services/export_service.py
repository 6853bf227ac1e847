from datetime import datetime
from typing import Dict, List
import csv

import pandas as pd

from fxjournal.services.analytics_service import is_closed_trade, trade_risk_reward

EXPORT_COLUMNS = [
    "id", "pair", "direction", "status", "result",
    "lot_size", "pips", "profit_loss",
    "entry_price", "exit_price", "stop_loss", "take_profit",
    "risk_reward_ratio", "entry_date", "created_at", "close_date",
    "strategy", "session_type", "emotion", "market_condition", "tech_pattern",
    "followed_plan", "entered_early", "revenge", "over_leveraged", "moved_stop_loss", "has_news",
    "notes", "closing_note",
    "entry_image", "exit_image", "entry_image_m15", "exit_image_m15",
]

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def format_value(value) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, datetime):
        return value.strftime(DATE_FORMAT)
    if isinstance(value, (list, tuple)):
        # semicolons keep list items out of the CSV column separator
        return "; ".join(str(v) for v in value)
    return str(value)


def trades_to_dataframe(trades: List[Dict]) -> pd.DataFrame:
    rows = []
    for trade in trades:
        row = dict(trade)
        row["status"] = "closed" if is_closed_trade(trade) else "open"
        row["risk_reward_ratio"] = round(trade_risk_reward(trade), 2)
        rows.append({col: format_value(row.get(col)) for col in EXPORT_COLUMNS})
    return pd.DataFrame(rows, columns=EXPORT_COLUMNS)


def export_trades_csv(trades: List[Dict]) -> str:
    df = trades_to_dataframe(trades)
    return df.to_csv(index=False, quoting=csv.QUOTE_ALL, lineterminator="\n")


def export_filename(now: datetime = None) -> str:
    return f"trading_history_{(now or datetime.now()).strftime('%Y%m%d_%H%M%S')}.csv"
