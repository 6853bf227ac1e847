"""
Forex arithmetic shared by trade storage and analytics.

Pips are signed from the trader's point of view: positive is a win for both
BUY and SELL. One standard lot is worth $10 per pip on every supported pair
(100 oz for XAUUSD).
"""
import math
from typing import Optional

PIP_SIZE = {
    "EURUSD": 0.0001,
    "GBPUSD": 0.0001,
    "AUDUSD": 0.0001,
    "NZDUSD": 0.0001,
    "USDJPY": 0.01,
    "USDCAD": 0.0001,
    "USDCHF": 0.0001,
    "XAUUSD": 0.1,
}

PIP_VALUE_MULTIPLIER = {pair: 10.0 for pair in PIP_SIZE}


def normalize_pair(pair: str) -> str:
    return (pair or "").replace("/", "").strip().upper()


def get_pip_size(pair: str) -> float:
    pair = normalize_pair(pair)
    if pair in PIP_SIZE:
        return PIP_SIZE[pair]
    return 0.01 if "JPY" in pair else 0.0001


def calculate_pip_value(pair: str, lot_size: float) -> float:
    """Value in USD of one pip for the given lot size"""
    return lot_size * PIP_VALUE_MULTIPLIER.get(normalize_pair(pair), 10.0)


def calculate_pips(pair: str, direction: str, entry_price: float, exit_price: float) -> float:
    pip_size = get_pip_size(pair)
    if (direction or "").upper() == "BUY":
        return (exit_price - entry_price) / pip_size
    return (entry_price - exit_price) / pip_size


def calculate_profit(pair: str, direction: str, entry_price: float, exit_price: float, lot_size: float) -> float:
    pips = calculate_pips(pair, direction, entry_price, exit_price)
    return pips * calculate_pip_value(pair, lot_size)


def calculate_risk_reward_ratio(entry_price: float, stop_loss: float, take_profit: float, direction: str) -> float:
    if (direction or "").upper() == "BUY":
        risk = entry_price - stop_loss
        reward = take_profit - entry_price
    else:
        risk = stop_loss - entry_price
        reward = entry_price - take_profit
    return reward / risk if risk > 0 else 0.0


def calculate_lot_size(pair: str, direction: str, entry_price: float, stop_loss: float,
                       account_balance: float, risk_percentage: float) -> float:
    """Lot size risking `risk_percentage` of the balance, floored to 0.01 lot"""
    risk_amount = account_balance * (risk_percentage / 100)
    pip_difference = abs(entry_price - stop_loss) / get_pip_size(pair)
    if pip_difference == 0:
        return 0.0
    lot_size = risk_amount / (pip_difference * PIP_VALUE_MULTIPLIER.get(normalize_pair(pair), 10.0))
    # round first so 19.9999999 lots*100 from float noise floors to 20
    return math.floor(round(lot_size * 100, 6)) / 100


def calculate_stop_loss_price(entry_price: float, account_balance: float, risk_percentage: float,
                              lot_size: float, direction: str, pair: str) -> float:
    risk_amount = account_balance * (risk_percentage / 100)
    pip_distance = risk_amount / calculate_pip_value(pair, lot_size)
    offset = pip_distance * get_pip_size(pair)
    if (direction or "").upper() == "BUY":
        return entry_price - offset
    return entry_price + offset


def calculate_take_profit_price(entry_price: float, stop_loss: float, risk_reward_ratio: float, direction: str) -> float:
    if (direction or "").upper() == "BUY":
        return entry_price + (entry_price - stop_loss) * risk_reward_ratio
    return entry_price - (stop_loss - entry_price) * risk_reward_ratio


def format_price(price: float, pair: str) -> str:
    pair = normalize_pair(pair)
    if pair == "XAUUSD" or "JPY" in pair:
        return f"{price:.2f}"
    return f"{price:.4f}"


def format_risk_reward_ratio(ratio: Optional[float]) -> str:
    if not ratio or ratio <= 0:
        return "N/A"
    return f"1:{ratio:.1f}"
