from datetime import datetime
from typing import Dict, Any, List, Optional
import math

from fxjournal.config import ANALYTICS_CACHE_SECONDS

# Simple in-memory cache: {user_id: {kind: {"data": data, "timestamp": timestamp}}}
analytics_cache = {}

DISCIPLINE_FLAGS = ["followed_plan", "entered_early", "revenge", "over_leveraged", "moved_stop_loss"]


def get_cached_analytics(user_id: int, kind: str):
    entry = analytics_cache.get(user_id, {}).get(kind)
    if entry and (datetime.now() - entry["timestamp"]).total_seconds() < ANALYTICS_CACHE_SECONDS:
        return entry["data"]
    return None


def cache_analytics(user_id: int, kind: str, data: Dict):
    analytics_cache.setdefault(user_id, {})[kind] = {
        "data": data,
        "timestamp": datetime.now()
    }


def invalidate_user_cache(user_id: int):
    analytics_cache.pop(user_id, None)


def is_closed_trade(trade: Dict) -> bool:
    """A trade is closed once it has both a close date and a result"""
    return bool(trade.get("close_date")) and bool(trade.get("result"))


def get_closed_trades(trades: List[Dict]) -> List[Dict]:
    """Closed trades that carry a profit/loss figure"""
    return [t for t in trades if is_closed_trade(t) and t.get("profit_loss") is not None]


def _pl(trade: Dict) -> float:
    return float(trade.get("profit_loss") or 0.0)


def _win_rate(trades: List[Dict]) -> float:
    if not trades:
        return 0.0
    wins = sum(1 for t in trades if _pl(t) > 0)
    return wins / len(trades) * 100


def trade_risk_reward(trade: Dict) -> float:
    entry = float(trade.get("entry_price") or 0.0)
    risk = abs(entry - float(trade.get("stop_loss") or 0.0))
    reward = abs(float(trade.get("take_profit") or 0.0) - entry)
    return reward / risk if risk > 0 else 0.0


def _avg_risk_reward(trades: List[Dict]) -> float:
    if not trades:
        return 0.0
    return sum(trade_risk_reward(t) for t in trades) / len(trades)


def calculate_trade_stats(trades: List[Dict]) -> Dict[str, Any]:
    """
    Aggregate statistics over closed trades.

    total_loss and avg_loss are negative numbers. profit_factor is
    math.inf when there are profits but no losses.
    """
    closed = get_closed_trades(trades)
    winning = [t for t in closed if _pl(t) > 0]
    losing = [t for t in closed if _pl(t) < 0]

    total_profit = sum(_pl(t) for t in winning)
    total_loss = sum(_pl(t) for t in losing)

    if abs(total_loss) > 0:
        profit_factor = abs(total_profit / total_loss)
    else:
        profit_factor = math.inf if total_profit > 0 else 0.0

    avg_profit = total_profit / len(winning) if winning else 0.0
    avg_loss = total_loss / len(losing) if losing else 0.0
    win_rate = len(winning) / len(closed) * 100 if closed else 0.0
    loss_rate = len(losing) / len(closed) * 100 if closed else 0.0

    return {
        "total_trades": len(closed),
        "winning_trades": len(winning),
        "losing_trades": len(losing),
        "win_rate": win_rate,
        "total_profit": total_profit,
        "total_loss": total_loss,
        "net_profit": total_profit + total_loss,
        "avg_profit": avg_profit,
        "avg_loss": avg_loss,
        "profit_factor": profit_factor,
        "largest_win": max((_pl(t) for t in winning), default=0.0),
        "largest_loss": min((_pl(t) for t in losing), default=0.0),
        "avg_risk_reward_ratio": _avg_risk_reward(closed),
        "expectancy": (win_rate / 100) * avg_profit + (loss_rate / 100) * avg_loss,
    }


def _group_by(trades: List[Dict], field: str) -> Dict[str, List[Dict]]:
    groups = {}
    for t in trades:
        key = t.get(field) or "Unknown"
        groups.setdefault(key, []).append(t)
    return groups


def calculate_performance(trades: List[Dict]) -> Dict[str, Any]:
    closed = get_closed_trades(trades)

    by_pair = [
        {
            "pair": pair,
            "trades": len(group),
            "win_rate": _win_rate(group),
            "net_profit": sum(_pl(t) for t in group),
            "avg_risk_reward_ratio": _avg_risk_reward(group),
        }
        for pair, group in _group_by(closed, "pair").items()
    ]

    by_strategy = [
        {
            "strategy": strategy,
            "trades": len(group),
            "win_rate": _win_rate(group),
            "net_profit": sum(_pl(t) for t in group),
            "avg_risk_reward_ratio": _avg_risk_reward(group),
        }
        for strategy, group in _group_by(closed, "strategy").items()
    ]

    by_emotion = [
        {"emotion": emotion, "trades": len(group), "win_rate": _win_rate(group),
         "net_profit": sum(_pl(t) for t in group)}
        for emotion, group in _group_by(closed, "emotion").items()
    ]

    by_session = [
        {"session": session, "trades": len(group), "win_rate": _win_rate(group),
         "net_profit": sum(_pl(t) for t in group)}
        for session, group in _group_by(closed, "session_type").items()
    ]

    by_discipline = {}
    for flag in DISCIPLINE_FLAGS:
        yes = [t for t in closed if t.get(flag)]
        no = [t for t in closed if not t.get(flag)]
        by_discipline[flag] = {
            "yes": len(yes),
            "no": len(no),
            "win_rate_yes": _win_rate(yes),
            "win_rate_no": _win_rate(no),
        }

    return {
        "by_pair": by_pair,
        "by_strategy": by_strategy,
        "by_emotion": by_emotion,
        "by_session": by_session,
        "by_discipline": by_discipline,
    }


def serialize_stats(stats: Dict[str, Any]) -> Dict[str, Any]:
    """JSON cannot carry infinity: report it as null plus a flag"""
    data = dict(stats)
    pf: Optional[float] = data.get("profit_factor")
    data["profit_factor_infinite"] = pf is not None and math.isinf(pf)
    if data["profit_factor_infinite"]:
        data["profit_factor"] = None
    return data
