from typing import Dict, Optional
import math

GOAL_TARGET_TYPES = ("profit", "winRate", "profitFactor", "riskRewardRatio", "balance", "trades")


def resolve_goal_value(target_type: str, stats: Dict, user: Optional[Dict]) -> float:
    """Current value of a goal metric, taken from the user's trade stats"""
    if target_type == "profit":
        return stats["net_profit"]
    if target_type == "winRate":
        return stats["win_rate"]
    if target_type == "profitFactor":
        return stats["profit_factor"]
    if target_type == "riskRewardRatio":
        return stats["avg_risk_reward_ratio"]
    if target_type == "balance":
        return float(user.get("current_balance", 0.0)) if user else 0.0
    if target_type == "trades":
        return stats["total_trades"]
    return 0.0


def progress_percentage(current_value: float, target_value: float) -> float:
    target = float(target_value) or 1.0
    if math.isinf(current_value):
        return 100.0
    return min(100.0, current_value / target * 100)
