from typing import Dict, List, Optional
import uuid

DEFAULT_STRATEGIES = [
    {
        "name": "Trend Following",
        "description": "Following the trend with confirmation from multiple timeframes.",
        "rules": ["Wait for a clear trend", "Confirm with indicators", "Enter on pullbacks"],
        "entry_conditions": ["Price above EMA 50", "RSI above 50"],
        "exit_conditions": ["Close below EMA 50"],
        "timeframes": ["H4", "D1"],
        "risk_reward_ratio": 2.0,
    },
    {
        "name": "Breakout",
        "description": "Trading breakouts from key levels or patterns.",
        "rules": ["Identify strong support/resistance", "Wait for breakout with increased volume"],
        "entry_conditions": ["Candle closes beyond the level"],
        "exit_conditions": ["Price returns inside the range"],
        "timeframes": ["H1", "H4"],
        "risk_reward_ratio": 1.5,
    },
    {
        "name": "Price Action",
        "description": "Pure price action without indicators.",
        "rules": ["Trade only at key levels"],
        "entry_conditions": ["Pin bar or engulfing pattern at the level"],
        "exit_conditions": ["Opposite signal candle"],
        "timeframes": ["H4"],
        "risk_reward_ratio": 2.0,
    },
]

CONDITION_GROUPS = ("rules", "entry_conditions", "exit_conditions")


def make_condition(label: str, order: int, **extra) -> Dict:
    return {"id": uuid.uuid4().hex, "label": label, "order": order, **extra}


def default_strategy_payloads() -> List[Dict]:
    """Templates for a new user; only the first is flagged as default"""
    payloads = []
    for index, template in enumerate(DEFAULT_STRATEGIES):
        payload = dict(template)
        for group in CONDITION_GROUPS:
            payload[group] = [make_condition(label, order) for order, label in enumerate(template[group])]
        payload["is_default"] = index == 0
        payloads.append(payload)
    return payloads


def normalize_conditions(conditions: Optional[List[Dict]]) -> List[Dict]:
    """Give every condition an id and keep the list ordered by `order`"""
    result = []
    for position, condition in enumerate(conditions or []):
        item = dict(condition)
        if not item.get("id"):
            item["id"] = uuid.uuid4().hex
        if item.get("order") is None:
            item["order"] = position
        result.append(item)
    return sorted(result, key=lambda c: c["order"])


def _group_compliance(checks: Optional[List[Dict]]) -> Optional[float]:
    checked = [c for c in (checks or []) if c.get("checked")]
    if not checked:
        return None
    passed = sum(1 for c in checked if c.get("passed"))
    return passed / len(checked) * 100


def calculate_compliance(strategy_checks: Dict) -> Dict:
    """Percentage of checked strategy conditions that passed, per group and overall"""
    result = dict(strategy_checks)
    rules = _group_compliance(strategy_checks.get("rules"))
    entry = _group_compliance(strategy_checks.get("entry_conditions"))
    exit_ = _group_compliance(strategy_checks.get("exit_conditions"))

    result["rules_compliance"] = rules or 0.0
    result["entry_compliance"] = entry or 0.0
    result["exit_compliance"] = exit_

    all_checked = [
        c for group in CONDITION_GROUPS for c in (strategy_checks.get(group) or []) if c.get("checked")
    ]
    if all_checked:
        result["overall_compliance"] = sum(1 for c in all_checked if c.get("passed")) / len(all_checked) * 100
    else:
        result["overall_compliance"] = 0.0
    return result
