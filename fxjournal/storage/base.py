"""
Storage layer for users, trades, strategies, goals and goal milestones.

BaseStorage implements the journal rules (balance recomputation, derived trade
metrics, the single-default-strategy fix-up, goal cascades and progress) on top
of a handful of record primitives that each backend provides.
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional
import hashlib
import logging
import threading

from fxjournal.services import analytics_service, goal_service, strategy_service
from fxjournal.services.forex_calculator import calculate_pips, calculate_profit

logger = logging.getLogger(__name__)

USERS = "users"
TRADES = "trades"
STRATEGIES = "strategies"
GOALS = "goals"
MILESTONES = "goal_milestones"

DEFAULT_INITIAL_BALANCE = 10000.0

# Fields that feed the pips / profit_loss computation
PRICE_FIELDS = ("pair", "direction", "entry_price", "exit_price", "lot_size")
IMMUTABLE_FIELDS = ("id", "user_id", "created_at")


class NotFoundError(LookupError):
    pass


class ConflictError(ValueError):
    pass


# ------------------- Password Helpers -------------------
def get_password_hash(password: str) -> str:
    """Hash the password using SHA256"""
    return hashlib.sha256(password.encode()).hexdigest()


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return get_password_hash(plain_password) == hashed_password


def public_user(user: Optional[Dict]) -> Optional[Dict]:
    """User record without the password hash"""
    if user is None:
        return None
    data = dict(user)
    data.pop("password", None)
    return data


class BaseStorage(ABC):

    backend_name = "base"

    def __init__(self):
        self._lock = threading.RLock()

    # ------------------- Record primitives -------------------
    @abstractmethod
    def _next_id(self, collection: str) -> int: ...

    @abstractmethod
    def _insert(self, collection: str, record: Dict) -> Dict: ...

    @abstractmethod
    def _get(self, collection: str, record_id: int) -> Optional[Dict]: ...

    @abstractmethod
    def _replace(self, collection: str, record_id: int, record: Dict) -> Dict: ...

    @abstractmethod
    def _delete(self, collection: str, record_id: int) -> bool: ...

    @abstractmethod
    def _find(self, collection: str, **filters) -> List[Dict]: ...

    def _require(self, collection: str, record_id: int, label: str) -> Dict:
        record = self._get(collection, record_id)
        if record is None:
            raise NotFoundError(f"{label} not found")
        return record

    # ------------------- Users -------------------
    def get_user(self, user_id: int) -> Optional[Dict]:
        return self._get(USERS, user_id)

    def get_user_by_username(self, username: str) -> Optional[Dict]:
        users = self._find(USERS, username=username)
        return users[0] if users else None

    def create_user(self, user_data: Dict) -> Dict:
        with self._lock:
            if self.get_user_by_username(user_data["username"]):
                raise ConflictError("Username already registered")

            now = datetime.now()
            initial_balance = user_data.get("initial_balance")
            if initial_balance is None:
                initial_balance = DEFAULT_INITIAL_BALANCE
            user = {
                "id": self._next_id(USERS),
                "username": user_data["username"],
                "password": get_password_hash(user_data["password"]),
                "email": user_data["email"],
                "display_name": user_data.get("display_name"),
                "initial_balance": float(initial_balance),
                "current_balance": float(initial_balance),
                "settings": user_data.get("settings") or {},
                "created_at": now,
                "updated_at": now,
            }
            self._insert(USERS, user)
            logger.info(f"✅ Created user {user['username']} with ID: {user['id']}")
            return user

    def authenticate_user(self, username: str, password: str) -> Optional[Dict]:
        user = self.get_user_by_username(username)
        if user and verify_password(password, user["password"]):
            return user
        return None

    def update_user(self, user_id: int, user_data: Dict) -> Dict:
        with self._lock:
            user = self._require(USERS, user_id, "User")
            changes = {k: v for k, v in user_data.items() if k not in ("id", "created_at")}
            if "password" in changes:
                changes["password"] = get_password_hash(changes["password"])

            updated = {**user, **changes, "updated_at": datetime.now()}
            self._replace(USERS, user_id, updated)

            if "initial_balance" in changes:
                updated = self._recalculate_balance(user_id)
            return updated

    def _recalculate_balance(self, user_id: int) -> Optional[Dict]:
        """current_balance = initial_balance + P/L of every closed trade"""
        user = self._get(USERS, user_id)
        if user is None:
            return None
        closed = analytics_service.get_closed_trades(self._find(TRADES, user_id=user_id))
        balance = float(user.get("initial_balance") or 0.0) + sum(float(t["profit_loss"]) for t in closed)
        if balance != user.get("current_balance"):
            user = {**user, "current_balance": balance, "updated_at": datetime.now()}
            self._replace(USERS, user_id, user)
        return user

    # ------------------- Trades -------------------
    @staticmethod
    def _apply_trade_metrics(trade: Dict, changes: Dict) -> Dict:
        """Fill in pips and profit_loss from prices unless the caller supplied them"""
        if trade.get("exit_price") is None or trade.get("entry_price") is None:
            return trade

        prices_changed = any(field in changes for field in PRICE_FIELDS)
        args = (trade["pair"], trade["direction"], float(trade["entry_price"]), float(trade["exit_price"]))

        if "pips" not in changes and (trade.get("pips") is None or prices_changed):
            trade["pips"] = round(calculate_pips(*args), 1)
        if "profit_loss" not in changes and (trade.get("profit_loss") is None or prices_changed):
            trade["profit_loss"] = round(calculate_profit(*args, float(trade.get("lot_size") or 0.0)), 2)
        return trade

    @staticmethod
    def _apply_compliance(trade: Dict) -> Dict:
        if trade.get("strategy_checks"):
            trade["strategy_checks"] = strategy_service.calculate_compliance(trade["strategy_checks"])
        return trade

    def create_trade(self, trade_data: Dict) -> Dict:
        with self._lock:
            self._require(USERS, trade_data["user_id"], "User")
            now = datetime.now()
            supplied = {k: v for k, v in trade_data.items() if v is not None}

            trade = {
                "pips": None,
                "profit_loss": None,
                **trade_data,
                "id": self._next_id(TRADES),
                "created_at": now,
                "updated_at": now,
            }
            self._apply_trade_metrics(trade, supplied)
            self._apply_compliance(trade)

            self._insert(TRADES, trade)
            self._recalculate_balance(trade["user_id"])
            return trade

    def get_trade_by_id(self, trade_id: int) -> Optional[Dict]:
        return self._get(TRADES, trade_id)

    def get_trades_by_user_id(self, user_id: int) -> List[Dict]:
        trades = self._find(TRADES, user_id=user_id)
        return sorted(trades, key=lambda t: (t["created_at"], t["id"]), reverse=True)

    def update_trade(self, trade_id: int, trade_data: Dict) -> Dict:
        with self._lock:
            trade = self._require(TRADES, trade_id, "Trade")
            changes = {k: v for k, v in trade_data.items() if k not in IMMUTABLE_FIELDS}

            updated = {**trade, **changes, "updated_at": datetime.now()}
            self._apply_trade_metrics(updated, changes)
            if "strategy_checks" in changes:
                self._apply_compliance(updated)

            self._replace(TRADES, trade_id, updated)
            self._recalculate_balance(updated["user_id"])
            return updated

    def delete_trade(self, trade_id: int) -> Dict:
        with self._lock:
            trade = self._require(TRADES, trade_id, "Trade")
            self._delete(TRADES, trade_id)
            self._recalculate_balance(trade["user_id"])
            return trade

    # ------------------- Strategies -------------------
    def _prepare_strategy(self, data: Dict) -> Dict:
        for group in strategy_service.CONDITION_GROUPS:
            if group in data:
                data[group] = strategy_service.normalize_conditions(data[group])
        return data

    def _enforce_single_default(self, user_id: int, default_id: int):
        """Clear is_default on every other strategy of the user"""
        for strategy in self._find(STRATEGIES, user_id=user_id):
            if strategy["id"] != default_id and strategy.get("is_default"):
                strategy["is_default"] = False
                strategy["updated_at"] = datetime.now()
                self._replace(STRATEGIES, strategy["id"], strategy)
                logger.info(f"Cleared default flag on strategy {strategy['id']} for user {user_id}")

    def create_strategy(self, strategy_data: Dict) -> Dict:
        with self._lock:
            self._require(USERS, strategy_data["user_id"], "User")
            now = datetime.now()
            strategy = {
                "rules": [],
                "entry_conditions": [],
                "exit_conditions": [],
                "timeframes": [],
                "is_default": False,
                **self._prepare_strategy(dict(strategy_data)),
                "id": self._next_id(STRATEGIES),
                "created_at": now,
                "updated_at": now,
            }
            self._insert(STRATEGIES, strategy)
            if strategy["is_default"]:
                self._enforce_single_default(strategy["user_id"], strategy["id"])
            return strategy

    def get_strategy_by_id(self, strategy_id: int) -> Optional[Dict]:
        return self._get(STRATEGIES, strategy_id)

    def get_strategies_by_user_id(self, user_id: int) -> List[Dict]:
        return sorted(self._find(STRATEGIES, user_id=user_id), key=lambda s: s["id"])

    def update_strategy(self, strategy_id: int, strategy_data: Dict) -> Dict:
        with self._lock:
            strategy = self._require(STRATEGIES, strategy_id, "Strategy")
            changes = {k: v for k, v in strategy_data.items() if k not in IMMUTABLE_FIELDS}
            updated = {**strategy, **self._prepare_strategy(changes), "updated_at": datetime.now()}
            self._replace(STRATEGIES, strategy_id, updated)
            if changes.get("is_default"):
                self._enforce_single_default(updated["user_id"], strategy_id)
            return updated

    def delete_strategy(self, strategy_id: int) -> Dict:
        with self._lock:
            strategy = self._require(STRATEGIES, strategy_id, "Strategy")
            self._delete(STRATEGIES, strategy_id)
            return strategy

    def create_default_strategies_if_needed(self, user_id: int) -> List[Dict]:
        with self._lock:
            if self._find(STRATEGIES, user_id=user_id):
                return []
            logger.info(f"Creating default strategies for user {user_id}")
            return [
                self.create_strategy({**payload, "user_id": user_id})
                for payload in strategy_service.default_strategy_payloads()
            ]

    # ------------------- Goals -------------------
    def _with_milestones(self, goal: Dict) -> Dict:
        return {**goal, "milestones": self.get_goal_milestones_by_goal_id(goal["id"])}

    def create_goal(self, goal_data: Dict) -> Dict:
        with self._lock:
            self._require(USERS, goal_data["user_id"], "User")
            now = datetime.now()
            data = dict(goal_data)
            milestones = data.pop("milestones", None) or []
            goal = {
                "current_value": 0.0,
                "is_completed": False,
                "priority": "medium",
                **data,
                "id": self._next_id(GOALS),
                "created_at": now,
                "updated_at": now,
            }
            self._insert(GOALS, goal)
            for milestone in milestones:
                self.create_goal_milestone({**milestone, "goal_id": goal["id"]})
            return self._with_milestones(goal)

    def get_goal_by_id(self, goal_id: int) -> Optional[Dict]:
        goal = self._get(GOALS, goal_id)
        return self._with_milestones(goal) if goal else None

    def get_goals_by_user_id(self, user_id: int) -> List[Dict]:
        goals = sorted(self._find(GOALS, user_id=user_id), key=lambda g: g["id"])
        return [self._with_milestones(g) for g in goals]

    def update_goal(self, goal_id: int, goal_data: Dict) -> Dict:
        with self._lock:
            goal = self._require(GOALS, goal_id, "Goal")
            changes = {k: v for k, v in goal_data.items() if k not in IMMUTABLE_FIELDS and k != "milestones"}
            updated = {**goal, **changes, "updated_at": datetime.now()}
            self._replace(GOALS, goal_id, updated)
            return self._with_milestones(updated)

    def delete_goal(self, goal_id: int) -> Dict:
        with self._lock:
            goal = self._require(GOALS, goal_id, "Goal")
            for milestone in self._find(MILESTONES, goal_id=goal_id):
                self._delete(MILESTONES, milestone["id"])
            self._delete(GOALS, goal_id)
            return goal

    # ------------------- Goal milestones -------------------
    def create_goal_milestone(self, milestone_data: Dict) -> Dict:
        with self._lock:
            self._require(GOALS, milestone_data["goal_id"], "Goal")
            now = datetime.now()
            milestone = {
                "is_completed": False,
                "completed_date": None,
                **milestone_data,
                "id": self._next_id(MILESTONES),
                "created_at": now,
                "updated_at": now,
            }
            self._insert(MILESTONES, milestone)
            return milestone

    def get_goal_milestones_by_goal_id(self, goal_id: int) -> List[Dict]:
        return sorted(self._find(MILESTONES, goal_id=goal_id), key=lambda m: m["id"])

    def update_goal_milestone(self, milestone_id: int, milestone_data: Dict) -> Dict:
        with self._lock:
            milestone = self._require(MILESTONES, milestone_id, "Milestone")
            changes = {k: v for k, v in milestone_data.items() if k not in ("id", "goal_id", "created_at")}
            updated = {**milestone, **changes, "updated_at": datetime.now()}
            if changes.get("is_completed") and not milestone.get("is_completed") and not updated.get("completed_date"):
                updated["completed_date"] = datetime.now()
            self._replace(MILESTONES, milestone_id, updated)
            return updated

    def delete_goal_milestone(self, milestone_id: int) -> Dict:
        with self._lock:
            milestone = self._require(MILESTONES, milestone_id, "Milestone")
            self._delete(MILESTONES, milestone_id)
            return milestone

    # ------------------- Goal progress -------------------
    def calculate_goal_progress(self, goal_id: int) -> float:
        """Refresh current_value from trade stats and return progress in percent"""
        with self._lock:
            goal = self._require(GOALS, goal_id, "Goal")
            user = self._get(USERS, goal["user_id"])
            stats = self.get_trade_stats(goal["user_id"])

            value = goal_service.resolve_goal_value(goal["target_type"], stats, user)
            progress = goal_service.progress_percentage(value, goal.get("target_value") or 0)
            infinite = value == float("inf")

            now = datetime.now()
            goal["current_value"] = None if infinite else value
            if progress >= 100 and not goal.get("is_completed"):
                goal["is_completed"] = True
            goal["updated_at"] = now
            self._replace(GOALS, goal_id, goal)

            for milestone in self._find(MILESTONES, goal_id=goal_id):
                if milestone.get("is_completed"):
                    continue
                if infinite or value >= float(milestone.get("target_value") or 0):
                    milestone.update({"is_completed": True, "completed_date": now, "updated_at": now})
                    self._replace(MILESTONES, milestone["id"], milestone)

            return progress

    def get_goals_progress(self, user_id: int) -> List[Dict]:
        progress = []
        for goal in self._find(GOALS, user_id=user_id):
            percentage = self.calculate_goal_progress(goal["id"])
            refreshed = self.get_goal_by_id(goal["id"])
            milestones = refreshed["milestones"]
            progress.append({
                "goal_id": refreshed["id"],
                "title": refreshed.get("title"),
                "target_type": refreshed["target_type"],
                "target_value": refreshed["target_value"],
                "current_value": refreshed["current_value"],
                "progress": percentage,
                "is_completed": refreshed["is_completed"],
                "milestones_completed": sum(1 for m in milestones if m.get("is_completed")),
                "milestones_total": len(milestones),
            })
        return sorted(progress, key=lambda p: p["goal_id"])

    # ------------------- Analytics -------------------
    def get_trade_stats(self, user_id: int) -> Dict:
        return analytics_service.calculate_trade_stats(self._find(TRADES, user_id=user_id))

    def get_performance_data(self, user_id: int) -> Dict:
        return analytics_service.calculate_performance(self._find(TRADES, user_id=user_id))
