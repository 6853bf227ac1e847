"""
Trade change notifications.

Routers call notify_* after a successful trade write. Each notification drops
the user's cached analytics and is then delivered to the registered observers,
synchronously and in registration order.
"""
from typing import Callable, Dict, List, Optional, Tuple
import logging
import threading
import time

from fxjournal.config import TRADE_NOTIFY_DEBOUNCE_SECONDS
from fxjournal.services.analytics_service import invalidate_user_cache

logger = logging.getLogger(__name__)

TRADE_ACTIONS = ("create", "update", "delete", "close")

# callback(action, user_id, trade_id)
TradeObserver = Callable[[str, int, Optional[int]], None]


class TradeUpdateService:
    _instance = None

    def __init__(self, debounce_seconds: float = TRADE_NOTIFY_DEBOUNCE_SECONDS, clock=time.monotonic):
        self.debounce_seconds = debounce_seconds
        self._clock = clock
        self._observers: List[Tuple[TradeObserver, bool]] = []
        self._last_delivered: Dict[Tuple[int, str, Optional[int]], float] = {}
        self._lock = threading.Lock()

    @classmethod
    def get_instance(cls) -> "TradeUpdateService":
        if cls._instance is None:
            cls._instance = cls()
            logger.info("TradeUpdateService initialized")
        return cls._instance

    def register_observer(self, observer: TradeObserver, debounce: bool = True) -> Callable[[], None]:
        """
        Add an observer and return a function that removes it again.

        Observers that persist state from each write should pass
        debounce=False: they then receive every notification, including
        those dropped for debounced observers.
        """
        entry = (observer, debounce)
        with self._lock:
            self._observers.append(entry)

        def unregister():
            with self._lock:
                if entry in self._observers:
                    self._observers.remove(entry)

        return unregister

    def reset(self):
        with self._lock:
            self._observers.clear()
            self._last_delivered.clear()

    @property
    def observer_count(self) -> int:
        return len(self._observers)

    def notify_trade_created(self, user_id: int, trade_id: Optional[int] = None) -> bool:
        return self._notify("create", user_id, trade_id)

    def notify_trade_updated(self, user_id: int, trade_id: int) -> bool:
        return self._notify("update", user_id, trade_id)

    def notify_trade_deleted(self, user_id: int, trade_id: int) -> bool:
        return self._notify("delete", user_id, trade_id)

    def notify_trade_closed(self, user_id: int, trade_id: int) -> bool:
        return self._notify("close", user_id, trade_id)

    def _should_deliver(self, key: Tuple[int, str, Optional[int]]) -> bool:
        now = self._clock()
        with self._lock:
            last = self._last_delivered.get(key)
            if last is not None and now - last < self.debounce_seconds:
                return False
            self._last_delivered[key] = now
            return True

    def _notify(self, action: str, user_id: int, trade_id: Optional[int]) -> bool:
        """Returns False when the notification was debounced"""
        logger.debug(f"Trade {action} notification (user {user_id}, trade {trade_id or 'unknown'})")
        invalidate_user_cache(user_id)

        delivered = self._should_deliver((user_id, action, trade_id))
        if not delivered:
            logger.debug(f"Debounced trade {action} notification for trade {trade_id}")

        with self._lock:
            observers = [o for o, debounce in self._observers if delivered or not debounce]
        for observer in observers:
            try:
                observer(action, user_id, trade_id)
            except Exception as e:
                logger.error(f"Error notifying trade observer: {e}", exc_info=True)
        return delivered


trade_update_service = TradeUpdateService.get_instance()
