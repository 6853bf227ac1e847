from typing import Dict, List, Optional
import copy

from fxjournal.storage.base import BaseStorage, USERS, TRADES, STRATEGIES, GOALS, MILESTONES


class MemStorage(BaseStorage):
    """Process-local storage. Everything is lost on restart."""

    backend_name = "memory"

    def __init__(self):
        super().__init__()
        self._collections: Dict[str, Dict[int, Dict]] = {
            name: {} for name in (USERS, TRADES, STRATEGIES, GOALS, MILESTONES)
        }
        self._counters: Dict[str, int] = {name: 0 for name in self._collections}

    def _next_id(self, collection: str) -> int:
        with self._lock:
            self._counters[collection] += 1
            return self._counters[collection]

    def _insert(self, collection: str, record: Dict) -> Dict:
        self._collections[collection][record["id"]] = copy.deepcopy(record)
        return record

    def _get(self, collection: str, record_id: int) -> Optional[Dict]:
        record = self._collections[collection].get(record_id)
        return copy.deepcopy(record) if record is not None else None

    def _replace(self, collection: str, record_id: int, record: Dict) -> Dict:
        self._collections[collection][record_id] = copy.deepcopy(record)
        return record

    def _delete(self, collection: str, record_id: int) -> bool:
        return self._collections[collection].pop(record_id, None) is not None

    def _find(self, collection: str, **filters) -> List[Dict]:
        with self._lock:
            return [
                copy.deepcopy(record)
                for record in self._collections[collection].values()
                if all(record.get(field) == value for field, value in filters.items())
            ]
