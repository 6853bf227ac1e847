from typing import Dict, List, Optional

from pymongo.database import Database
import pymongo

from fxjournal.storage.base import BaseStorage, USERS, TRADES, STRATEGIES, GOALS, MILESTONES


class MongoStorage(BaseStorage):
    """Storage backed by a MongoDB database. Records are keyed by an integer `id` field."""

    backend_name = "mongo"

    def __init__(self, db: Database):
        super().__init__()
        self.db = db

    def ensure_indexes(self):
        for name in (USERS, TRADES, STRATEGIES, GOALS, MILESTONES):
            self.db[name].create_index([("id", pymongo.ASCENDING)], unique=True)
        self.db[USERS].create_index([("username", pymongo.ASCENDING)], unique=True)
        self.db[TRADES].create_index([("user_id", pymongo.ASCENDING)])
        self.db[STRATEGIES].create_index([("user_id", pymongo.ASCENDING)])
        self.db[GOALS].create_index([("user_id", pymongo.ASCENDING)])
        self.db[MILESTONES].create_index([("goal_id", pymongo.ASCENDING)])

    def _next_id(self, collection: str) -> int:
        # Max id using aggregation
        pipeline = [
            {"$group": {"_id": None, "max_id": {"$max": "$id"}}}
        ]
        result = list(self.db[collection].aggregate(pipeline))
        max_id = result[0]["max_id"] if result else 0
        return int(max_id or 0) + 1

    def _insert(self, collection: str, record: Dict) -> Dict:
        self.db[collection].insert_one(dict(record))
        return record

    def _get(self, collection: str, record_id: int) -> Optional[Dict]:
        record = self.db[collection].find_one({"id": record_id})
        if record:
            record.pop("_id", None)
        return record

    def _replace(self, collection: str, record_id: int, record: Dict) -> Dict:
        doc = dict(record)
        doc.pop("_id", None)
        self.db[collection].replace_one({"id": record_id}, doc)
        return record

    def _delete(self, collection: str, record_id: int) -> bool:
        result = self.db[collection].delete_one({"id": record_id})
        return result.deleted_count > 0

    def _find(self, collection: str, **filters) -> List[Dict]:
        records = list(self.db[collection].find(filters))
        for r in records:
            r.pop("_id", None)
        return records
