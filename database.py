"""
Storage backends

Handlers talk to a Store. MemoryStore keeps everything in process (tests,
local runs); MongoStore keeps records in MongoDB collections named after the
schema classes. Records are stored in their wire (camelCase) form.
"""

import copy
import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from pymongo import ASCENDING, MongoClient, ReturnDocument
from pymongo.errors import PyMongoError

from config import Settings
from errors import StoreError

logger = logging.getLogger(__name__)

VIDEO = "video"
CATEGORY = "category"
PAGE_CONFIG = "page_config"
RECORD_KINDS = (VIDEO, CATEGORY)


class Store(ABC):
    """Interface shared by every backend."""

    name = "store"

    @abstractmethod
    def list_records(self, kind: str, page: str) -> List[Dict[str, Any]]:
        """Records of kind for page, ascending by order, ties in insertion order."""

    @abstractmethod
    def replace_all(self, kind: str, page: str, records: List[Dict[str, Any]]) -> None:
        """Drop every record of kind for page and store records instead."""

    @abstractmethod
    def get_page_config(self, page: str) -> Optional[Dict[str, Any]]:
        pass

    @abstractmethod
    def list_page_configs(self) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    def upsert_page_config(self, page: str, fields: Dict[str, Any],
                           defaults: Dict[str, Any]) -> Dict[str, Any]:
        """Write fields for page. defaults seed the record when it is created."""

    def ping(self) -> None:
        pass

    def collection_names(self) -> List[str]:
        return []


class MemoryStore(Store):
    name = "memory"

    def __init__(self):
        self._records: Dict[str, Dict[str, List[Dict[str, Any]]]] = {kind: {} for kind in RECORD_KINDS}
        self._page_configs: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def list_records(self, kind, page):
        with self._lock:
            records = copy.deepcopy(self._records[kind].get(page, []))
        return sorted(records, key=lambda r: r.get("order", 0))

    def replace_all(self, kind, page, records):
        stored = [dict(copy.deepcopy(r), page=page) for r in records]
        with self._lock:
            self._records[kind][page] = stored

    def get_page_config(self, page):
        with self._lock:
            config = self._page_configs.get(page)
            return copy.deepcopy(config) if config is not None else None

    def list_page_configs(self):
        with self._lock:
            return [copy.deepcopy(c) for c in self._page_configs.values()]

    def upsert_page_config(self, page, fields, defaults):
        with self._lock:
            config = self._page_configs.get(page)
            if config is None:
                config = dict(defaults)
            config.update(copy.deepcopy(fields))
            config["page"] = page
            self._page_configs[page] = config
            return copy.deepcopy(config)

    def collection_names(self):
        names = [kind for kind in RECORD_KINDS if self._records[kind]]
        if self._page_configs:
            names.append(PAGE_CONFIG)
        return names


class MongoStore(Store):
    name = "mongodb"

    def __init__(self, client: MongoClient, database_name: str, use_transactions: bool = False):
        self.client = client
        self.db = client[database_name]
        self.use_transactions = use_transactions

    @classmethod
    def from_url(cls, url: str, database_name: str, use_transactions: bool = False) -> "MongoStore":
        client = MongoClient(url, serverSelectionTimeoutMS=5000)
        return cls(client, database_name, use_transactions)

    def list_records(self, kind, page):
        try:
            cursor = self.db[kind].find(
                {"page": page},
                {"_id": 0, "_position": 0},
            ).sort([("order", ASCENDING), ("_position", ASCENDING)])
            return list(cursor)
        except PyMongoError as e:
            raise StoreError(f"Failed to load {kind} records: {e}") from e

    def replace_all(self, kind, page, records):
        docs = [dict(r, page=page, _position=i) for i, r in enumerate(records)]

        def write(session=None):
            self.db[kind].delete_many({"page": page}, session=session)
            if docs:
                self.db[kind].insert_many(docs, session=session)

        try:
            if self.use_transactions:
                with self.client.start_session() as session:
                    session.with_transaction(write)
            else:
                write()
        except PyMongoError as e:
            raise StoreError(f"Failed to save {kind} records: {e}") from e

    def get_page_config(self, page):
        try:
            return self.db[PAGE_CONFIG].find_one({"page": page}, {"_id": 0})
        except PyMongoError as e:
            raise StoreError(f"Failed to load page config: {e}") from e

    def list_page_configs(self):
        try:
            return list(self.db[PAGE_CONFIG].find({}, {"_id": 0}).sort("page", ASCENDING))
        except PyMongoError as e:
            raise StoreError(f"Failed to load page configs: {e}") from e

    def upsert_page_config(self, page, fields, defaults):
        update = {}
        if fields:
            update["$set"] = fields
        on_insert = {k: v for k, v in defaults.items() if k not in fields and k != "page"}
        if on_insert:
            update["$setOnInsert"] = on_insert
        try:
            return self.db[PAGE_CONFIG].find_one_and_update(
                {"page": page},
                update,
                projection={"_id": 0},
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            raise StoreError(f"Failed to save page config: {e}") from e

    def ping(self):
        try:
            self.client.admin.command("ping")
        except PyMongoError as e:
            raise StoreError(f"Database not reachable: {e}") from e

    def collection_names(self):
        try:
            return self.db.list_collection_names()
        except PyMongoError as e:
            raise StoreError(str(e)) from e


def build_store(settings: Settings) -> Optional[Store]:
    """MongoStore when DATABASE_URL is set, otherwise None (unconfigured)."""
    if not settings.database_url:
        logger.info("DATABASE_URL not set, serving built-in defaults")
        return None
    try:
        store = MongoStore.from_url(settings.database_url, settings.database_name,
                                    settings.mongo_transactions)
    except PyMongoError as e:
        logger.error("Error creating database client: %s", e)
        return None
    logger.info("Database client created for %s", settings.database_name)
    return store
