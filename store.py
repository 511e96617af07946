# store.py — 2025-07-08
"""
Document-store collaborator shared by the queues and the fact aggregator.

Only a handful of primitives are needed: find one record, list records,
append to / remove from an array field, overwrite a scalar, and an atomic
"append + increment" used for fact totals. `MongoStore` maps them onto a
pymongo collection; `MemoryStore` keeps records in-process for dry runs
and tests.
"""

from __future__ import annotations

import copy
import logging
import threading
from typing import Any, Dict, List, NamedTuple, Optional, Sequence, Tuple

from pymongo import ASCENDING, MongoClient
from pymongo.errors import PyMongoError

import config

logger = logging.getLogger(__name__)

Filter = Dict[str, Any]
SortSpec = Sequence[Tuple[str, int]]


class PersistenceError(RuntimeError):
    """A durable write (or read) did not apply."""


class DocumentStore:
    """Interface implemented by every store backend."""

    name = "store"

    def find(self, filt: Filter) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    def find_all(self, filt: Filter, sort: SortSpec | None = None) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def upsert_push(self, filt: Filter, field: str, value: Any) -> None:
        raise NotImplementedError

    def update_pull(self, filt: Filter, field: str, value: Any,
                    create_if_absent: bool = False) -> None:
        raise NotImplementedError

    def update_set(self, filt: Filter, field: str, value: Any) -> None:
        raise NotImplementedError

    def push_and_increment(self, filt: Filter, field: str, value: Any,
                           counter: str, amount: int) -> None:
        raise NotImplementedError


# ─────────────────────────── MongoDB ──────────────────────────────
class MongoStore(DocumentStore):
    def __init__(self, collection) -> None:
        self.collection = collection
        self.name = getattr(collection, "name", "collection")

    def find(self, filt):
        try:
            return self.collection.find_one(filt, projection={"_id": 0})
        except PyMongoError as exc:
            raise PersistenceError(f"find on {self.name} failed: {exc}") from exc

    def find_all(self, filt, sort=None):
        try:
            cursor = self.collection.find(filt, projection={"_id": 0})
            if sort:
                cursor = cursor.sort(list(sort))
            return list(cursor)
        except PyMongoError as exc:
            raise PersistenceError(f"find on {self.name} failed: {exc}") from exc

    def _update(self, filt: Filter, update: Dict[str, Any], *, upsert: bool) -> None:
        try:
            result = self.collection.update_one(filt, update, upsert=upsert)
        except PyMongoError as exc:
            raise PersistenceError(f"update on {self.name} failed: {exc}") from exc
        if not result.acknowledged:
            raise PersistenceError(f"update on {self.name} was not acknowledged")
        # an upsert must either hit the record or create it
        if upsert and result.matched_count == 0 and result.upserted_id is None:
            raise PersistenceError(f"update on {self.name} matched nothing: {filt}")

    def upsert_push(self, filt, field, value):
        self._update(filt, {"$push": {field: value}}, upsert=True)

    def update_pull(self, filt, field, value, create_if_absent=False):
        self._update(filt, {"$pull": {field: value}}, upsert=create_if_absent)

    def update_set(self, filt, field, value):
        self._update(filt, {"$set": {field: value}}, upsert=True)

    def push_and_increment(self, filt, field, value, counter, amount):
        # single-document update: atomic on the server
        self._update(filt, {"$push": {field: value}, "$inc": {counter: amount}}, upsert=True)


# ─────────────────────────── in-process ───────────────────────────
class MemoryStore(DocumentStore):
    """Dict-backed store with the same semantics; nothing survives the process."""

    def __init__(self, name: str = "memory") -> None:
        self.name = name
        self.records: List[Dict[str, Any]] = []
        self._lock = threading.Lock()

    @staticmethod
    def _matches(record: Dict[str, Any], filt: Filter) -> bool:
        return all(record.get(k) == v for k, v in filt.items())

    def _locate(self, filt: Filter, create: bool) -> Optional[Dict[str, Any]]:
        for record in self.records:
            if self._matches(record, filt):
                return record
        if not create:
            return None
        record = copy.deepcopy(dict(filt))
        self.records.append(record)
        return record

    def find(self, filt):
        with self._lock:
            record = self._locate(filt, create=False)
            return copy.deepcopy(record) if record is not None else None

    def find_all(self, filt, sort=None):
        with self._lock:
            out = [copy.deepcopy(r) for r in self.records if self._matches(r, filt)]
        # stable sorts applied last key first give a multi-key ordering
        for key, direction in reversed(list(sort or [])):
            out.sort(key=lambda r: r.get(key), reverse=direction < 0)
        return out

    def upsert_push(self, filt, field, value):
        with self._lock:
            record = self._locate(filt, create=True)
            record.setdefault(field, []).append(copy.deepcopy(value))

    def update_pull(self, filt, field, value, create_if_absent=False):
        with self._lock:
            record = self._locate(filt, create=create_if_absent)
            if record is None:
                return
            record[field] = [v for v in record.get(field, []) if v != value]

    def update_set(self, filt, field, value):
        with self._lock:
            self._locate(filt, create=True)[field] = copy.deepcopy(value)

    def push_and_increment(self, filt, field, value, counter, amount):
        with self._lock:
            record = self._locate(filt, create=True)
            record.setdefault(field, []).append(copy.deepcopy(value))
            record[counter] = record.get(counter, 0) + amount


# ─────────────────────────── bootstrap ────────────────────────────
class Collections(NamedTuple):
    crawler_urls: DocumentStore
    scraper_urls: DocumentStore
    scraper_data: DocumentStore
    client: Any = None

    def close(self) -> None:
        if self.client is not None:
            self.client.close()


def open_collections(uri: str, domain: str) -> Collections:
    """Connect to MongoDB, get or create the per-domain database and its indexes."""
    db_name = config.db_name_for(domain)
    try:
        client = MongoClient(uri, serverSelectionTimeoutMS=5000)
        client.admin.command("ping")
        db = client[db_name]
        data = db[config.SCRAPER_DATA_COLLECTION]
        scraper_urls = db[config.SCRAPER_URLS_COLLECTION]
        crawler_urls = db[config.CRAWLER_URLS_COLLECTION]
        data.create_index([("value", ASCENDING), ("type", ASCENDING)], unique=True)
        scraper_urls.create_index([("type", ASCENDING)], unique=True)
        crawler_urls.create_index([("type", ASCENDING)], unique=True)
    except PyMongoError as exc:
        raise PersistenceError(f"could not open database {db_name}: {exc}") from exc

    logger.info("Connected to MongoDB database %s", db_name)
    return Collections(
        crawler_urls=MongoStore(crawler_urls),
        scraper_urls=MongoStore(scraper_urls),
        scraper_data=MongoStore(data),
        client=client,
    )


def memory_collections() -> Collections:
    return Collections(
        crawler_urls=MemoryStore(config.CRAWLER_URLS_COLLECTION),
        scraper_urls=MemoryStore(config.SCRAPER_URLS_COLLECTION),
        scraper_data=MemoryStore(config.SCRAPER_DATA_COLLECTION),
    )
