# worklist.py — 2025-07-08
"""
Persistent FIFO-with-dedup shared by the crawl frontier and the page queue.

Memory is a cache of the store: every mutation writes through first, and
the in-memory side only changes once the durable write went in.
"""

from __future__ import annotations

import hashlib
import logging
from collections import deque
from typing import Callable, Deque, Generic, Optional, Set, Tuple, TypeVar

from store import DocumentStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

TO_VISIT = {"type": "toVisit"}
VISITED  = {"type": "visited"}
URLS     = "urls"


def fingerprint(key: str) -> str:
    """Stable dedup key for a URL string (literal, no normalisation)."""
    return hashlib.sha1(key.encode("utf-8")).hexdigest()


def _stored(store: DocumentStore, filt: dict) -> list[str]:
    record = store.find(filt)
    return list(record.get(URLS, [])) if record else []


def stored_counts(store: DocumentStore) -> Tuple[int, int]:
    """(pending, visited) as currently persisted, without hydrating anything."""
    return len(_stored(store, TO_VISIT)), len(_stored(store, VISITED))


class PersistentWorklist(Generic[T]):
    """Pending items in discovery order, processed keys, and every key ever queued."""

    def __init__(self, store: DocumentStore) -> None:
        self.store = store
        self._pending: Deque[T] = deque()
        self._visited: Set[str] = set()
        self._seen: Set[str] = set()     # fingerprints of pending ∪ visited

    def key_of(self, item: T) -> str:
        raise NotImplementedError

    # ---------- resume ----------
    def _load(self, restore: Callable[[str], Optional[T]]) -> None:
        """Rebuild memory from the store; `restore` turns a stored key back into an item."""
        self._pending.clear()
        self._visited.clear()
        self._seen.clear()

        for key in _stored(self.store, VISITED):
            self._visited.add(key)
            self._seen.add(fingerprint(key))

        for key in _stored(self.store, TO_VISIT):
            if fingerprint(key) in self._seen:
                # already processed (or listed twice): keep the lists disjoint
                self.store.update_pull(TO_VISIT, URLS, key)
                continue
            item = restore(key)
            if item is None:
                logger.warning("Dropping %s from %s: could not be restored", key, self.store.name)
                self.store.update_pull(TO_VISIT, URLS, key)
                continue
            current = self.key_of(item)
            if current != key:
                self.store.update_pull(TO_VISIT, URLS, key)
                if fingerprint(current) in self._seen:
                    continue
                self.store.upsert_push(TO_VISIT, URLS, current)
            self._pending.append(item)
            self._seen.add(fingerprint(current))

        logger.info("Loaded %s: %d pending, %d visited",
                    self.store.name, len(self._pending), len(self._visited))

    # ---------- queue ops ----------
    def enqueue(self, item: T) -> bool:
        """Queue `item` unless it was ever queued before. False means duplicate."""
        key = self.key_of(item)
        fp = fingerprint(key)
        if fp in self._seen:
            return False
        self.store.upsert_push(TO_VISIT, URLS, key)
        self._pending.append(item)
        self._seen.add(fp)
        return True

    def take_next(self) -> Optional[T]:
        """Pop the oldest pending item and mark it visited, durably."""
        if not self._pending:
            return None
        item = self._pending[0]
        key = self.key_of(item)
        self.store.update_pull(TO_VISIT, URLS, key)
        self._pending.popleft()
        # a failure here loses `key`: it is in neither persisted list
        self.store.upsert_push(VISITED, URLS, key)
        self._visited.add(key)
        return item

    # ---------- counters ----------
    def has_next(self) -> bool:
        return bool(self._pending)

    def pending_count(self) -> int:
        return len(self._pending)

    def visited_count(self) -> int:
        return len(self._visited)

    def pending_keys(self) -> list[str]:
        return [self.key_of(item) for item in self._pending]

    def visited_keys(self) -> Set[str]:
        return set(self._visited)
