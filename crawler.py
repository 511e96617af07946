# crawler.py — 2025-07-08
"""
Crawl frontier: the URLs still to download and the ones already tried.

Identity is the literal URL string, so `http://x/a` and `http://x/a/` are
two different entries.
"""

from __future__ import annotations

import logging
from typing import Optional

from store import DocumentStore
from worklist import PersistentWorklist

logger = logging.getLogger(__name__)

SEED = {"type": "seed"}


class Frontier(PersistentWorklist[str]):
    """Persistent FIFO of URLs to fetch plus the visited set."""

    def __init__(self, store: DocumentStore) -> None:
        super().__init__(store)
        self.current_url: Optional[str] = None   # being, or about to be, fetched

    def key_of(self, url: str) -> str:
        return url

    def initialize(self, seed_url: str) -> bool:
        """Resume whatever the store holds, then queue `seed_url` if it is new."""
        self._load(restore=lambda url: url)
        self.store.update_set(SEED, "url", seed_url)
        queued = self.enqueue(seed_url)
        if queued:
            logger.info("Queued seed %s", seed_url)
        return queued

    def take_next(self) -> Optional[str]:
        self.current_url = super().take_next()
        return self.current_url


def stored_seed(store: DocumentStore) -> Optional[str]:
    record = store.find(SEED)
    return record.get("url") if record else None
