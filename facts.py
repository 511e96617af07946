# facts.py — 2025-07-08
"""
Durable fact store: one record per (category, value) with a running total
and the per-page history that produced it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from store import DocumentStore, PersistenceError
from utils import Category

logger = logging.getLogger(__name__)

TOTAL   = "totalInstances"
HISTORY = "numInstancesByUrl"
ORDER   = [(TOTAL, -1), ("value", 1)]


@dataclass
class FactRecord:
    category: Category
    value: str
    total_instances: int = 0
    per_source_page: List[Tuple[str, int]] = field(default_factory=list)

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "FactRecord":
        return cls(
            category=Category(doc["type"]),
            value=doc["value"],
            total_instances=int(doc.get(TOTAL, 0)),
            per_source_page=[(h["url"], int(h["count"])) for h in doc.get(HISTORY, [])],
        )


class Aggregator:
    """Merges page-local counts into the global fact records."""

    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    @staticmethod
    def _key(category: Category, value: str) -> Dict[str, str]:
        return {"type": category.value, "value": value}

    def record(
        self,
        page_url: str,
        page_facts: Mapping[Category, Mapping[str, int]],
        enqueue: Optional[Callable[[str], bool]] = None,
    ) -> int:
        """
        Feed internal links to `enqueue`, then add every count to its record.
        Returns how many links were newly queued (duplicates are normal).

        A link that cannot be queued does not stop the counts from being
        written; the first such error is raised once they are.
        """
        queued = 0
        enqueue_error: Optional[PersistenceError] = None
        if enqueue is not None:
            for url in page_facts.get(Category.INTERNAL_URL, {}):
                if not url:
                    continue
                try:
                    if enqueue(url):
                        queued += 1
                except PersistenceError as exc:
                    logger.error("Could not queue %s from %s: %s", url, page_url, exc)
                    enqueue_error = enqueue_error or exc

        written = 0
        for category, counts in page_facts.items():
            for value, count in counts.items():
                # $push + $inc in one update: no lost increments between writers
                self.store.push_and_increment(
                    self._key(category, value),
                    HISTORY, {"url": page_url, "count": count},
                    TOTAL, count,
                )
                written += 1
        logger.debug("Recorded %d facts from %s (%d new links)", written, page_url, queued)
        if enqueue_error is not None:
            raise enqueue_error
        return queued

    # ---------- read side ----------
    def lookup(self, category: Category, value: str) -> Optional[FactRecord]:
        doc = self.store.find(self._key(category, value))
        return FactRecord.from_document(doc) if doc else None

    def facts_for(self, category: Category) -> List[FactRecord]:
        """Most frequent first, ties by value."""
        docs = self.store.find_all({"type": category.value}, sort=ORDER)
        return [FactRecord.from_document(d) for d in docs]

    def all_facts(self) -> Dict[Category, List[FactRecord]]:
        return {category: self.facts_for(category) for category in Category}
