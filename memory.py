# memory.py — 2025-07-08
"""
Pages that were downloaded but not scraped yet.

The store only keeps each page's location; on resume pending pages are
downloaded again through the (rate-limited) fetch step.
"""

from __future__ import annotations

from typing import Callable, Optional

from parser import Page
from worklist import PersistentWorklist


class PageQueue(PersistentWorklist[Page]):
    """Persistent FIFO of fetched pages, keyed on their resolved location."""

    def key_of(self, page: Page) -> str:
        return page.location

    def initialize(self, restore: Callable[[str], Optional[Page]]) -> None:
        self._load(restore)
