# driver.py — 2025-07-08
"""
Alternating two-stage loop: download one page, then scrape one page.

Links found while scraping go back into the frontier, so a step's
discoveries are picked up on the next iteration. The loop ends only when
both queues are empty after a full iteration.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import NamedTuple, Optional, Tuple

import config
import extractor
from crawler import Frontier
from facts import Aggregator
from fetcher import RateLimitedFetcher
from memory import PageQueue
from parser import Page
from store import Collections, PersistenceError

logger = logging.getLogger(__name__)


@dataclass
class CrawlStats:
    iterations: int = 0
    pages_fetched: int = 0
    fetch_failures: int = 0
    pages_scraped: int = 0
    links_queued: int = 0
    persistence_errors: int = 0


class Pipeline(NamedTuple):
    frontier: Frontier
    page_queue: PageQueue
    aggregator: Aggregator
    fetcher: RateLimitedFetcher
    domain: str


def open_pipeline(collections: Collections, seed_url: str, domain: str,
                  fetcher: RateLimitedFetcher) -> Pipeline:
    """Build both queues from the store (resuming any earlier run) and queue the seed."""
    frontier = Frontier(collections.crawler_urls)
    frontier.initialize(seed_url)
    page_queue = PageQueue(collections.scraper_urls)
    page_queue.initialize(restore=fetcher.fetch)
    return Pipeline(frontier, page_queue, Aggregator(collections.scraper_data), fetcher, domain)


# ─────────────────────────── single steps ─────────────────────────
def crawl_step(frontier: Frontier, page_queue: PageQueue,
               fetcher: RateLimitedFetcher) -> Tuple[Optional[str], Optional[Page]]:
    """Take the next URL, download it, hand the page to the page queue."""
    url = frontier.take_next()
    if url is None:
        return None, None
    page = fetcher.fetch(url)
    if page is not None and not page_queue.enqueue(page):
        logger.debug("Page %s (from %s) was already queued", page.location, url)
    return url, page


def scrape_step(page_queue: PageQueue, aggregator: Aggregator, frontier: Frontier,
                domain: str) -> Tuple[Optional[str], int]:
    """Take the next page, extract its facts, record them; returns (location, links queued)."""
    page = page_queue.take_next()
    if page is None:
        return None, 0
    page_facts = extractor.extract(page, domain)
    queued = aggregator.record(page.location, page_facts, enqueue=frontier.enqueue)
    return page.location, queued


def _log_progress(frontier: Frontier, page_queue: PageQueue) -> None:
    logger.info(
        "Crawler visited %d of %d discovered pages; scraper visited %d of %d downloaded pages",
        frontier.visited_count(), frontier.visited_count() + frontier.pending_count(),
        page_queue.visited_count(), page_queue.visited_count() + page_queue.pending_count(),
    )


# ───────────────────────── main driver loop ──────────────────────────
def run_crawl(
    pipeline: Pipeline,
    max_iterations: Optional[int] = None,
    progress_every: int = config.PROGRESS_EVERY,
    max_consecutive_failures: int = config.MAX_CONSECUTIVE_FAILURES,
) -> CrawlStats:
    frontier, page_queue, aggregator, fetcher, domain = pipeline
    stats = CrawlStats()
    failures = 0

    while frontier.has_next() or page_queue.has_next():
        if max_iterations is not None and stats.iterations >= max_iterations:
            logger.info("Stopping after %d iterations", stats.iterations)
            break
        if fetcher.limiter.cancelled:
            break
        stats.iterations += 1
        last_error: Optional[PersistenceError] = None

        # ---------- stage 1: download ----------
        try:
            url, page = crawl_step(frontier, page_queue, fetcher)
            if url is not None:
                if page is None:
                    stats.fetch_failures += 1
                else:
                    stats.pages_fetched += 1
        except PersistenceError as exc:
            logger.error("Crawler step failed: %s", exc)
            stats.persistence_errors += 1
            last_error = exc

        # ---------- stage 2: scrape ----------
        try:
            location, queued = scrape_step(page_queue, aggregator, frontier, domain)
            if location is not None:
                stats.pages_scraped += 1
                stats.links_queued += queued
        except PersistenceError as exc:
            logger.error("Scraper step failed: %s", exc)
            stats.persistence_errors += 1
            last_error = exc

        failures = failures + 1 if last_error else 0
        if max_consecutive_failures and failures >= max_consecutive_failures:
            raise PersistenceError(
                f"giving up after {failures} iterations with storage errors"
            ) from last_error

        if progress_every and stats.iterations % progress_every == 0:
            _log_progress(frontier, page_queue)

    _log_progress(frontier, page_queue)
    return stats
