#fetcher.py
"""
One polite download at a time.

The gap before the next request is max(2 × last duration, default interval)
minus the time already passed since the last download ended, never negative.
A slow server gets more breathing room; a fast one is still held to the floor.
"""

from __future__ import annotations

import logging
import random
import threading
import time
from typing import Callable, Optional

import requests

import config
import parser
from parser import Page

logger = logging.getLogger(__name__)

_UA_POOL = [
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 13_5) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.4 Safari/605.1.15",
    "Mozilla/5.0 (Macintosh; arm64; Mac OS X 14_0) AppleWebKit/605.1.15 (KHTML, like Gecko)",
]


def _ua() -> str:
    return random.choice(_UA_POOL)


class NotHtmlError(ValueError):
    """The response was fine but not a page we can scrape."""


def _is_html(resp) -> bool:
    ct = resp.headers.get("content-type", "")
    return "text/html" in ct or "application/xhtml+xml" in ct


def fetch_document(url: str, timeout: float = config.FETCH_TIMEOUT_SEC) -> Page:
    """GET + parse. Raises requests.RequestException / NotHtmlError on failure."""
    r = requests.get(url, headers={"User-Agent": _ua()}, timeout=timeout)
    r.raise_for_status()
    if not _is_html(r):
        raise NotHtmlError(f"{r.headers.get('content-type', '?')} at {url}")
    return parser.parse_html(r.text, r.url or url)


class RateLimiter:
    """Tracks the last download and blocks until the next one is allowed."""

    def __init__(
        self,
        default_interval: float = config.DEFAULT_INTERVAL_SEC,
        clock: Callable[[], float] = time.monotonic,
        waiter: Optional[Callable[[float], bool]] = None,
    ) -> None:
        self.default_interval = default_interval
        self.clock = clock
        self._cancelled = threading.Event()
        # waiter(seconds) -> True when the wait was cut short
        self._waiter = waiter or self._cancelled.wait
        self.last_fetch_duration = 0.0
        self.last_fetch_end = clock() - default_interval   # first download goes out at once

    def next_wait(self) -> float:
        elapsed = self.clock() - self.last_fetch_end
        gap = max(2 * self.last_fetch_duration, self.default_interval)
        return max(gap - elapsed, 0.0)

    def wait(self) -> bool:
        """Block until the next download may start. False if cancelled meanwhile."""
        if self._cancelled.is_set():
            return False
        delay = self.next_wait()
        if delay > 0:
            logger.info("Waiting %.1fs before downloading the next page", delay)
            if self._waiter(delay):
                return False
        return not self._cancelled.is_set()

    def record(self, started: float) -> None:
        self.last_fetch_end = self.clock()
        self.last_fetch_duration = self.last_fetch_end - started

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()


class RateLimitedFetcher:
    """Fetch step: wait for the limiter, download once, never retry."""

    def __init__(
        self,
        limiter: Optional[RateLimiter] = None,
        fetch: Callable[..., Page] = fetch_document,
        timeout: float = config.FETCH_TIMEOUT_SEC,
    ) -> None:
        self.limiter = limiter or RateLimiter()
        self._fetch = fetch
        self.timeout = timeout

    def fetch(self, url: str) -> Optional[Page]:
        if not self.limiter.wait():
            logger.info("Download of %s cancelled", url)
            return None

        started = self.limiter.clock()
        try:
            page = self._fetch(url, timeout=self.timeout)
        except (requests.RequestException, ValueError) as exc:
            logger.warning("Fetch failed (%s): %s", exc.__class__.__name__, url)
            return None
        finally:
            # failed requests still hit the server, so they count too
            self.limiter.record(started)

        logger.info("Fetched %s in %.2fs", url, self.limiter.last_fetch_duration)
        return page

    def cancel(self) -> None:
        self.limiter.cancel()
