import pytest
import requests

from fetcher import RateLimitedFetcher, RateLimiter
from parser import parse_html
from store import MemoryStore, PersistenceError, memory_collections


class FakeClock:
    """Manual clock; `wait` advances it instead of sleeping."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.waits = []

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds

    def wait(self, seconds):
        self.waits.append(seconds)
        self.now += seconds
        return False


class CannedWeb:
    """Serves fixed HTML per URL; anything else fails like a dead link."""

    def __init__(self, pages=None):
        self.pages = dict(pages or {})
        self.requested = []

    def __call__(self, url, timeout=None):
        self.requested.append(url)
        if url not in self.pages:
            raise requests.ConnectionError(f"no route to {url}")
        return parse_html(self.pages[url], url)


class FlakyStore(MemoryStore):
    """MemoryStore that refuses pushes into chosen records."""

    def __init__(self):
        super().__init__("flaky")
        self.refuse = []

    def upsert_push(self, filt, field, value):
        if filt in self.refuse:
            raise PersistenceError(f"write to {filt} refused")
        super().upsert_push(filt, field, value)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def limiter(clock):
    return RateLimiter(default_interval=10.0, clock=clock, waiter=clock.wait)


@pytest.fixture
def web():
    return CannedWeb()


@pytest.fixture
def fetcher(limiter, web):
    return RateLimitedFetcher(limiter, fetch=web)


@pytest.fixture
def collections():
    return memory_collections()


@pytest.fixture
def make_page():
    def _make(location, body):
        return parse_html(f"<html><body>{body}</body></html>", location)
    return _make
