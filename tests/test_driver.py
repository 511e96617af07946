import pytest

import driver
from conftest import CannedWeb, FlakyStore
from fetcher import RateLimitedFetcher
from memory import PageQueue
from parser import parse_html
from store import Collections, MemoryStore, PersistenceError
from utils import Category
from worklist import TO_VISIT, VISITED

SEED = "http://ex.test/"
DOMAIN = "ex.test"

HOME = """<html><body>
  <a href="http://ex.test/b">b</a>
  <a href="http://other.test/">elsewhere</a>
  <a href="mailto:a@ex.test">mail</a>
  <p>123 Main St, Springfield, IL 62704</p>
  <p>CSCI 101</p>
  <p>March 3, 2024</p>
</body></html>"""

PAGE_B = """<html><body>
  <a href="/">home</a>
  <a href="http://ex.test/c#top">c</a>
  <p>CSCI 101</p>
</body></html>"""


def _total(pipeline, category, value):
    record = pipeline.aggregator.lookup(category, value)
    return record.total_instances if record else None


def test_one_cycle_end_to_end(collections, fetcher, web):
    web.pages[SEED] = HOME
    pipeline = driver.open_pipeline(collections, SEED, DOMAIN, fetcher)

    stats = driver.run_crawl(pipeline, max_iterations=1)

    assert stats.iterations == 1
    assert stats.pages_fetched == stats.pages_scraped == 1
    assert pipeline.frontier.pending_count() == 1
    assert pipeline.frontier.pending_keys() == ["http://ex.test/b"]
    assert _total(pipeline, Category.INTERNAL_URL, "http://ex.test/b") == 1
    assert _total(pipeline, Category.EXTERNAL_URL, "http://other.test/") == 1
    assert _total(pipeline, Category.EMAIL_ADDRESS, "mailto:a@ex.test") == 1
    assert _total(pipeline, Category.ADDRESS, "123 Main St, Springfield, IL 62704") == 1
    assert _total(pipeline, Category.COURSE_CODE, "CSCI 101") == 1
    assert _total(pipeline, Category.US_DATE, "March 3, 2024") == 1


def test_crawl_runs_until_both_queues_are_empty(collections, fetcher, web, clock):
    web.pages[SEED] = HOME
    web.pages["http://ex.test/b"] = PAGE_B
    pipeline = driver.open_pipeline(collections, SEED, DOMAIN, fetcher)

    stats = driver.run_crawl(pipeline)

    # /c is linked from /b but missing, so its download fails once and is never retried
    assert web.requested == [SEED, "http://ex.test/b", "http://ex.test/c"]
    assert stats.pages_fetched == 2
    assert stats.fetch_failures == 1
    assert stats.pages_scraped == 2
    assert not pipeline.frontier.has_next() and not pipeline.page_queue.has_next()
    assert pipeline.frontier.visited_keys() == {SEED, "http://ex.test/b", "http://ex.test/c"}
    assert _total(pipeline, Category.COURSE_CODE, "CSCI 101") == 2
    assert _total(pipeline, Category.INTERNAL_URL, "http://ex.test/c") == 1
    # every download after the first waited out the 10s floor
    assert clock.waits == [pytest.approx(10.0)] * 2


def test_discoveries_are_used_on_the_next_iteration(collections, fetcher, web):
    web.pages[SEED] = HOME
    web.pages["http://ex.test/b"] = PAGE_B
    pipeline = driver.open_pipeline(collections, SEED, DOMAIN, fetcher)
    driver.run_crawl(pipeline, max_iterations=1)
    assert web.requested == [SEED]
    driver.run_crawl(pipeline, max_iterations=1)
    assert web.requested == [SEED, "http://ex.test/b"]


def test_resume_continues_where_the_last_run_stopped(collections, limiter, web):
    web.pages[SEED] = HOME
    web.pages["http://ex.test/b"] = PAGE_B
    first = driver.open_pipeline(collections, SEED, DOMAIN, RateLimitedFetcher(limiter, fetch=web))
    driver.run_crawl(first, max_iterations=1)

    again = CannedWeb(web.pages)
    second = driver.open_pipeline(collections, SEED, DOMAIN, RateLimitedFetcher(limiter, fetch=again))
    assert second.frontier.pending_keys() == ["http://ex.test/b"]
    assert second.frontier.visited_keys() == {SEED}
    driver.run_crawl(second)
    assert SEED not in again.requested
    assert _total(second, Category.COURSE_CODE, "CSCI 101") == 2


def test_page_queue_resume_downloads_pending_pages_again(fetcher, web):
    store = MemoryStore()
    store.upsert_push(TO_VISIT, "urls", SEED)
    store.upsert_push(TO_VISIT, "urls", "http://ex.test/gone")
    web.pages[SEED] = HOME

    queue = PageQueue(store)
    queue.initialize(restore=fetcher.fetch)

    assert queue.pending_keys() == [SEED]
    assert store.find(TO_VISIT)["urls"] == [SEED]


def test_page_queue_resume_follows_redirected_location():
    store = MemoryStore()
    store.upsert_push(TO_VISIT, "urls", "http://ex.test/old")
    queue = PageQueue(store)
    queue.initialize(restore=lambda url: parse_html("<p>x</p>", "http://ex.test/new"))
    assert queue.pending_keys() == ["http://ex.test/new"]
    assert store.find(TO_VISIT)["urls"] == ["http://ex.test/new"]
    assert queue.take_next().location == "http://ex.test/new"
    assert store.find(VISITED)["urls"] == ["http://ex.test/new"]


def test_same_page_reached_twice_is_scraped_once(collections, fetcher, web):
    web.pages[SEED] = '<a href="http://ex.test/alias">alias</a>'
    pipeline = driver.open_pipeline(collections, SEED, DOMAIN, fetcher)
    # the alias redirects back to the seed page
    web.pages["http://ex.test/alias"] = web.pages[SEED]
    original = fetcher._fetch
    fetcher._fetch = lambda url, timeout=None: parse_html(original(url).soup.decode(), SEED)

    stats = driver.run_crawl(pipeline)
    assert stats.pages_fetched == 2
    assert stats.pages_scraped == 1


def test_storage_outage_gives_up_after_repeated_failures(fetcher, web):
    crawler_urls = FlakyStore()
    collections = Collections(crawler_urls, MemoryStore(), MemoryStore())
    web.pages[SEED] = HOME
    pipeline = driver.open_pipeline(collections, SEED, DOMAIN, fetcher)
    crawler_urls.refuse.append(VISITED)

    with pytest.raises(PersistenceError):
        driver.run_crawl(pipeline, max_consecutive_failures=1)


def test_storage_failure_is_logged_and_the_loop_goes_on(fetcher, web):
    crawler_urls = FlakyStore()
    collections = Collections(crawler_urls, MemoryStore(), MemoryStore())
    web.pages[SEED] = HOME
    pipeline = driver.open_pipeline(collections, SEED, DOMAIN, fetcher)
    pipeline.frontier.enqueue("http://ex.test/other")
    crawler_urls.refuse.append(VISITED)

    stats = driver.run_crawl(pipeline, max_iterations=1, max_consecutive_failures=3)
    assert stats.persistence_errors == 1
    assert pipeline.frontier.pending_keys() == ["http://ex.test/other"]
