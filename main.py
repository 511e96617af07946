# main.py — 2025-07-08
import logging

import click

import config
import driver
from crawler import stored_seed
from facts import Aggregator
from fetcher import RateLimitedFetcher, RateLimiter
from store import Collections, PersistenceError, memory_collections, open_collections
from utils import Category, format_fact_table, parse_category
from worklist import stored_counts


def _configure_logging(level: str) -> None:
    if logging.getLogger().handlers:
        return
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO),
                        format="%(levelname)s %(message)s")


def _open(mongo_uri: str, domain: str, in_memory: bool = False) -> Collections:
    if in_memory:
        return memory_collections()
    try:
        return open_collections(mongo_uri, domain)
    except PersistenceError as exc:
        raise click.ClickException(str(exc))


@click.group()
@click.option("--log-level", default=config.LOG_LEVEL, show_default=True, help="Python logging level")
def cli(log_level: str) -> None:
    """Crawl one web domain and collect links, contacts, dates and course codes."""
    _configure_logging(log_level)


@cli.command()
@click.option("--seed", default=config.SEED_URL, show_default=True, help="URL to start from")
@click.option("--domain", default=config.CRAWL_DOMAIN, show_default=True, help="Domain that counts as internal")
@click.option("--mongo-uri", default=config.MONGO_URI, show_default=True)
@click.option("--interval", default=config.DEFAULT_INTERVAL_SEC, show_default=True, type=float,
              help="Minimum seconds between downloads")
@click.option("--timeout", default=config.FETCH_TIMEOUT_SEC, show_default=True, type=float,
              help="Per-request timeout in seconds")
@click.option("--max-iterations", type=int, default=None, help="Stop after N download+scrape rounds")
@click.option("--in-memory", is_flag=True, help="Keep state in memory only (nothing is resumable)")
def crawl(seed: str, domain: str, mongo_uri: str, interval: float, timeout: float,
          max_iterations, in_memory: bool) -> None:
    """Crawl (or resume crawling) DOMAIN starting at SEED."""
    collections = _open(mongo_uri, domain, in_memory)
    fetcher = RateLimitedFetcher(RateLimiter(default_interval=interval), timeout=timeout)
    click.echo(f"Crawling {domain} from {seed} …")
    try:
        pipeline = driver.open_pipeline(collections, seed, domain, fetcher)
        stats = driver.run_crawl(pipeline, max_iterations=max_iterations)
    except KeyboardInterrupt:
        fetcher.cancel()
        click.echo(click.style("Interrupted — progress so far is saved.", fg="yellow"))
        return
    except PersistenceError as exc:
        raise click.ClickException(str(exc))
    finally:
        collections.close()

    click.echo(click.style(
        f"✓ {stats.iterations} rounds: {stats.pages_fetched} downloaded, "
        f"{stats.fetch_failures} failed, {stats.pages_scraped} scraped, "
        f"{stats.links_queued} new links.", fg="green"))


@cli.command()
@click.argument("categories", nargs=-1)
@click.option("--domain", default=config.CRAWL_DOMAIN, show_default=True)
@click.option("--mongo-uri", default=config.MONGO_URI, show_default=True)
@click.option("--limit", default=50, show_default=True, help="Rows per category (0 = all)")
def report(categories, domain: str, mongo_uri: str, limit: int) -> None:
    """
    Print collected facts, most frequent first.

    CATEGORIES are shortcuts (A, C, D, E, EU, I, IU, P, U) or names; none or ALL shows everything.
    """
    if not categories or any(c.upper() == "ALL" for c in categories):
        wanted = list(Category)
    else:
        try:
            wanted = [parse_category(c) for c in categories]
        except ValueError as exc:
            raise click.BadParameter(str(exc), param_hint="CATEGORIES")

    collections = _open(mongo_uri, domain)
    try:
        aggregator = Aggregator(collections.scraper_data)
        totals = {}
        for category in wanted:
            rows = aggregator.facts_for(category)
            totals[category] = len(rows)
            click.echo(format_fact_table(category, rows[:limit] if limit else rows))
            click.echo()
    except PersistenceError as exc:
        raise click.ClickException(str(exc))
    finally:
        collections.close()

    for category, n in totals.items():
        click.echo(f"Found {n} unique {category.value}s.")


@cli.command()
@click.option("--domain", default=config.CRAWL_DOMAIN, show_default=True)
@click.option("--mongo-uri", default=config.MONGO_URI, show_default=True)
def status(domain: str, mongo_uri: str) -> None:
    """Show how far the stored crawl has got."""
    collections = _open(mongo_uri, domain)
    try:
        seed = stored_seed(collections.crawler_urls)
        c_pending, c_visited = stored_counts(collections.crawler_urls)
        s_pending, s_visited = stored_counts(collections.scraper_urls)
    except PersistenceError as exc:
        raise click.ClickException(str(exc))
    finally:
        collections.close()

    click.echo(f"Seed: {seed or '(none)'}")
    click.echo(f"Crawler visited {c_visited} of {c_visited + c_pending} discovered pages.")
    click.echo(f"Scraper visited {s_visited} of {s_visited + s_pending} downloaded pages.")


if __name__ == "__main__":
    cli()
