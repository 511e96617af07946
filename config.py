# config.py — 2025-07-08
"""Crawler configuration from environment variables."""
from __future__ import annotations

import os
from dotenv import load_dotenv

load_dotenv()


def _as_float(name: str, default: float) -> float:
    raw = os.getenv(name, "")
    try:
        return float(raw) if raw.strip() else default
    except ValueError:
        return default


def _as_int(name: str, default: int) -> int:
    raw = os.getenv(name, "")
    try:
        return int(raw) if raw.strip() else default
    except ValueError:
        return default


# ─────────────────────────── storage ──────────────────────────────
MONGO_URI = os.getenv("MONGO_URI", "mongodb://localhost:27017")
CRAWLER_URLS_COLLECTION = "crawlerUrls"
SCRAPER_URLS_COLLECTION = "scraperUrls"
SCRAPER_DATA_COLLECTION = "scraperData"

# ─────────────────────────── crawl target ─────────────────────────
SEED_URL = os.getenv("CRAWL_SEED_URL", "https://www.touro.edu")
CRAWL_DOMAIN = os.getenv("CRAWL_DOMAIN", "touro.edu")

# ─────────────────────────── tunables ─────────────────────────────
DEFAULT_INTERVAL_SEC     = _as_float("CRAWL_DEFAULT_INTERVAL_SEC", 10.0)
FETCH_TIMEOUT_SEC        = _as_float("CRAWL_FETCH_TIMEOUT_SEC", 20.0)
PROGRESS_EVERY           = _as_int("CRAWL_PROGRESS_EVERY", 10)
MAX_CONSECUTIVE_FAILURES = _as_int("CRAWL_MAX_CONSECUTIVE_FAILURES", 5)
LOG_LEVEL                = os.getenv("LOG_LEVEL", "INFO").upper()
# ──────────────────────────────────────────────────────────────────


def db_name_for(domain: str) -> str:
    # "." and "/" are not allowed in MongoDB database names
    return domain.replace(".", "_").replace("/", "#") + "-Data"
