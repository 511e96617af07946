# extractor.py — 2025-07-08
"""
Turn one parsed page into counted facts.

Two independent passes whose results are summed together:
  • text patterns (addresses, US dates, course codes) over each element's own text
  • link taxonomy over <a href> targets, plus <img src> sources as ImageUrl
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from typing import Dict, Pattern
from urllib.parse import urlparse

from parser import Page
from utils import Category, PageFacts, merge_counts

logger = logging.getLogger(__name__)

# ─────────────────────────── patterns ─────────────────────────────
ADDRESS_RE = re.compile(r"""
    \b(\d+[a-z]?(?:-\d+)?)\s                # house number
    ((?:\d*[a-z]+\.?\s)*[a-z]+\.?),?\s      # street
    ((?:[a-z]+\s)*[a-z]+),\s                # city
    ([a-z]{2}|[a-z]+(?:\s[a-z]+)?),?\s      # state: code or name
    (\d{5})(?:-(\d{4}))?                    # zip (+4)
    (?!\d)
""", re.I | re.X)

_MONTHS = (
    r"JAN(?:UARY|\.)?|FEB(?:RUARY|\.)?|MAR(?:CH|\.)?|APR(?:IL|\.)?|MAY|JUNE?|JULY?|"
    r"AUG(?:UST|\.)?|SEPT?(?:EMBER|\.)?|OCT(?:OBER|\.)?|NOV(?:EMBER|\.)?|DEC(?:EMBER|\.)?|"
    r"0?[1-9]|1[0-2]"
)
US_DATE_RE = re.compile(rf"""
    \b({_MONTHS})                           # month, named or numeric
    (?:\s|\s?[/.-]\s?)
    (0?[1-9]|[12][0-9]|3[01])               # day
    (?:\s|\s?[/.,-]\s?)
    (\d{{4}})\b                             # year
""", re.I | re.X)

COURSE_CODE_RE = re.compile(r"(?<!\w)[A-Z]{4}\s\d{3}(?!\w)")

TEXT_PATTERNS: Dict[Category, Pattern[str]] = {
    Category.ADDRESS:     ADDRESS_RE,
    Category.US_DATE:     US_DATE_RE,
    Category.COURSE_CODE: COURSE_CODE_RE,
}
# ──────────────────────────────────────────────────────────────────


def extract_matching(page: Page, pattern: Pattern[str], category: Category | None = None) -> Counter:
    """Count the first match in every element whose own text matches `pattern`."""
    found: Counter = Counter()
    for text in page.own_texts():
        m = pattern.search(text)
        if m is None:
            continue
        value = m.group(0).strip()
        if not value:
            logger.debug("Skipping empty %s match on %s", category, page.location)
            continue
        found[value] += 1
    return found


# ─────────────────────────── URL taxonomy ─────────────────────────
def strip_fragment(url: str) -> str:
    return url.split("#", 1)[0]


def in_domain(host: str, domain: str) -> bool:
    host, domain = host.lower().strip("."), domain.lower().strip(".")
    return bool(domain) and (host == domain or host.endswith(f".{domain}"))


def classify_url(url: str, domain: str) -> Category:
    """Exactly one of internal / external / email / phone / unknown; first match wins."""
    try:
        parts = urlparse(url)
        host = parts.hostname or ""
    except ValueError:
        return Category.UNKNOWN_URL
    scheme = parts.scheme.lower()
    web = scheme in ("http", "https") and bool(host)

    if web and in_domain(host, domain):
        return Category.INTERNAL_URL
    if web:
        return Category.EXTERNAL_URL
    if scheme == "mailto":
        return Category.EMAIL_ADDRESS
    if scheme == "tel":
        return Category.PHONE_NUMBER
    return Category.UNKNOWN_URL


def extract_urls(page: Page, domain: str) -> PageFacts:
    facts: PageFacts = {}

    images = Counter(page.images())
    if images:
        facts[Category.IMAGE_URL] = images

    # fragments are dropped for links only, so #a and #b count as one target
    targets = Counter(t for t in (strip_fragment(u) for u in page.links()) if t)
    for url, n in targets.items():
        facts.setdefault(classify_url(url, domain), Counter())[url] += n
    return facts


# ─────────────────────────── public API ───────────────────────────
def extract(page: Page, domain: str) -> PageFacts:
    """Category → {value: occurrences on this page}; empty categories are left out."""
    facts: PageFacts = {}
    for category, pattern in TEXT_PATTERNS.items():
        merge_counts(facts, {category: extract_matching(page, pattern, category)})
    merge_counts(facts, extract_urls(page, domain))
    return {c: counts for c, counts in facts.items() if counts}
