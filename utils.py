# utils.py — 2025-07-08
from __future__ import annotations

from collections import Counter
from enum import Enum
from typing import Dict, Iterable, List, Mapping

# ─────────────────────────── constants ────────────────────────────
REPORT_WIDTH = 168                # total width of a printed fact table
COUNT_WIDTH  = 15
# ──────────────────────────────────────────────────────────────────


class Category(str, Enum):
    """The fixed set of fact kinds pulled out of a page."""

    INTERNAL_URL  = "InternalUrl"
    EXTERNAL_URL  = "ExternalUrl"
    IMAGE_URL     = "ImageUrl"
    PHONE_NUMBER  = "PhoneNumber"
    EMAIL_ADDRESS = "EmailAddress"
    ADDRESS       = "Address"
    US_DATE       = "UsDate"
    COURSE_CODE   = "CourseCode"
    UNKNOWN_URL   = "UnknownUrl"


PageFacts = Dict[Category, Counter]

# one/two-letter shortcuts accepted by `report`
CATEGORY_CODES: Dict[str, Category] = {
    "A":  Category.ADDRESS,
    "C":  Category.COURSE_CODE,
    "D":  Category.US_DATE,
    "E":  Category.EMAIL_ADDRESS,
    "EU": Category.EXTERNAL_URL,
    "I":  Category.IMAGE_URL,
    "IU": Category.INTERNAL_URL,
    "P":  Category.PHONE_NUMBER,
    "U":  Category.UNKNOWN_URL,
}


def parse_category(token: str) -> Category:
    """Accept a shortcut ("EU"), a value ("ExternalUrl") or a member name ("external_url")."""
    t = token.strip()
    if t.upper() in CATEGORY_CODES:
        return CATEGORY_CODES[t.upper()]
    for cat in Category:
        if t.lower() in (cat.value.lower(), cat.name.lower()):
            return cat
    raise ValueError(f"Unknown category “{token}”")


# ───────────────────────── count merging ──────────────────────────
def merge_counts(into: PageFacts, other: Mapping[Category, Mapping[str, int]]) -> PageFacts:
    """Fold `other` into `into`, summing counts for any (category, value) seen in both."""
    for category, counts in other.items():
        bucket = into.setdefault(category, Counter())
        for value, n in counts.items():
            bucket[value] += n
    return into


# ───────────────────────── report tables ──────────────────────────
def format_fact_table(category: Category, rows: Iterable, width: int = REPORT_WIDTH) -> str:
    """Fixed-width value | total table, one row per FactRecord-like object."""
    col = width - COUNT_WIDTH - 3
    rule = "-" * width
    lines: List[str] = []
    for r in rows:
        lines.append(f"{r.value[:col]:<{col}} | {r.total_instances:>{COUNT_WIDTH}}")
    header = [
        f"Found {len(lines)} unique {category.value}s:",
        rule,
        f"{category.value:<{col}} | {'Number found':<{COUNT_WIDTH}}",
        rule,
    ]
    return "\n".join(header + lines)
