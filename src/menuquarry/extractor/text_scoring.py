"""
Shared text heuristics: price detection, menu vocabulary, and cleanup.

Used by the HTML extractor, the rendered-page extractor and the structuring
pre-processor so that all three agree on what "looks like a menu".
"""

from __future__ import annotations

import re
from typing import Tuple

# Currency amount on either side of the number, or a bare decimal price (12.50 / 12,50).
PRICE_PATTERN = re.compile(
    r"(?:[€$£¥]\s?\d{1,4}(?:[.,]\d{1,2})?)"
    r"|(?:\b\d{1,4}(?:[.,]\d{1,2})?\s?(?:€|\$|£|¥|EUR\b|CHF\b|USD\b|GBP\b|euros?\b))"
    r"|(?:\b\d{1,4}[.,]\d{2}\b)",
    re.IGNORECASE,
)

MENU_KEYWORDS: Tuple[str, ...] = (
    # en
    "menu",
    "starter",
    "appetizer",
    "main course",
    "mains",
    "dessert",
    "drinks",
    "beverage",
    "salad",
    "soup",
    "wine",
    "beer",
    "side",
    # fr
    "carte",
    "entrée",
    "plat",
    "fromage",
    "boisson",
    "vin",
    "formule",
    # de
    "speisekarte",
    "vorspeise",
    "hauptgericht",
    "nachspeise",
    "nachtisch",
    "getränke",
    "suppe",
    # it
    "antipast",
    "primi",
    "secondi",
    "dolci",
    "bevande",
    "contorni",
    # es
    "carta",
    "entrantes",
    "principales",
    "postres",
    "bebidas",
    "tapas",
)

KEYWORD_PATTERN = re.compile(r"\b(?:" + "|".join(re.escape(k) for k in MENU_KEYWORDS) + r")", re.IGNORECASE)

# Word characters, whitespace, common punctuation and currency symbols survive cleanup.
_DISALLOWED_CHARS = re.compile(r"[^\w\s.,;:!?'\"()\[\]/&%+*#@€$£¥-]")
_HORIZONTAL_WS = re.compile(r"[^\S\n]+")
_SPACE_AROUND_NEWLINE = re.compile(r" ?\n ?")
_NEWLINE_RUNS = re.compile(r"\n{2,}")


def count_prices(text: str) -> int:
    return len(PRICE_PATTERN.findall(text))


def count_keywords(text: str) -> int:
    return len(KEYWORD_PATTERN.findall(text))


def score_region_text(text: str, price_weight: int = 10) -> int:
    """``price_count * price_weight + keyword_count``."""
    return count_prices(text) * price_weight + count_keywords(text)


def clean_text(text: str) -> str:
    """
    Normalize extracted text.

    Strips characters outside word characters, whitespace, common punctuation
    and currency symbols, collapses horizontal whitespace to one space and line
    break runs to a single newline. Idempotent.
    """
    if not text:
        return ""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _DISALLOWED_CHARS.sub("", text)
    text = _HORIZONTAL_WS.sub(" ", text)
    text = _SPACE_AROUND_NEWLINE.sub("\n", text)
    text = _NEWLINE_RUNS.sub("\n", text)
    return text.strip()
