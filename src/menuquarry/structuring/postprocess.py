"""
Pre-processing of text sent to the structuring service and normalization of
what comes back.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Mapping, Tuple

import structlog

from menuquarry.extractor.text_scoring import count_prices
from menuquarry.protocols import PRICE_UNKNOWN, Menu, MenuItem

logger = structlog.get_logger(__name__)

SEGMENT_SEPARATOR = "\n\n"
_BLANK_LINES = re.compile(r"\n\s*\n")
_KEY_SEPARATORS = re.compile(r"[\s\-]+")


def _windows(segment: str, budget: int) -> List[str]:
    """Split an oversized segment at whitespace into pieces of at most ``budget`` characters."""
    pieces: List[str] = []
    rest = segment
    while len(rest) > budget:
        cut = rest.rfind(" ", 0, budget + 1)
        if cut <= 0:
            cut = budget
        piece = rest[:cut].rstrip()
        if piece:
            pieces.append(piece)
        rest = rest[cut:].lstrip()
    if rest:
        pieces.append(rest)
    return pieces


def _segments(text: str, budget: int) -> List[str]:
    segments: List[str] = []
    for paragraph in _BLANK_LINES.split(text):
        paragraph = paragraph.strip()
        if not paragraph:
            continue
        if len(paragraph) <= budget:
            segments.append(paragraph)
            continue
        for line in paragraph.splitlines():
            line = line.strip()
            if not line:
                continue
            segments.extend([line] if len(line) <= budget else _windows(line, budget))
    return segments


def prepare_text(text: str, budget: int = 16000) -> str:
    """
    Fit ``text`` into ``budget`` characters, keeping the most price-dense parts.

    Texts within budget are returned unchanged. Otherwise the text is split into
    paragraph-like segments, the segments with the most price-like patterns are
    kept greedily (earlier segments win ties) and re-emitted in original order.
    The result never exceeds ``budget``.
    """
    if len(text) <= budget:
        return text

    segments = _segments(text, budget)
    ranked: List[Tuple[int, int]] = sorted(
        ((-count_prices(segment), position) for position, segment in enumerate(segments)),
    )

    chosen: List[int] = []
    used = 0
    for _, position in ranked:
        cost = len(segments[position]) + (len(SEGMENT_SEPARATOR) if chosen else 0)
        if used + cost <= budget:
            chosen.append(position)
            used += cost

    prepared = SEGMENT_SEPARATOR.join(segments[position] for position in sorted(chosen))
    logger.info(
        "Input text exceeded structuring budget",
        original_length=len(text),
        prepared_length=len(prepared),
        segments=len(segments),
        kept=len(chosen),
    )
    return prepared[:budget]


def _coerce_text(value: Any) -> str:
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)):
        return str(value)
    return ""


def normalize_category(key: Any) -> str:
    """``"Main Courses"`` and ``"main-courses"`` both become ``main_courses``."""
    return _KEY_SEPARATORS.sub("_", str(key).strip().lower())


def post_process_menu(raw: Any, sentinel: str = PRICE_UNKNOWN) -> Menu:
    """
    Normalize a raw structuring response into a ``Menu``.

    Non-list categories become empty, items that are not objects or have no
    name are dropped, missing prices become ``sentinel``, empty descriptions
    are dropped, and unknown categories are kept in ``Menu.extra``.
    """
    categories: Dict[str, List[MenuItem]] = {}
    if not isinstance(raw, Mapping):
        return Menu()

    dropped = 0
    for key, value in raw.items():
        name = normalize_category(key)
        if not name:
            continue
        items = categories.setdefault(name, [])
        if not isinstance(value, list):
            continue
        for entry in value:
            if not isinstance(entry, Mapping):
                dropped += 1
                continue
            item_name = _coerce_text(entry.get("name"))
            if not item_name:
                dropped += 1
                continue
            items.append(
                MenuItem(
                    name=item_name,
                    price=_coerce_text(entry.get("price")) or sentinel,
                    description=_coerce_text(entry.get("description")) or None,
                    category=name,
                )
            )

    if dropped:
        logger.debug("Dropped malformed menu items", dropped=dropped)
    return Menu.from_dict(categories)
