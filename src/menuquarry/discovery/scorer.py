"""
Heuristic relevance scoring for candidate menu URLs.
"""

from __future__ import annotations

from typing import Dict, Iterable, List
from urllib.parse import urlparse

from menuquarry.protocols import Candidate

PDF_BONUS = 60
HTML_BONUS = 10
DEPTH_PENALTY = 5

KEYWORD_WEIGHTS: Dict[str, int] = {
    # menu vocabulary
    "menu": 25,
    "carte": 25,
    "speisekarte": 25,
    "card": 20,
    "carta": 20,
    "online-ordering": 15,
    "order": 10,
    "speisen": 10,
    "food": 5,
    "dining": 5,
    "dinner": 5,
    "lunch": 5,
    "drinks": 5,
    "wine": 5,
    # pages that are almost never the menu
    "contact": -50,
    "about": -50,
    "blog": -50,
    "jobs": -50,
    "careers": -50,
    "privacy": -50,
    "legal": -40,
    "impressum": -40,
    "gallery": -30,
    "news": -30,
    "event": -30,
}


def score_url(url: str) -> int:
    """
    Score a URL by how likely it is to hold the menu.

    Pure and deterministic. Substring matches compound: ``speisekarte`` also
    contains ``karte`` but not ``carte``, while ``/menu/menu-du-jour`` counts
    ``menu`` twice.
    """
    lowered = url.lower()
    path = urlparse(lowered).path
    score = 0

    # download links often carry the file name in the query (?file=menu.pdf)
    if lowered.endswith(".pdf") or path.endswith(".pdf"):
        score += PDF_BONUS
    elif lowered.endswith((".html", ".htm")) or path.endswith((".html", ".htm")):
        score += HTML_BONUS

    for keyword, weight in KEYWORD_WEIGHTS.items():
        occurrences = lowered.count(keyword)
        if occurrences:
            score += weight * occurrences

    segments = [segment for segment in path.split("/") if segment]
    if len(segments) > 1:
        score -= DEPTH_PENALTY * (len(segments) - 1)

    return score


def rank_candidates(urls: Iterable[str], limit: int = 15) -> List[Candidate]:
    """Highest score first, URL order breaking ties, truncated to ``limit``."""
    candidates = [Candidate(url=url, score=score_url(url)) for url in set(urls)]
    candidates.sort(key=lambda c: (-c.score, c.url))
    return candidates[:limit]
