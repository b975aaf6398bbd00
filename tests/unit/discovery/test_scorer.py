"""
Tests for candidate URL scoring and ranking.
"""

import pytest
from hypothesis import given
from hypothesis import strategies as st
from menuquarry.discovery.scorer import (
    DEPTH_PENALTY,
    HTML_BONUS,
    KEYWORD_WEIGHTS,
    PDF_BONUS,
    rank_candidates,
    score_url,
)

BASE = "https://bistro.example"

# Dot-free tokens so that appending ".pdf" cannot disturb any other scoring rule.
tokens = st.text(alphabet="abcdefghijklmnopqrstuvwxyz0123456789-_", min_size=1, max_size=12)
path_segments = st.lists(tokens, min_size=1, max_size=4)
queries = st.one_of(st.just(""), st.builds(lambda key, value: f"?{key}={value}", tokens, tokens))
fragments = st.one_of(st.just(""), tokens.map(lambda token: f"#{token}"))


@pytest.mark.unit
class TestScoreUrl:
    """Scoring rules."""

    def test_pdf_menu_scores_highest(self):
        assert score_url(f"{BASE}/menu.pdf") == PDF_BONUS + KEYWORD_WEIGHTS["menu"]

    def test_html_suffix_bonus(self):
        assert score_url(f"{BASE}/carte.html") == HTML_BONUS + KEYWORD_WEIGHTS["carte"]
        assert score_url(f"{BASE}/carte.htm") == HTML_BONUS + KEYWORD_WEIGHTS["carte"]

    def test_suffix_is_case_insensitive(self):
        assert score_url(f"{BASE}/MENU.PDF") == score_url(f"{BASE}/menu.pdf")

    @pytest.mark.parametrize(
        "url",
        [
            f"{BASE}/download?file=menu.pdf",
            f"{BASE}/files/get.php?id=carte.pdf",
            f"{BASE}/#menu.pdf",
            f"{BASE}/menu.pdf?v=3",
        ],
    )
    def test_pdf_bonus_outside_the_path(self, url):
        base_score = score_url(url.replace(".pdf", ""))
        assert score_url(url) - base_score == PDF_BONUS

    def test_negative_keywords(self):
        assert score_url(f"{BASE}/contact") == KEYWORD_WEIGHTS["contact"]
        assert score_url(f"{BASE}/about") < 0

    def test_depth_penalty(self):
        """Each segment beyond the first costs the depth penalty."""
        assert score_url(f"{BASE}/a/b/c") == -2 * DEPTH_PENALTY
        assert score_url(f"{BASE}/fr/carte") == KEYWORD_WEIGHTS["carte"] - DEPTH_PENALTY

    def test_keyword_occurrences_compound(self):
        assert score_url(f"{BASE}/menu/menu-du-jour") == 2 * KEYWORD_WEIGHTS["menu"] - DEPTH_PENALTY

    def test_root_scores_zero(self):
        assert score_url(f"{BASE}/") == 0
        assert score_url(BASE) == 0

    def test_deterministic(self):
        url = f"{BASE}/restaurant/speisekarte.pdf"
        assert score_url(url) == score_url(url)

    @given(path_segments, queries, fragments)
    def test_pdf_suffix_adds_exactly_the_bonus(self, segments, query, fragment):
        """Appending .pdf changes the score by exactly the PDF bonus, all else equal."""
        url = f"{BASE}/" + "/".join(segments) + query + fragment
        assert score_url(url + ".pdf") - score_url(url) == PDF_BONUS


@pytest.mark.unit
class TestRankCandidates:
    """Ordering, de-duplication and truncation."""

    def test_highest_score_first(self):
        ranked = rank_candidates([f"{BASE}/contact", f"{BASE}/menu.pdf", f"{BASE}/menu", BASE])
        assert [c.url for c in ranked] == [f"{BASE}/menu.pdf", f"{BASE}/menu", BASE, f"{BASE}/contact"]
        assert ranked[0].score == PDF_BONUS + KEYWORD_WEIGHTS["menu"]

    def test_duplicates_collapse(self):
        ranked = rank_candidates([f"{BASE}/menu", f"{BASE}/menu", f"{BASE}/menu"])
        assert len(ranked) == 1

    def test_ties_break_by_url(self):
        ranked = rank_candidates([f"{BASE}/b", f"{BASE}/a", f"{BASE}/c"])
        assert [c.url for c in ranked] == [f"{BASE}/a", f"{BASE}/b", f"{BASE}/c"]

    def test_limit(self):
        urls = [f"{BASE}/page-{i}" for i in range(40)]
        assert len(rank_candidates(urls, limit=15)) == 15
        assert rank_candidates([], limit=15) == []

    @given(st.lists(path_segments.map(lambda segs: f"{BASE}/" + "/".join(segs)), max_size=30))
    def test_ranking_is_sorted_and_unique(self, urls):
        ranked = rank_candidates(urls, limit=100)
        scores = [c.score for c in ranked]
        assert scores == sorted(scores, reverse=True)
        assert len({c.url for c in ranked}) == len(ranked) == len(set(urls))
