"""
Tests for URL canonicalization.
"""

import pytest
from menuquarry.utils.urls import canonical_url


@pytest.mark.unit
class TestCanonicalUrl:
    """Comparison keys for candidate URLs."""

    @pytest.mark.parametrize(
        "url, expected",
        [
            ("https://bistro.example", "https://bistro.example/"),
            ("https://bistro.example/", "https://bistro.example/"),
            ("https://bistro.example/menu/", "https://bistro.example/menu"),
            ("https://bistro.example/menu//", "https://bistro.example/menu"),
            ("HTTPS://Bistro.Example/Menu", "https://bistro.example/Menu"),
            ("https://bistro.example/menu#drinks", "https://bistro.example/menu"),
            ("https://bistro.example:8080/carte/", "https://bistro.example:8080/carte"),
        ],
    )
    def test_canonical_forms(self, url, expected):
        assert canonical_url(url) == expected

    def test_query_is_kept(self):
        assert canonical_url("https://bistro.example/get.php?id=menu.pdf") == "https://bistro.example/get.php?id=menu.pdf"
        assert canonical_url("https://bistro.example/get.php?id=1") != canonical_url("https://bistro.example/get.php?id=2")

    def test_trailing_slash_variants_share_a_key(self):
        assert canonical_url("https://bistro.example/menu/") == canonical_url("https://bistro.example/menu")

    def test_idempotent(self):
        once = canonical_url(" https://Bistro.example/carte/#top ")
        assert canonical_url(once) == once
