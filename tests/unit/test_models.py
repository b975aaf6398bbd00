"""
Tests for the menu model, results and the error taxonomy.
"""

import dataclasses

import pytest
from menuquarry.errors import (
    ErrorKind,
    ExtractionEmpty,
    FetchError,
    MenuNotFoundError,
    StructuringUnreachable,
    ValidationFailed,
)
from menuquarry.protocols import Candidate, ExtractionResult, Menu, MenuItem, Outcome, SourceType


@pytest.mark.unit
class TestMenuModel:
    """MenuItem and Menu."""

    def test_item_defaults(self):
        item = MenuItem(name="Soup")
        assert item.price == "N/A"
        assert item.to_dict() == {"name": "Soup", "price": "N/A"}

    def test_item_description_serialized_when_present(self):
        item = MenuItem(name="Steak", price="18€", description="Grass fed")
        assert item.to_dict() == {"name": "Steak", "price": "18€", "description": "Grass fed"}

    def test_empty_name_rejected(self):
        with pytest.raises(ValueError):
            MenuItem(name="")

    def test_item_is_immutable(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            MenuItem(name="Soup").price = "5€"

    def test_categories_order_and_extras(self):
        menu = Menu(
            desserts=[MenuItem(name="Cake")],
            extra={"wines": [MenuItem(name="Chablis", price="9€")]},
        )

        assert [name for name, _ in menu.categories()] == ["starters", "main_courses", "desserts", "drinks", "wines"]
        assert len(menu) == 2
        assert [item.name for item in menu.all_items()] == ["Cake", "Chablis"]

    def test_to_dict_always_has_known_categories(self):
        assert Menu().to_dict() == {"starters": [], "main_courses": [], "desserts": [], "drinks": []}

    def test_from_dict_splits_known_and_extra(self):
        soup, wine = MenuItem(name="Soup"), MenuItem(name="Rioja")
        menu = Menu.from_dict({"starters": [soup], "wines": [wine]})

        assert menu.starters == [soup]
        assert menu.desserts == []
        assert menu.extra == {"wines": [wine]}


@pytest.mark.unit
class TestResults:
    """Extraction results and best-effort outcomes."""

    def test_result_wire_shape(self):
        result = ExtractionResult(
            source=SourceType.PDF,
            menu=Menu(starters=[MenuItem(name="Soup", price="5€")]),
            source_url="https://bistro.example/menu.pdf",
        )

        data = result.to_dict()

        assert data["source"] == "pdf"
        assert data["sourceUrl"] == "https://bistro.example/menu.pdf"
        assert data["menu"]["starters"] == [{"name": "Soup", "price": "5€"}]

    def test_outcome_merges_errors(self):
        first = Outcome(value={"a"})
        second = Outcome(value={"b"}, errors=[FetchError("HTTP 500", status=500)])

        assert first.ok
        first.merge_errors(second)
        assert not first.ok
        assert first.value == {"a"}

    def test_candidate_is_hashable(self):
        assert len({Candidate(url="https://a.example", score=1), Candidate(url="https://a.example", score=1)}) == 1


@pytest.mark.unit
class TestErrors:
    """Error kinds and their serialized form."""

    @pytest.mark.parametrize(
        "error_class, kind",
        [
            (FetchError, ErrorKind.FETCH),
            (ExtractionEmpty, ErrorKind.EXTRACTION_EMPTY),
            (StructuringUnreachable, ErrorKind.STRUCTURING_UNREACHABLE),
            (ValidationFailed, ErrorKind.VALIDATION_FAILED),
        ],
    )
    def test_kinds(self, error_class, kind):
        assert error_class("failed").kind == kind

    def test_to_dict_omits_empty_detail(self):
        assert ExtractionEmpty("Too short").to_dict() == {"error": "Too short", "kind": "extraction_empty"}

    def test_str_includes_url(self):
        error = FetchError("HTTP 404", url="https://bistro.example/menu", status=404)
        assert str(error) == "HTTP 404 (https://bistro.example/menu)"
        assert error.status == 404

    def test_not_found_payload(self):
        error = MenuNotFoundError(detail="3 attempts (fetch_error=3)", attempts=3, failures={"fetch_error": 3})

        data = error.to_dict()

        assert data["kind"] == "not_found"
        assert data["error"].startswith("Searched the entire site")
        assert data["details"] == "3 attempts (fetch_error=3)"
        assert data["attempts"] == 3
        assert data["failures"] == {"fetch_error": 3}
        assert error.status_code == 404
