"""
Core contracts and dataclasses for menuquarry.

The data model is deliberately small: a menu is a set of well-known categories
plus an extension mapping, a candidate is a URL with a heuristic score, and an
extraction result records which format and URL actually produced the menu.
Collaborators (fetching, rendering, structuring) are described as protocols so
the orchestrator can be driven by fakes in tests.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, Iterator, List, Mapping, Optional, Protocol, Tuple, TypeVar, runtime_checkable

T = TypeVar("T")

PRICE_UNKNOWN = "N/A"

MANDATORY_CATEGORIES: Tuple[str, ...] = ("starters", "main_courses", "desserts")
KNOWN_CATEGORIES: Tuple[str, ...] = MANDATORY_CATEGORIES + ("drinks",)


class SourceType(Enum):
    """Format of the resource that yielded a menu."""

    PDF = "pdf"
    HTML = "html"
    JS = "js"


# ============================================================================
# Menu model
# ============================================================================


@dataclass(frozen=True, slots=True)
class MenuItem:
    """A single dish or drink."""

    name: str
    price: str = PRICE_UNKNOWN
    description: Optional[str] = None
    category: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("MenuItem name must be non-empty")

    def to_dict(self) -> Dict[str, str]:
        data = {"name": self.name, "price": self.price}
        if self.description:
            data["description"] = self.description
        return data


@dataclass
class Menu:
    """Known categories as fields, anything else in ``extra``."""

    starters: List[MenuItem] = field(default_factory=list)
    main_courses: List[MenuItem] = field(default_factory=list)
    desserts: List[MenuItem] = field(default_factory=list)
    drinks: List[MenuItem] = field(default_factory=list)
    extra: Dict[str, List[MenuItem]] = field(default_factory=dict)

    def categories(self) -> Iterator[Tuple[str, List[MenuItem]]]:
        """Yield ``(name, items)`` for known categories first, then extras."""
        for name in KNOWN_CATEGORIES:
            yield name, getattr(self, name)
        yield from self.extra.items()

    def all_items(self) -> List[MenuItem]:
        return [item for _, items in self.categories() for item in items]

    def __len__(self) -> int:
        return len(self.all_items())

    def to_dict(self) -> Dict[str, List[Dict[str, str]]]:
        return {name: [item.to_dict() for item in items] for name, items in self.categories()}

    @classmethod
    def from_dict(cls, data: Mapping[str, List[MenuItem]]) -> Menu:
        """Build a menu from an already-normalized ``{category: [MenuItem]}`` mapping."""
        known = {name: list(data.get(name, [])) for name in KNOWN_CATEGORIES}
        extra = {name: list(items) for name, items in data.items() if name not in KNOWN_CATEGORIES}
        return cls(**known, extra=extra)


@dataclass(frozen=True, slots=True)
class Candidate:
    """A URL that may contain a menu, with its heuristic relevance score."""

    url: str
    score: int


@dataclass(frozen=True)
class ExtractionResult:
    """Terminal artifact of a successful extraction."""

    source: SourceType
    menu: Menu
    source_url: str

    def to_dict(self) -> Dict[str, Any]:
        return {"source": self.source.value, "menu": self.menu.to_dict(), "sourceUrl": self.source_url}


@dataclass
class Outcome(Generic[T]):
    """A best-effort value together with the errors that were absorbed producing it."""

    value: T
    errors: List[Exception] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def merge_errors(self, other: Outcome[Any]) -> None:
        self.errors.extend(other.errors)


# ============================================================================
# Collaborator protocols
# ============================================================================


@runtime_checkable
class Fetcher(Protocol):
    """HTTP fetch collaborator."""

    async def fetch(self, url: str, *, method: str = "GET", timeout: Optional[float] = None) -> Any:
        ...


@runtime_checkable
class Renderer(Protocol):
    """Headless-browser collaborator returning rendered menu text or ``None``."""

    async def render_and_extract(self, url: str) -> Optional[str]:
        ...


@runtime_checkable
class Structurer(Protocol):
    """Turns free text into a structured menu."""

    async def structure(self, text: str) -> Menu:
        ...
