"""
Data models for extraction results.
"""

from __future__ import annotations

from dataclasses import dataclass

from menuquarry.protocols import SourceType


@dataclass(slots=True, frozen=True)
class ExtractedText:
    """Text pulled out of one fetched resource."""

    url: str | None
    text: str
    source: SourceType
    method: str  # region, body, pdf_text, ocr, rendered

    def __post_init__(self) -> None:
        """Validate the result."""
        if not self.method:
            raise ValueError("method must be set")

    def __len__(self) -> int:
        return len(self.text.strip())
