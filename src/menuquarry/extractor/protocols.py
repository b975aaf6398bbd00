"""
Protocols for pluggable per-format text extractors.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from .models import ExtractedText


@runtime_checkable
class TextExtractor(Protocol):
    """Bytes-of-one-format to ExtractedText strategy."""

    name: str

    async def extract(self, body: bytes, *, url: str | None = None, encoding: str | None = None) -> ExtractedText:
        """Extract menu text from a fetched body.

        Args:
            body: Raw response body
            url: Optional URL for context
            encoding: Declared charset, if any

        Returns:
            ExtractedText with cleaned content (possibly empty)
        """
        ...
