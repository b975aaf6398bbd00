"""
ExtractorManager for menuquarry.

Dispatches a fetched resource to the extractor for its format and gates the
result on a minimum useful length.
"""

from __future__ import annotations

import time
from typing import Dict, Optional
from urllib.parse import urlparse

import structlog

from menuquarry.config.config import ExtractionSettings, OcrConfig
from menuquarry.crawler.http_client import FetchResponse
from menuquarry.errors import ExtractionEmpty, UnsupportedFormat
from menuquarry.protocols import SourceType

from .html_extractor import MenuHtmlExtractor
from .models import ExtractedText
from .pdf_extractor import PdfExtractor
from .protocols import TextExtractor

logger = structlog.get_logger(__name__)

HTML_CONTENT_TYPES = ("text/html", "application/xhtml+xml")
PDF_CONTENT_TYPES = ("application/pdf", "application/x-pdf")
GENERIC_CONTENT_TYPES = ("", "application/octet-stream", "binary/octet-stream", "application/download")


def detect_source_type(content_type: str, url: str = "", body: bytes = b"") -> Optional[SourceType]:
    """
    Decide which extractor handles a resource.

    The declared content type wins. Generic or missing types fall back to the
    ``%PDF`` magic bytes, a ``.pdf`` path suffix, then an HTML-looking body.
    """
    media_type = content_type.split(";", 1)[0].strip().lower()
    if media_type in PDF_CONTENT_TYPES:
        return SourceType.PDF
    if media_type in HTML_CONTENT_TYPES:
        return SourceType.HTML
    if media_type not in GENERIC_CONTENT_TYPES:
        return None

    if body.lstrip()[:5] == b"%PDF-":
        return SourceType.PDF
    if urlparse(url).path.lower().endswith(".pdf"):
        return SourceType.PDF
    head = body.lstrip()[:256].lower()
    if head.startswith(b"<!doctype html") or b"<html" in head:
        return SourceType.HTML
    return None


class ExtractorManager:
    """
    Per-format text extraction with a minimum-length gate.

    Features:
    - Content-type dispatch with magic-byte sniffing for generic types
    - Empty or too-short text surfaced as ``ExtractionEmpty``
    - Per-extractor timing metrics
    """

    def __init__(self, settings: ExtractionSettings, ocr_config: Optional[OcrConfig] = None) -> None:
        self.settings = settings
        self.logger = logger.bind(component="ExtractorManager")
        self.html = MenuHtmlExtractor(settings)
        self.pdf = PdfExtractor(ocr_config or OcrConfig())

        self._extractors: Dict[SourceType, TextExtractor] = {
            SourceType.HTML: self.html,
            SourceType.PDF: self.pdf,
        }
        self._extraction_metrics: Dict[str, Dict[str, float]] = {
            extractor.name: {"attempts": 0, "successes": 0, "total_time": 0.0}
            for extractor in self._extractors.values()
        }

    async def extract(self, response: FetchResponse) -> ExtractedText:
        """
        Extract menu text from a fetched response.

        Raises:
            UnsupportedFormat: content is neither PDF nor HTML
            ExtractionEmpty: text shorter than ``min_text_length``
        """
        url = response.final_url or response.url
        source = detect_source_type(response.content_type, url, response.body)
        if source is None:
            raise UnsupportedFormat(
                f"Unsupported content type ({response.content_type or 'unknown'})",
                url=url,
            )

        extractor = self._extractors[source]
        metrics = self._extraction_metrics[extractor.name]
        metrics["attempts"] += 1
        start_time = time.time()

        result = await extractor.extract(response.body, url=url, encoding=response.charset)

        extraction_time = time.time() - start_time
        metrics["total_time"] += extraction_time
        self.logger.debug(
            "Extraction completed",
            extractor=extractor.name,
            method=result.method,
            url=url,
            text_length=len(result),
            extraction_time=extraction_time,
        )

        if len(result) < self.settings.min_text_length:
            raise ExtractionEmpty(
                "Not enough meaningful text found",
                url=url,
                detail=f"{len(result)} characters, need {self.settings.min_text_length}",
            )

        metrics["successes"] += 1
        return result

    def get_metrics(self) -> Dict[str, Dict[str, float]]:
        """
        Get extraction performance metrics.

        Returns:
            Dictionary of metrics per extractor
        """
        metrics = {}
        for extractor_name, raw_metrics in self._extraction_metrics.items():
            attempts = raw_metrics["attempts"]
            successes = raw_metrics["successes"]
            total_time = raw_metrics["total_time"]
            metrics[extractor_name] = {
                "attempts": attempts,
                "successes": successes,
                "success_rate": successes / attempts if attempts > 0 else 0.0,
                "total_time": total_time,
                "avg_time": total_time / attempts if attempts > 0 else 0.0,
            }
        return metrics
