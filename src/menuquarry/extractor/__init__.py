"""
menuquarry text extraction.

Turns a fetched resource into plain menu text:
1. HTML: strip page chrome, pick the most menu-like region by price density
2. PDF: embedded text layer, OCR fallback for scanned documents
3. Shared cleanup and price/keyword heuristics
"""

from .html_extractor import EXCLUDED_MARKERS, EXCLUDED_TAGS, REGION_SELECTORS, MenuHtmlExtractor
from .manager import ExtractorManager, detect_source_type
from .models import ExtractedText
from .pdf_extractor import PdfExtractor, TesseractEngine, correct_ocr_text
from .protocols import TextExtractor
from .text_scoring import clean_text, count_prices, score_region_text

__all__ = [
    "EXCLUDED_MARKERS",
    "EXCLUDED_TAGS",
    "REGION_SELECTORS",
    "ExtractedText",
    "ExtractorManager",
    "MenuHtmlExtractor",
    "PdfExtractor",
    "TesseractEngine",
    "TextExtractor",
    "clean_text",
    "correct_ocr_text",
    "count_prices",
    "detect_source_type",
    "score_region_text",
]
