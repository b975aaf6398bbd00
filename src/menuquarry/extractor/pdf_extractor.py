"""
PDF menu text extraction: embedded text layer first, OCR for scanned documents.
"""

from __future__ import annotations

import asyncio
import io
import re
import tempfile
from pathlib import Path
from typing import Callable, List, Optional, Tuple

import pdfplumber
import pytesseract
import structlog
from pdf2image import convert_from_bytes
from PIL import Image

from menuquarry.config.config import OcrConfig
from menuquarry.errors import ExtractionEmpty
from menuquarry.protocols import SourceType

from .models import ExtractedText

logger = structlog.get_logger(__name__)

_DECIMAL_CONFUSION = re.compile(r"(?<=\d)[lI|](?=\d{2}(?!\d))")
_ZERO_AS_LETTER = re.compile(r"(?<=\d)[Oo]+(?=\d)")
_LETTER_AS_ZERO = re.compile(r"(?<=[^\W\d_])0(?=([^\W\d_]))")


def correct_ocr_text(text: str) -> str:
    """
    Fix the character confusions tesseract makes most often on menus.

    ``12l50`` -> ``12.50``, stray ``|`` -> ``l``, ``1O5`` -> ``105``,
    ``C0FFEE`` -> ``COFFEE`` and ``c0ffee`` -> ``coffee``.
    """
    text = _DECIMAL_CONFUSION.sub(".", text)
    text = text.replace("|", "l")
    text = _ZERO_AS_LETTER.sub(lambda m: "0" * len(m.group(0)), text)
    text = _LETTER_AS_ZERO.sub(lambda m: "O" if m.group(1).isupper() else "o", text)
    return text


class TesseractEngine:
    """
    Scoped OCR engine owning a scratch directory for rasterized pages.

    Use as a context manager; the directory is removed on every exit path.
    """

    def __init__(self, config: OcrConfig) -> None:
        self.config = config
        self._scratch: Optional[tempfile.TemporaryDirectory] = None

    def __enter__(self) -> TesseractEngine:
        self._scratch = tempfile.TemporaryDirectory(prefix="menuquarry-ocr-")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._scratch is not None:
            self._scratch.cleanup()
            self._scratch = None

    @property
    def workdir(self) -> Path:
        if self._scratch is None:
            raise RuntimeError("TesseractEngine used outside its context")
        return Path(self._scratch.name)

    @property
    def language(self) -> str:
        return "+".join(self.config.languages)

    @property
    def tesseract_config(self) -> str:
        return f"--psm {self.config.page_segmentation_mode} -c tessedit_char_whitelist={self.config.char_whitelist}"

    def rasterize(self, data: bytes) -> List[str]:
        """Render up to ``max_pages`` pages to PNG files in the scratch directory."""
        return convert_from_bytes(
            data,
            dpi=self.config.dpi,
            first_page=1,
            last_page=self.config.max_pages,
            output_folder=str(self.workdir),
            fmt="png",
            paths_only=True,
        )

    def recognize_image(self, path: str) -> str:
        with Image.open(path) as image:
            return pytesseract.image_to_string(image, lang=self.language, config=self.tesseract_config)

    def recognize_pdf(self, data: bytes) -> str:
        pages = [self.recognize_image(path) for path in sorted(self.rasterize(data))]
        logger.debug("OCR finished", pages=len(pages))
        return correct_ocr_text("\n\n".join(page.strip() for page in pages if page.strip()))


class PdfExtractor:
    """Extracts text from PDF menus, falling back to OCR for scans."""

    name = "pdf"

    def __init__(
        self,
        config: Optional[OcrConfig] = None,
        engine_factory: Callable[[OcrConfig], TesseractEngine] = TesseractEngine,
    ) -> None:
        self.config = config or OcrConfig()
        self.engine_factory = engine_factory

    def _text_layer(self, data: bytes) -> str:
        with pdfplumber.open(io.BytesIO(data)) as pdf:
            pages = [page.extract_text() or "" for page in pdf.pages]
        return "\n\n".join(page for page in pages if page.strip())

    def _ocr(self, data: bytes) -> str:
        # Engine scope lives entirely in the worker thread; cancellation of the caller
        # leaves the thread to finish and clean up.
        with self.engine_factory(self.config) as engine:
            return engine.recognize_pdf(data)

    async def _extract(self, data: bytes) -> Tuple[str, str]:
        text = ""
        try:
            text = await asyncio.to_thread(self._text_layer, data)
        except Exception as e:
            logger.warning("PDF text layer extraction failed", error=str(e), error_type=type(e).__name__)

        if len(text.strip()) > self.config.min_text_length:
            logger.debug("PDF text layer extraction successful", length=len(text))
            return text, "pdf_text"

        logger.info("PDF has little or no embedded text, running OCR", text_layer_length=len(text.strip()))
        ocr_text = ""
        try:
            async with asyncio.timeout(self.config.timeout):
                ocr_text = await asyncio.to_thread(self._ocr, data)
        except TimeoutError:
            logger.warning("OCR timed out", timeout=self.config.timeout)
        except Exception as e:
            logger.warning("OCR failed", error=str(e), error_type=type(e).__name__)

        if ocr_text.strip():
            return ocr_text, "ocr"
        if text.strip():
            return text, "pdf_text"
        raise ExtractionEmpty("No text could be extracted from PDF", detail="text layer and OCR both empty")

    async def extract_from_pdf(self, data: bytes) -> str:
        """
        Text of a PDF document.

        Raises:
            ExtractionEmpty: when neither the text layer nor OCR yields anything
        """
        text, _ = await self._extract(data)
        return text

    async def extract(self, body: bytes, *, url: str | None = None, encoding: str | None = None) -> ExtractedText:
        try:
            text, method = await self._extract(body)
        except ExtractionEmpty as e:
            e.url = url
            raise
        return ExtractedText(url=url, text=text, source=SourceType.PDF, method=method)
