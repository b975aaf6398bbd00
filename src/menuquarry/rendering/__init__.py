"""Headless-browser rendering of JavaScript menu pages."""

from .renderer import STRIP_EXCLUDED_SCRIPT, PlaywrightRenderer

__all__ = ["PlaywrightRenderer", "STRIP_EXCLUDED_SCRIPT"]
