"""
menuquarry - restaurant menu discovery and extraction from a base URL.
"""

from __future__ import annotations

__version__ = "0.1.0"

from .config import Config
from .container import DependencyContainer
from .errors import ExtractionError, MenuNotFoundError
from .orchestrator import MenuOrchestrator, extract_menu
from .protocols import ExtractionResult, Menu, MenuItem, SourceType

__all__ = [
    "__version__",
    "Config",
    "DependencyContainer",
    "ExtractionError",
    "ExtractionResult",
    "Menu",
    "MenuItem",
    "MenuNotFoundError",
    "MenuOrchestrator",
    "SourceType",
    "extract_menu",
]
