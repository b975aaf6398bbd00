"""Structuring of free menu text through an external model service."""

from .client import StructuringClient, parse_menu_json
from .postprocess import normalize_category, post_process_menu, prepare_text
from .prompt import build_messages

__all__ = [
    "StructuringClient",
    "build_messages",
    "normalize_category",
    "parse_menu_json",
    "post_process_menu",
    "prepare_text",
]
