"""Structured menu acceptance checks."""

from __future__ import annotations

from .validator import MenuValidator

__all__ = ["MenuValidator"]
