"""Utility modules for menuquarry."""

from .racing import first_success
from .urls import canonical_url

__all__ = ["canonical_url", "first_success"]
