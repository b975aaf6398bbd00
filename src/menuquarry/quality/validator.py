"""
Acceptance check for structured menus.

A menu is accepted when it has enough items, most of them look like real dishes
with prices, and at least one price is an actual amount rather than the
"unknown" sentinel. The thresholds are empirical and live in ``ValidationConfig``.
"""

from __future__ import annotations

import re
from typing import Any, List, Mapping, Optional, Tuple, Union

import structlog

from menuquarry.config.config import ValidationConfig
from menuquarry.protocols import MANDATORY_CATEGORIES, PRICE_UNKNOWN, Menu

logger = structlog.get_logger(__name__)

_DIGIT = re.compile(r"\d")

MenuLike = Union[Menu, Mapping[str, Any]]


def _item_fields(item: Any) -> Tuple[Any, Any]:
    if isinstance(item, Mapping):
        return item.get("name"), item.get("price")
    return getattr(item, "name", None), getattr(item, "price", None)


class MenuValidator:
    """Pure accept/reject decision over a structured menu."""

    def __init__(self, config: Optional[ValidationConfig] = None, sentinel: str = PRICE_UNKNOWN) -> None:
        self.config = config or ValidationConfig()
        self.sentinel = sentinel
        self._generic_names = {name.lower() for name in self.config.generic_names}

    def _collect(self, menu: MenuLike) -> Optional[List[Tuple[Any, Any]]]:
        """All (name, price) pairs, or None when a mandatory category is missing or not a list."""
        if isinstance(menu, Menu):
            return [(item.name, item.price) for item in menu.all_items()]
        if not isinstance(menu, Mapping):
            return None
        for key in MANDATORY_CATEGORIES:
            if not isinstance(menu.get(key), list):
                return None
        pairs: List[Tuple[Any, Any]] = []
        for value in menu.values():
            if isinstance(value, list):
                pairs.extend(_item_fields(item) for item in value)
        return pairs

    def is_real_price(self, price: Any) -> bool:
        return isinstance(price, str) and price.strip() != self.sentinel and bool(_DIGIT.search(price))

    def is_well_formed(self, name: Any, price: Any, *, menu_has_real_price: bool) -> bool:
        if not isinstance(name, str) or not isinstance(price, str):
            return False
        name = name.strip()
        if len(name) < self.config.min_name_length or name.lower() in self._generic_names:
            return False
        price = price.strip()
        if not price:
            return False
        if price == self.sentinel:
            return menu_has_real_price
        return True

    def explain(self, menu: MenuLike) -> Optional[str]:
        """Why ``menu`` would be rejected, or None if it is acceptable."""
        pairs = self._collect(menu)
        if pairs is None:
            return "missing or non-list mandatory category"
        if len(pairs) < self.config.min_items:
            return f"too few items ({len(pairs)} < {self.config.min_items})"

        has_real_price = any(self.is_real_price(price) for _, price in pairs)
        if self.config.require_real_price and not has_real_price:
            return "no real price on any item"

        well_formed = sum(
            1 for name, price in pairs if self.is_well_formed(name, price, menu_has_real_price=has_real_price)
        )
        ratio = well_formed / len(pairs)
        if ratio < self.config.min_well_formed_ratio:
            return f"too few well-formed items ({ratio:.2f} < {self.config.min_well_formed_ratio})"
        return None

    def is_valid(self, menu: MenuLike) -> bool:
        reason = self.explain(menu)
        if reason is not None:
            logger.debug("Menu rejected", reason=reason)
            return False
        return True
