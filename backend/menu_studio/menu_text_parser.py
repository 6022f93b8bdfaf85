"""
Best-effort recovery of menu structure from free text.

Used when the vision model does not hand back parseable JSON. The rules are a
single forward pass over the lines:

- a heading line (letters, spaces and ``&`` only, optionally wrapped in ``*`` or
  ``_`` emphasis) opens a new category;
- an item line (``name - $12.50``, optional bullet, hyphen or en-dash separator,
  optional currency symbol) appends an item to the open category;
- everything else is ignored.

Categories that end up with no items are dropped. Nothing in here raises.
"""

from __future__ import annotations

import re
from typing import List, Optional

from .schemas import ExtractedMenuData, MenuCategory, MenuItem

DEFAULT_CURRENCY = "USD"

_CURRENCY_SYMBOLS = "$€£¥₹"

_HEADING_RE = re.compile(r"^[*_]*([A-Za-z &]+?)[*_]*$")
_ITEM_RE = re.compile(
    r"^(?:[-*•]\s*)?[*_]*(?P<name>.+?)\s*[-–]\s*[" + _CURRENCY_SYMBOLS + r"]?\s*(?P<price>\d[\d.]*)"
)
_EMPHASIS_RE = re.compile(r"[*_]+")


def _match_heading(line: str) -> Optional[str]:
    if any(sym in line for sym in _CURRENCY_SYMBOLS) or "-" in line:
        return None
    m = _HEADING_RE.match(line)
    if m is None:
        return None
    name = m.group(1).strip()
    return name or None


def _parse_price(raw: str) -> Optional[float]:
    try:
        return float(raw)
    except ValueError:
        return None


def _match_item(line: str) -> Optional[MenuItem]:
    m = _ITEM_RE.match(line)
    if m is None:
        return None
    name = _EMPHASIS_RE.sub("", m.group("name")).strip()
    price = _parse_price(m.group("price"))
    if not name or price is None:
        return None
    return MenuItem(name=name, description=None, price=price, addons=[])


def parse_menu_text(text: str) -> ExtractedMenuData:
    categories: List[MenuCategory] = []
    current: Optional[MenuCategory] = None

    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line:
            continue

        heading = _match_heading(line)
        if heading is not None:
            if current is not None and current.items:
                categories.append(current)
            current = MenuCategory(category=heading, items=[])
            continue

        if current is None:
            continue

        item = _match_item(line)
        if item is not None:
            current.items.append(item)

    if current is not None and current.items:
        categories.append(current)

    return ExtractedMenuData(categories=categories, currency=DEFAULT_CURRENCY, raw_text=text)
