"""
Menu edits for the refine step.

Every edit takes an ExtractedMenuData and returns a new one; inputs are never
changed in place. Untouched categories and items are shared between the old
and new menu, which is safe because nothing here mutates them.

Items and categories are addressed by their current position. Positions are
trusted to be valid for the menu being edited.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import List, Literal, Optional, Union

from .schemas import ExtractedMenuData, MenuCategory, MenuItem
from .store import ToolStore

logger = logging.getLogger(__name__)

NEW_CATEGORY_NAME = "New Category"
NEW_ITEM_NAME = "New Item"

ItemField = Literal["name", "description", "price", "image"]
_ITEM_FIELDS = ("name", "description", "price", "image")


def _with_categories(data: ExtractedMenuData, categories: List[MenuCategory]) -> ExtractedMenuData:
    return data.model_copy(update={"categories": categories})


def _with_items(data: ExtractedMenuData, category_index: int, items: List[MenuItem]) -> ExtractedMenuData:
    categories = list(data.categories)
    categories[category_index] = categories[category_index].model_copy(update={"items": items})
    return _with_categories(data, categories)


# -----------------------------------------------------------------------------
# Category edits
# -----------------------------------------------------------------------------
def rename_category(data: ExtractedMenuData, category_index: int, name: str) -> ExtractedMenuData:
    categories = list(data.categories)
    categories[category_index] = categories[category_index].model_copy(update={"category": name})
    return _with_categories(data, categories)


def delete_category(data: ExtractedMenuData, category_index: int) -> ExtractedMenuData:
    return _with_categories(data, [c for idx, c in enumerate(data.categories) if idx != category_index])


def add_category(data: ExtractedMenuData, name: str = NEW_CATEGORY_NAME) -> ExtractedMenuData:
    return _with_categories(data, [*data.categories, MenuCategory(category=name, items=[])])


# -----------------------------------------------------------------------------
# Item edits
# -----------------------------------------------------------------------------
def update_item(
    data: ExtractedMenuData,
    category_index: int,
    item_index: int,
    field: ItemField,
    value: Union[str, float, None],
) -> ExtractedMenuData:
    if field not in _ITEM_FIELDS:
        raise ValueError(f"not an editable item field: {field!r}")
    items = [
        item.model_copy(update={field: value}) if idx == item_index else item
        for idx, item in enumerate(data.categories[category_index].items)
    ]
    return _with_items(data, category_index, items)


def delete_item(data: ExtractedMenuData, category_index: int, item_index: int) -> ExtractedMenuData:
    items = [item for idx, item in enumerate(data.categories[category_index].items) if idx != item_index]
    return _with_items(data, category_index, items)


def add_item(data: ExtractedMenuData, category_index: int) -> ExtractedMenuData:
    placeholder = MenuItem(name=NEW_ITEM_NAME, description=None, price=0, addons=[])
    return _with_items(data, category_index, [*data.categories[category_index].items, placeholder])


def set_item_image(
    data: ExtractedMenuData,
    category_index: int,
    item_index: int,
    image: Optional[str],
) -> ExtractedMenuData:
    """Attach a generated image. A position that no longer exists leaves the menu as it is."""
    if not (0 <= category_index < len(data.categories)):
        return data
    if not (0 <= item_index < len(data.categories[category_index].items)):
        return data
    return update_item(data, category_index, item_index, "image", image)


def move_item(
    data: ExtractedMenuData,
    source_category: int,
    source_index: int,
    dest_category: int,
    dest_index: int,
) -> ExtractedMenuData:
    """
    Remove the item at the source position, then insert it at the destination.

    The destination index is read against the lists as they are after the
    removal, so a downward move inside one category needs no adjustment.
    """
    if source_category == dest_category and source_index == dest_index:
        return data

    categories = list(data.categories)
    source_items = list(categories[source_category].items)
    moved = source_items.pop(source_index)
    categories[source_category] = categories[source_category].model_copy(update={"items": source_items})

    dest_items = list(categories[dest_category].items)
    dest_items.insert(dest_index, moved)
    categories[dest_category] = categories[dest_category].model_copy(update={"items": dest_items})

    return _with_categories(data, categories)


# -----------------------------------------------------------------------------
# Drag and drop
# -----------------------------------------------------------------------------
_ITEM_ID_RE = re.compile(r"^item-(\d+)-(\d+)$")
_CATEGORY_ID_RE = re.compile(r"^category-(\d+)$")


def item_id(category_index: int, item_index: int) -> str:
    return f"item-{category_index}-{item_index}"


def category_id(category_index: int) -> str:
    return f"category-{category_index}"


@dataclass(frozen=True)
class DropTarget:
    category_index: int
    # None when dropped on the category container rather than on an item.
    item_index: Optional[int] = None


def parse_drag_id(drag_id: str) -> Optional[DropTarget]:
    m = _ITEM_ID_RE.match(drag_id)
    if m is not None:
        return DropTarget(int(m.group(1)), int(m.group(2)))
    m = _CATEGORY_ID_RE.match(drag_id)
    if m is not None:
        return DropTarget(int(m.group(1)))
    return None


@dataclass(frozen=True)
class DragSnapshot:
    category_index: int
    item_index: int
    item: MenuItem


class DragReorder:
    """
    Turns drag gestures over the rendered menu into ``move_item`` edits.

    Ids are derived from positions at render time (see ``item_id``). The
    dragged item is snapshotted on start; nothing is committed until ``end``.
    """

    def __init__(self, store: ToolStore) -> None:
        self._store = store
        self.active: Optional[DragSnapshot] = None

    @property
    def overlay_item(self) -> Optional[MenuItem]:
        """The item to draw under the pointer while a drag is in progress."""
        return self.active.item if self.active is not None else None

    def item_ids(self, category_index: int) -> List[str]:
        data = self._store.menu_data()
        if data is None:
            return []
        return [item_id(category_index, idx) for idx in range(len(data.categories[category_index].items))]

    def start(self, active_id: str) -> None:
        self.active = None
        data = self._store.menu_data()
        target = parse_drag_id(active_id)
        if data is None or target is None or target.item_index is None:
            return
        if not (0 <= target.category_index < len(data.categories)):
            return
        items = data.categories[target.category_index].items
        if not (0 <= target.item_index < len(items)):
            return
        self.active = DragSnapshot(target.category_index, target.item_index, items[target.item_index])

    def cancel(self) -> None:
        self.active = None

    def end(self, over_id: Optional[str]) -> bool:
        """Commit the gesture. Returns True if the menu changed."""
        snapshot, self.active = self.active, None
        data = self._store.menu_data()
        if snapshot is None or over_id is None or data is None:
            return False

        target = parse_drag_id(over_id)
        if target is None or not (0 <= target.category_index < len(data.categories)):
            return False

        origin_items: List[MenuItem] = []
        if snapshot.category_index < len(data.categories):
            origin_items = data.categories[snapshot.category_index].items
        if snapshot.item_index >= len(origin_items) or origin_items[snapshot.item_index] != snapshot.item:
            logger.warning(
                "drag dropped: item at origin changed during the gesture (category=%d item=%d)",
                snapshot.category_index,
                snapshot.item_index,
            )
            return False

        dest_index = target.item_index
        if dest_index is None:
            dest_index = len(data.categories[target.category_index].items)
            if target.category_index == snapshot.category_index:
                dest_index -= 1

        return self._store.update_menu(
            lambda d: move_item(d, snapshot.category_index, snapshot.item_index, target.category_index, dest_index)
        )
