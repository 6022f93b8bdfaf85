"""Reactive state for the upload -> process -> refine tool."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Generic, List, Optional, TypeVar

from .schemas import ExtractedMenuData, MenuExtractionResponse, ToolStep

logger = logging.getLogger(__name__)

T = TypeVar("T")

Listener = Callable[[T], None]


class Atom(Generic[T]):
    """A single observable value. ``set`` replaces it and notifies listeners in order."""

    def __init__(self, value: T) -> None:
        self._value = value
        self._listeners: List[Listener[T]] = []

    def get(self) -> T:
        return self._value

    def set(self, value: T) -> None:
        if value is self._value:
            return
        self._value = value
        for listener in list(self._listeners):
            listener(value)

    def listen(self, listener: Listener[T]) -> Callable[[], None]:
        """Register for future changes only. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def subscribe(self, listener: Listener[T]) -> Callable[[], None]:
        """Like ``listen``, but also calls the listener with the current value."""
        unsubscribe = self.listen(listener)
        listener(self._value)
        return unsubscribe


@dataclass(frozen=True)
class UploadedImage:
    file_name: str
    data: bytes
    mime_type: str


class ToolStore:
    def __init__(self) -> None:
        self.step: Atom[ToolStep] = Atom("upload")
        self.menu_image: Atom[Optional[UploadedImage]] = Atom(None)
        self.extracted_data: Atom[Optional[MenuExtractionResponse]] = Atom(None)

    def set_step(self, step: ToolStep) -> None:
        self.step.set(step)

    def set_menu_image(self, image: Optional[UploadedImage]) -> None:
        self.menu_image.set(image)

    def set_extracted_data(self, response: Optional[MenuExtractionResponse]) -> None:
        self.extracted_data.set(response)

    def menu_data(self) -> Optional[ExtractedMenuData]:
        response = self.extracted_data.get()
        if response is None:
            return None
        return response.data

    def update_menu(self, change: Callable[[ExtractedMenuData], ExtractedMenuData]) -> bool:
        """
        Apply one edit to the current menu and publish the result.

        ``change`` must return a new ExtractedMenuData (or the same object for
        "nothing to do"); observers only ever see whole menus.
        """
        current = self.extracted_data.get()
        if current is None:
            return False

        updated = change(current.data)
        if updated is current.data:
            return False

        self.extracted_data.set(current.model_copy(update={"data": updated}))
        return True
