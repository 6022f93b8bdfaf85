"""
Step flow for the menu tool: upload, process (extract), refine.

One network call at a time per action. While a call is in flight the
triggering action is refused rather than queued or cancelled. A failed call
leaves the store as it was and sets a short message in ``error``.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Optional

from .refine import set_item_image
from .schemas import MenuExtractionResponse
from .store import ToolStore, UploadedImage

logger = logging.getLogger(__name__)

DEFAULT_EXTRACTION_HINT = (
    "Extract all food items with prices, descriptions, and any available addons or extras"
)

Extractor = Callable[[UploadedImage, Optional[str]], Awaitable[MenuExtractionResponse]]
ImageGenerator = Callable[[str, Optional[str]], Awaitable[str]]


def format_price(price: Any, currency: Any) -> str:
    if price is None:
        return "Price N/A"
    symbol = "$" if currency in (None, "", "USD") else currency
    if isinstance(price, bool) or not isinstance(price, (int, float)):
        # Text prices from the model ("Market price") are shown as written.
        return str(price)
    return f"{symbol}{price:.2f}"


class ToolWorkflow:
    def __init__(
        self,
        store: ToolStore,
        extractor: Extractor,
        image_generator: Optional[ImageGenerator] = None,
    ) -> None:
        self.store = store
        self._extractor = extractor
        self._image_generator = image_generator
        self.extracting = False
        self.generating = False
        self.error: Optional[str] = None

    def upload(self, file_name: str, data: bytes, mime_type: str) -> None:
        self.store.set_menu_image(UploadedImage(file_name=file_name, data=data, mime_type=mime_type))
        self.store.set_step("process")

    async def extract(self, additional_text: Optional[str] = DEFAULT_EXTRACTION_HINT) -> bool:
        if self.extracting:
            return False

        image = self.store.menu_image.get()
        if image is None:
            self.error = "No image uploaded"
            return False

        self.extracting = True
        self.error = None
        try:
            result = await self._extractor(image, additional_text)
        except Exception as e:
            logger.warning("extraction failed: %s", e)
            self.error = str(e) or "An error occurred"
            return False
        finally:
            self.extracting = False

        self.store.set_extracted_data(result)
        return True

    def review(self) -> bool:
        if self.store.extracted_data.get() is None:
            return False
        self.store.set_step("refine")
        return True

    async def generate_image(
        self,
        category_index: int,
        item_index: int,
        additional_prompt: Optional[str] = None,
    ) -> Optional[str]:
        """Generate an image for the item at this position. Returns the data URI, or None."""
        if self.generating or self._image_generator is None:
            return None

        data = self.store.menu_data()
        try:
            item_name = data.categories[category_index].items[item_index].name if data is not None else ""
        except IndexError:
            item_name = ""
        if not item_name:
            return None

        self.generating = True
        self.error = None
        try:
            return await self._image_generator(str(item_name), additional_prompt)
        except Exception as e:
            logger.warning("image generation failed: %s", e)
            self.error = str(e) or "An error occurred"
            return None
        finally:
            self.generating = False

    def apply_image(self, category_index: int, item_index: int, image: str) -> bool:
        return self.store.update_menu(lambda d: set_item_image(d, category_index, item_index, image))

    def reset(self) -> None:
        self.store.set_extracted_data(None)
        self.store.set_menu_image(None)
        self.store.set_step("upload")
        self.error = None
