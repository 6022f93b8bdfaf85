from __future__ import annotations

import io
from typing import List, Optional

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from menu_studio.main import app, model_client
from menu_studio.schemas import (
    ExtractedMenuData,
    ExtractionMetadata,
    MenuCategory,
    MenuExtractionResponse,
    MenuItem,
)
from menu_studio.store import ToolStore


# ---------------------------------------------------------------------------
# Fake model client (stands in for GeminiClient)
# ---------------------------------------------------------------------------
class FakeModelClient:
    def __init__(
        self,
        *,
        text: str = "",
        image: Optional[bytes] = b"",
        error: Optional[Exception] = None,
    ) -> None:
        self.text = text
        self.image = image
        self.error = error
        self.vision_calls: List[dict] = []
        self.image_prompts: List[str] = []

    async def describe_menu_image(self, *, system_prompt: str, user_prompt: str, image_data_uri: str) -> str:
        self.vision_calls.append(
            {"system_prompt": system_prompt, "user_prompt": user_prompt, "image_data_uri": image_data_uri}
        )
        if self.error is not None:
            raise self.error
        return self.text

    async def generate_food_image_bytes(self, *, prompt: str, aspect_ratio: str = "1:1") -> bytes:
        self.image_prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.image


def make_png(width: int = 40, height: int = 30, color=(200, 40, 40)) -> bytes:
    out = io.BytesIO()
    Image.new("RGB", (width, height), color).save(out, format="PNG")
    return out.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    return make_png()


@pytest.fixture
def fake_model() -> FakeModelClient:
    return FakeModelClient(image=make_png(8, 8))


@pytest.fixture
def api(fake_model: FakeModelClient):
    app.dependency_overrides[model_client] = lambda: fake_model
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Menu fixtures
# ---------------------------------------------------------------------------
def item(name: str, price: Optional[float] = 1.0) -> MenuItem:
    return MenuItem(name=name, description=None, price=price, addons=[])


def menu(**categories: List[str]) -> ExtractedMenuData:
    return ExtractedMenuData(
        categories=[MenuCategory(category=cat, items=[item(n) for n in names]) for cat, names in categories.items()],
        currency="USD",
        raw_text="",
    )


def names(data: ExtractedMenuData, category_index: int) -> List[str]:
    return [i.name for i in data.categories[category_index].items]


def store_with(data: ExtractedMenuData) -> ToolStore:
    store = ToolStore()
    store.set_extracted_data(
        MenuExtractionResponse(
            success=True,
            data=data,
            metadata=ExtractionMetadata(file_name="menu.png", file_size=10, mime_type="image/png"),
        )
    )
    return store
