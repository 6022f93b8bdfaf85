from __future__ import annotations

from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

ToolStep = Literal["upload", "process", "refine"]

TOOL_STEP_NAMES = {
    "upload": "Upload",
    "process": "Process",
    "refine": "Refine",
}


class MenuModel(BaseModel):
    # Model output may carry keys we don't know about; keep them on the way through.
    model_config = ConfigDict(populate_by_name=True, extra="allow")


# Scalar fields filled by the vision model are typed Any: whatever JSON value
# the model wrote ("Market price", "24.00", null) is kept as written.
class MenuAddon(MenuModel):
    name: Any = None
    price: Any = None


class MenuItem(MenuModel):
    name: Any = None
    description: Any = None
    price: Any = None
    addons: List[MenuAddon] = Field(default_factory=list)
    image: Optional[str] = None


class MenuCategory(MenuModel):
    category: Any = None
    items: List[MenuItem] = Field(default_factory=list)


class ExtractedMenuData(MenuModel):
    categories: List[MenuCategory] = Field(default_factory=list)
    currency: Any = None
    raw_text: str = Field(default="", alias="rawText")


class ExtractionMetadata(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    file_name: str = Field(alias="fileName")
    file_size: int = Field(alias="fileSize")
    mime_type: str = Field(alias="mimeType")


class MenuExtractionResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    data: ExtractedMenuData
    metadata: ExtractionMetadata


class GenerateImageRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    item_name: Optional[str] = Field(default=None, alias="itemName")
    additional_prompt: Optional[str] = Field(default=None, alias="additionalPrompt")


class GenerateImageResponse(BaseModel):
    success: bool = True
    image: str
    prompt: str
