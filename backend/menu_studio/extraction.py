from __future__ import annotations

import json
import logging
import re
import time
from typing import Optional, Protocol

from pydantic import ValidationError

from .images import prepare_menu_image, to_data_uri
from .menu_text_parser import parse_menu_text
from .observability import RequestContext, log_step_timing
from .prompts import EXTRACTION_SYSTEM_PROMPT, extraction_user_prompt
from .schemas import ExtractedMenuData, MenuCategory

logger = logging.getLogger(__name__)

# Greedy: spans from the first "{" to the last "}" in the text.
_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


class VisionModel(Protocol):
    async def describe_menu_image(
        self,
        *,
        system_prompt: str,
        user_prompt: str,
        image_data_uri: str,
    ) -> str: ...


def try_parse_menu_json(raw_text: str) -> Optional[ExtractedMenuData]:
    """
    Pull the JSON object out of the model's text and accept it if it has a
    ``categories`` list. Everything else in the object is kept as the model
    wrote it; only ``rawText`` is replaced with the full original text.
    Returns None when there is nothing usable.
    """
    m = _JSON_OBJECT_RE.search(raw_text)
    if m is None:
        return None

    try:
        parsed = json.loads(m.group(0))
    except ValueError:
        return None

    if not isinstance(parsed, dict) or not isinstance(parsed.get("categories"), list):
        return None

    parsed.pop("raw_text", None)
    parsed["rawText"] = raw_text
    try:
        return ExtractedMenuData.model_validate(parsed)
    except ValidationError as e:
        # e.g. a category or item that is not an object; keep the JSON as written.
        logger.info("model JSON kept unvalidated (%d shape errors)", e.error_count())
        return ExtractedMenuData.model_construct(**parsed)


def parse_model_output(raw_text: str) -> ExtractedMenuData:
    data = try_parse_menu_json(raw_text)
    if data is not None:
        return data
    return parse_menu_text(raw_text)


async def extract_menu_data(
    vision: VisionModel,
    *,
    image_bytes: bytes,
    mime_type: str,
    additional_text: Optional[str] = None,
    ctx: Optional[RequestContext] = None,
) -> ExtractedMenuData:
    """
    Run one extraction: image -> vision model -> structured menu.

    Model invocation errors propagate to the caller. Anything the model
    returns is turned into an ExtractedMenuData, via the text fallback if
    the JSON route fails.
    """
    prepared, prepared_mime = prepare_menu_image(image_bytes, mime_type)

    t0 = time.monotonic()
    raw_text = await vision.describe_menu_image(
        system_prompt=EXTRACTION_SYSTEM_PROMPT,
        user_prompt=extraction_user_prompt(additional_text),
        image_data_uri=to_data_uri(prepared, prepared_mime),
    )
    vlm_ms = int((time.monotonic() - t0) * 1000)

    data = try_parse_menu_json(raw_text)
    used_fallback = data is None
    if data is None:
        data = parse_menu_text(raw_text)

    if ctx is not None:
        ctx.vlm_ms = vlm_ms
        ctx.used_fallback = used_fallback
        ctx.categories_count = len(data.categories)
        ctx.items_count = sum(len(c.items) for c in data.categories if isinstance(c, MenuCategory))
        log_step_timing(ctx, "vlm", vlm_ms, {"text_len": len(raw_text), "used_fallback": used_fallback})

    return data
