from __future__ import annotations

from typing import Optional

EXTRACTION_SYSTEM_PROMPT = (
    "You are a JSON-only menu extraction API. Your response must be ONLY a valid JSON object "
    "with no other text, markdown, or explanation.\n"
    "\n"
    "RESPONSE FORMAT (respond with ONLY this JSON structure, nothing else):\n"
    '{"categories":[{"category":"Category Name","items":[{"name":"Item Name",'
    '"description":"Description or null","price":12.99,"addons":[{"name":"Addon","price":2.50}]}]}],'
    '"currency":"USD"}\n'
    "\n"
    "RULES:\n"
    "- Output ONLY valid JSON, no markdown, no explanation, no text before or after\n"
    "- Extract ALL menu items grouped by category\n"
    "- Price must be a number without currency symbol\n"
    "- Use null for missing price or description\n"
    "- Addons array can be empty []\n"
    "- Start your response with { and end with }\n"
)

_DEFAULT_USER_PROMPT = "Extract the menu from this image."

_IMAGE_PROMPT_TEMPLATE = (
    "Professional food photography of {item_name}, restaurant menu style, "
    "appetizing plating, soft natural light, shallow depth of field, no text."
)


def extraction_user_prompt(additional_text: Optional[str]) -> str:
    hint = (additional_text or "").strip()
    if not hint:
        return _DEFAULT_USER_PROMPT
    return f"{_DEFAULT_USER_PROMPT}\n{hint}"


def image_prompt(item_name: str, additional_prompt: Optional[str] = None) -> str:
    prompt = _IMAGE_PROMPT_TEMPLATE.format(item_name=item_name.strip())
    extra = (additional_prompt or "").strip()
    if extra:
        prompt = f"{prompt} {extra}"
    return prompt
