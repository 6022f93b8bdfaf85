import base64
import logging
import os
from typing import Any, Optional

logger = logging.getLogger(__name__)


class NoImageDataError(RuntimeError):
    pass


def _first_candidate_parts(response: Any) -> list:
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []
    content = getattr(candidates[0], "content", None)
    return list(getattr(content, "parts", None) or [])


def _menu_text_from_response(response: Any) -> Optional[str]:
    # response.text logs a warning and drops text when thought parts are mixed in,
    # so join the non-thought text parts of the first candidate ourselves.
    texts = [
        part.text
        for part in _first_candidate_parts(response)
        if isinstance(getattr(part, "text", None), str) and not getattr(part, "thought", False)
    ]
    joined = "".join(texts)
    return joined if joined.strip() else None


def _no_menu_text_error(response: Any) -> RuntimeError:
    candidates = getattr(response, "candidates", None) or []
    finish_reason = getattr(candidates[0], "finish_reason", None) if candidates else None
    block_reason = getattr(getattr(response, "prompt_feedback", None), "block_reason", None)

    msg = "Vision model returned no menu text"
    if finish_reason is not None:
        msg += f" (finish_reason={finish_reason})"
    if block_reason is not None:
        msg += f" (block_reason={block_reason})"
    return RuntimeError(msg)


class GeminiClient:
    def __init__(
        self,
        api_key: str,
        vlm_model: str,
        image_model: str,
    ) -> None:
        from google import genai

        self._genai = genai
        self._api_key = api_key
        self.vlm_model = vlm_model
        self.image_model = image_model
        try:
            timeout_s = float(os.getenv("GENAI_HTTP_TIMEOUT_SECONDS", "300"))
        except Exception:
            timeout_s = 300.0
        timeout_ms = max(1000, int(timeout_s * 1000))
        try:
            self._client = genai.Client(api_key=api_key, http_options={"timeout": timeout_ms})
        except TypeError:
            self._client = genai.Client(api_key=api_key)

    async def describe_menu_image(
        self,
        *,
        system_prompt: str,
        user_prompt: str,
        image_data_uri: str,
    ) -> str:
        """Send one menu image to the vision model and return whatever text comes back."""
        from google.genai import types

        try:
            max_output_tokens = int(os.getenv("VLM_MAX_OUTPUT_TOKENS", "8192"))
        except Exception:
            max_output_tokens = 8192
        try:
            temperature = float(os.getenv("VLM_TEMPERATURE", "0.2"))
        except Exception:
            temperature = 0.2

        header, _, payload = image_data_uri.partition(",")
        if not header.startswith("data:") or not header.endswith(";base64"):
            raise ValueError("menu image must be a base64 data URI")
        mime_type = header[len("data:"):-len(";base64")] or "image/jpeg"
        image_bytes = base64.b64decode(payload)

        response = await self._client.aio.models.generate_content(
            model=self.vlm_model,
            contents=[
                types.Part.from_bytes(data=image_bytes, mime_type=mime_type),
                user_prompt,
            ],
            config=types.GenerateContentConfig(
                system_instruction=system_prompt,
                max_output_tokens=max_output_tokens,
                temperature=temperature,
            ),
        )

        text = _menu_text_from_response(response)
        if text is not None:
            return text

        raise _no_menu_text_error(response)

    async def generate_food_image_bytes(
        self,
        *,
        prompt: str,
        aspect_ratio: str = "1:1",
    ) -> bytes:
        from google.genai import types

        logger.info("Generating image with model=%s, prompt_len=%d", self.image_model, len(prompt))

        if self.image_model.startswith("imagen-"):
            result = await self._client.aio.models.generate_images(
                model=self.image_model,
                prompt=prompt,
                config=types.GenerateImagesConfig(
                    number_of_images=1,
                    aspect_ratio=aspect_ratio,
                ),
            )
            if not result.generated_images:
                raise NoImageDataError("Imagen returned no images")
            return result.generated_images[0].image.image_bytes

        # Gemini native image generation model.
        response = await self._client.aio.models.generate_content(
            model=self.image_model,
            contents=[prompt],
        )

        parts = _first_candidate_parts(response)
        for part in parts:
            inline = getattr(part, "inline_data", None)
            if inline is not None and getattr(inline, "data", None) is not None:
                data = inline.data
                # Depending on SDK version, this may be bytes or base64 string.
                if isinstance(data, str):
                    return base64.b64decode(data)
                return data

        logger.error("Image model returned no inline image data. Parts: %d", len(parts))
        raise NoImageDataError("Image model returned no inline image data")
