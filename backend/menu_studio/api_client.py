from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from .schemas import GenerateImageResponse, MenuExtractionResponse
from .store import UploadedImage

logger = logging.getLogger(__name__)


class MenuApiError(Exception):
    """A request to the menu API failed. ``str(exc)`` is safe to show to a user."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def _error_message(response: httpx.Response, default: str) -> str:
    try:
        body: Any = response.json()
    except ValueError:
        return default
    if isinstance(body, dict) and isinstance(body.get("error"), str) and body["error"].strip():
        return body["error"]
    return default


class MenuApiClient:
    """Talks to the extract/generate endpoints. One request per call; no retries."""

    def __init__(
        self,
        base_url: str,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._transport = transport
        self._timeout = timeout

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, transport=self._transport, timeout=self._timeout)

    async def health(self) -> str:
        """Server status line for display, e.g. "Healthy 🔥"."""
        async with self._client() as client:
            response = await client.get("/api/health")

        if response.status_code != 200:
            logger.warning("health check failed: %s", response.status_code)
            raise MenuApiError("Server unavailable", status_code=response.status_code)
        return str(response.json())

    async def extract_menu(self, image: UploadedImage, additional_text: Optional[str] = None) -> MenuExtractionResponse:
        form = {}
        if additional_text:
            form["additionalText"] = additional_text

        async with self._client() as client:
            response = await client.post(
                "/api/extract-menu",
                files={"image": (image.file_name, image.data, image.mime_type)},
                data=form,
            )

        if response.status_code != 200:
            logger.warning("extract-menu failed: %s", response.status_code)
            raise MenuApiError("Failed to extract menu data", status_code=response.status_code)
        return MenuExtractionResponse.model_validate(response.json())

    async def generate_image(self, item_name: str, additional_prompt: Optional[str] = None) -> str:
        payload = {"itemName": item_name}
        if additional_prompt and additional_prompt.strip():
            payload["additionalPrompt"] = additional_prompt.strip()

        async with self._client() as client:
            response = await client.post("/api/generate-image", json=payload)

        if response.status_code != 200:
            logger.warning("generate-image failed: %s", response.status_code)
            raise MenuApiError(
                _error_message(response, "Failed to generate image"),
                status_code=response.status_code,
            )
        return GenerateImageResponse.model_validate(response.json()).image
