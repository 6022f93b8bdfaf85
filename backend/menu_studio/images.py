from __future__ import annotations

import base64
import io
import logging
import os
from typing import Tuple

from PIL import Image, ImageOps, UnidentifiedImageError

logger = logging.getLogger(__name__)

_JPEG_MAGIC = b"\xff\xd8\xff"
_GENERATED_JPEG_QUALITY = 92


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except Exception:
        return default


def _encode_jpeg(img: Image.Image, quality: int) -> bytes:
    if img.mode not in ("RGB", "L"):
        img = img.convert("RGB")
    out = io.BytesIO()
    img.save(out, format="JPEG", quality=quality)
    return out.getvalue()


def to_data_uri(data: bytes, mime_type: str) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def dish_image_jpeg(image_bytes: bytes) -> bytes:
    """Generated dish images are served as JPEG whatever format the model produced."""
    if image_bytes.startswith(_JPEG_MAGIC):
        return image_bytes
    with Image.open(io.BytesIO(image_bytes)) as img:
        return _encode_jpeg(img, _GENERATED_JPEG_QUALITY)


def prepare_menu_image(image_bytes: bytes, mime_type: str) -> Tuple[bytes, str]:
    """
    Normalize an uploaded menu photo before it goes to the vision model.

    Applies EXIF orientation, converts to RGB and caps the longest side at
    VLM_IMAGE_MAX_DIM. Anything Pillow cannot open is passed through as-is;
    the model gets to decide what to make of it.
    """
    try:
        img = Image.open(io.BytesIO(image_bytes))
        img.load()
    except (UnidentifiedImageError, OSError) as e:
        logger.warning("prepare_menu_image: passing upload through unchanged (%s)", e)
        return image_bytes, mime_type

    img = ImageOps.exif_transpose(img)
    if img.mode not in ("RGB", "L"):
        img = img.convert("RGB")

    max_dim = _env_int("VLM_IMAGE_MAX_DIM", 2000)
    w, h = img.size
    longest = max(w, h)
    if longest > max_dim:
        scale = max_dim / max(longest, 1)
        img = img.resize((max(1, int(w * scale)), max(1, int(h * scale))), resample=Image.LANCZOS)

    return _encode_jpeg(img, _env_int("VLM_JPEG_QUALITY", 90)), "image/jpeg"
