import logging
import os
import time
from typing import Optional

from fastapi import Depends, FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .extraction import extract_menu_data
from .gemini_client import GeminiClient, NoImageDataError
from .images import dish_image_jpeg, to_data_uri
from .observability import (
    ErrorCode,
    RequestContext,
    log_request_done,
    log_request_error,
    log_request_start,
    log_step_timing,
)
from .prompts import image_prompt
from .schemas import (
    ExtractionMetadata,
    GenerateImageRequest,
    GenerateImageResponse,
    MenuExtractionResponse,
)

app = FastAPI(title="Menu Studio API", version="0.1.0")

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# Config
# -----------------------------------------------------------------------------
_DEFAULT_VLM_MODEL = "gemini-2.5-flash"
_DEFAULT_IMAGE_MODEL = "gemini-2.5-flash-image"
_DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024

_gemini_client: Optional[GeminiClient] = None


def _max_upload_bytes() -> int:
    try:
        return int(os.getenv("MAX_UPLOAD_BYTES", str(_DEFAULT_MAX_UPLOAD_BYTES)))
    except Exception:
        return _DEFAULT_MAX_UPLOAD_BYTES


def get_gemini_client() -> GeminiClient:
    """Lazy-init the Gemini client. Missing credentials surface as a 5xx at call time."""
    global _gemini_client
    if _gemini_client is None:
        api_key = os.getenv("GOOGLE_API_KEY")
        if not api_key:
            raise RuntimeError("GOOGLE_API_KEY is not set")
        _gemini_client = GeminiClient(
            api_key=api_key,
            vlm_model=os.getenv("GEMINI_VLM_MODEL", _DEFAULT_VLM_MODEL),
            image_model=os.getenv("GEMINI_IMAGE_MODEL", _DEFAULT_IMAGE_MODEL),
        )
    return _gemini_client


def model_client() -> Optional[GeminiClient]:
    # Resolved inside the handlers so a missing key is reported like any other upstream failure.
    try:
        return get_gemini_client()
    except RuntimeError:
        logger.exception("Gemini client unavailable")
        return None


# -----------------------------------------------------------------------------
# Error rendering
# -----------------------------------------------------------------------------
@app.exception_handler(StarletteHTTPException)
async def _http_error(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


@app.exception_handler(RequestValidationError)
async def _validation_error(_request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("request validation failed: %s", exc.errors())
    return JSONResponse(status_code=400, content={"error": "Invalid request body"})


# -----------------------------------------------------------------------------
# Routes
# -----------------------------------------------------------------------------
@app.get("/api/health")
def health() -> str:
    return "Healthy 🔥"


@app.post("/api/extract-menu", response_model=MenuExtractionResponse, response_model_by_alias=True)
async def extract_menu(
    image: Optional[UploadFile] = File(default=None),
    additional_text: Optional[str] = Form(default=None, alias="additionalText"),
    client: Optional[GeminiClient] = Depends(model_client),
) -> JSONResponse:
    ctx = RequestContext(operation="extract")

    if image is None:
        log_request_error(ctx, ErrorCode.IMAGE_REQUIRED, "no image in request")
        raise HTTPException(status_code=400, detail="Image file is required")

    image_bytes = await image.read()
    if not image_bytes:
        log_request_error(ctx, ErrorCode.IMAGE_REQUIRED, "empty image upload")
        raise HTTPException(status_code=400, detail="Image file is required")

    max_bytes = _max_upload_bytes()
    if len(image_bytes) > max_bytes:
        log_request_error(ctx, ErrorCode.IMAGE_TOO_LARGE, "upload too large", extra={"file_size": len(image_bytes)})
        raise HTTPException(status_code=400, detail=f"Image file must be {max_bytes // (1024 * 1024)}MB or smaller")

    file_name = image.filename or "upload"
    mime_type = image.content_type or "application/octet-stream"
    log_request_start(ctx, {"file_name": file_name, "file_size": len(image_bytes), "mime_type": mime_type})

    try:
        if client is None:
            raise RuntimeError("vision model unavailable")
        data = await extract_menu_data(
            client,
            image_bytes=image_bytes,
            mime_type=mime_type,
            additional_text=additional_text,
            ctx=ctx,
        )
    except Exception as e:
        log_request_error(ctx, ErrorCode.VLM_FAILED, str(e), exc=e)
        raise HTTPException(status_code=500, detail="Failed to extract menu data")

    ctx.mark_done("completed")
    log_request_done(ctx)

    response = MenuExtractionResponse(
        success=True,
        data=data,
        metadata=ExtractionMetadata(file_name=file_name, file_size=len(image_bytes), mime_type=mime_type),
    )
    # Dumped here rather than through response_model so the model's JSON is not re-validated.
    return JSONResponse(content=response.model_dump(mode="json", by_alias=True, warnings=False))


@app.post("/api/generate-image", response_model=GenerateImageResponse)
async def generate_image(
    req: GenerateImageRequest,
    client: Optional[GeminiClient] = Depends(model_client),
) -> GenerateImageResponse:
    ctx = RequestContext(operation="generate_image")

    item_name = (req.item_name or "").strip()
    if not item_name:
        log_request_error(ctx, ErrorCode.ITEM_NAME_REQUIRED, "no itemName in request")
        raise HTTPException(status_code=400, detail="Item name is required")

    prompt = image_prompt(item_name, req.additional_prompt)
    log_request_start(ctx, {"item_name": item_name, "prompt_len": len(prompt)})

    try:
        if client is None:
            raise RuntimeError("image model unavailable")
        t0 = time.monotonic()
        image_bytes = await client.generate_food_image_bytes(prompt=prompt)
        ctx.image_gen_ms = int((time.monotonic() - t0) * 1000)
        log_step_timing(ctx, "image_gen", ctx.image_gen_ms)
        if not image_bytes:
            raise NoImageDataError("Image model returned empty image data")
        jpeg = dish_image_jpeg(image_bytes)
    except NoImageDataError as e:
        log_request_error(ctx, ErrorCode.IMAGE_GEN_EMPTY, str(e))
        raise HTTPException(status_code=500, detail="No image was generated")
    except Exception as e:
        log_request_error(ctx, ErrorCode.IMAGE_GEN_FAILED, str(e), exc=e)
        raise HTTPException(status_code=500, detail="Failed to generate image")

    ctx.mark_done("completed")
    log_request_done(ctx)

    return GenerateImageResponse(success=True, image=to_data_uri(jpeg, "image/jpeg"), prompt=prompt)
