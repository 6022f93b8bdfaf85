"""
Observability utilities: request correlation IDs, timing, error codes.

Usage:
    from .observability import RequestContext, ErrorCode, log_request_start, log_request_done

This module provides:
- RequestContext: dataclass for correlation IDs, step timings and outcome
- ErrorCode: enum of normalized error codes
- Structured logging helpers
"""

from __future__ import annotations

import logging
import os
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# Release metadata (set via env or build)
# -----------------------------------------------------------------------------
RELEASE_VERSION = os.getenv("RELEASE_VERSION", "dev")
GIT_SHA = os.getenv("GIT_SHA", "unknown")


# -----------------------------------------------------------------------------
# Error codes (normalized)
# -----------------------------------------------------------------------------
class ErrorCode(str, Enum):
    """Normalized error codes for error logging."""

    # Client input errors
    IMAGE_REQUIRED = "IMAGE_REQUIRED"
    IMAGE_TOO_LARGE = "IMAGE_TOO_LARGE"
    ITEM_NAME_REQUIRED = "ITEM_NAME_REQUIRED"
    INVALID_REQUEST = "INVALID_REQUEST"

    # Model errors
    VLM_FAILED = "VLM_FAILED"
    IMAGE_GEN_FAILED = "IMAGE_GEN_FAILED"
    IMAGE_GEN_EMPTY = "IMAGE_GEN_EMPTY"

    # Generic
    INTERNAL_ERROR = "INTERNAL_ERROR"


# -----------------------------------------------------------------------------
# Request context (correlation + timing)
# -----------------------------------------------------------------------------
@dataclass
class RequestContext:
    """
    Holds correlation IDs and timing for a single extraction or
    image-generation request. Create at the start, pass through the pipeline.
    """

    operation: str
    request_id: str = field(default_factory=lambda: uuid.uuid4().hex)

    # Timing (monotonic, seconds)
    started_at: float = field(default_factory=time.monotonic)
    done_at: Optional[float] = None

    # Step timings (ms)
    vlm_ms: Optional[int] = None
    image_gen_ms: Optional[int] = None

    # Outcome
    final_status: str = "unknown"
    error_code: Optional[str] = None
    used_fallback: bool = False
    categories_count: int = 0
    items_count: int = 0

    def elapsed_ms(self) -> int:
        return int((time.monotonic() - self.started_at) * 1000)

    def mark_done(self, status: str) -> None:
        self.done_at = time.monotonic()
        self.final_status = status

    def correlation_fields(self) -> Dict[str, Any]:
        return {
            "operation": self.operation,
            "request_id": self.request_id,
            "release": RELEASE_VERSION,
            "git_sha": GIT_SHA,
        }

    def timing_fields(self) -> Dict[str, Any]:
        fields: Dict[str, Any] = {"elapsed_ms": self.elapsed_ms()}
        if self.vlm_ms is not None:
            fields["vlm_ms"] = self.vlm_ms
        if self.image_gen_ms is not None:
            fields["image_gen_ms"] = self.image_gen_ms
        return fields

    def outcome_fields(self) -> Dict[str, Any]:
        fields: Dict[str, Any] = {
            "final_status": self.final_status,
            "categories_count": self.categories_count,
            "items_count": self.items_count,
            "used_fallback": self.used_fallback,
        }
        if self.error_code:
            fields["error_code"] = self.error_code
        return fields

    def all_fields(self) -> Dict[str, Any]:
        """Return all fields combined for final summary log."""
        return {
            **self.correlation_fields(),
            **self.timing_fields(),
            **self.outcome_fields(),
        }


# -----------------------------------------------------------------------------
# Structured logging helpers
# -----------------------------------------------------------------------------
def log_request_start(ctx: RequestContext, extra: Optional[Dict[str, Any]] = None) -> None:
    fields = ctx.correlation_fields()
    if extra:
        fields.update(extra)
    logger.info("%s_start %s", ctx.operation, fields)


def log_request_done(ctx: RequestContext, extra: Optional[Dict[str, Any]] = None) -> None:
    fields = ctx.all_fields()
    if extra:
        fields.update(extra)
    logger.info("%s_done %s", ctx.operation, fields)


def log_request_error(
    ctx: RequestContext,
    error_code: ErrorCode,
    message: str,
    exc: Optional[Exception] = None,
    extra: Optional[Dict[str, Any]] = None,
) -> None:
    """Log a request error; upstream failures (exc given) carry the traceback."""
    ctx.error_code = error_code.value
    ctx.mark_done("failed")
    fields = ctx.correlation_fields()
    fields["error_code"] = error_code.value
    fields["error_message"] = message
    fields["elapsed_ms"] = ctx.elapsed_ms()
    if extra:
        fields.update(extra)
    if exc:
        logger.exception("%s_error %s", ctx.operation, fields)
    else:
        logger.warning("%s_error %s", ctx.operation, fields)


def log_step_timing(
    ctx: RequestContext,
    step: str,
    duration_ms: int,
    extra: Optional[Dict[str, Any]] = None,
) -> None:
    fields = ctx.correlation_fields()
    fields["step"] = step
    fields["duration_ms"] = duration_ms
    if extra:
        fields.update(extra)
    logger.info("%s_step %s", ctx.operation, fields)
