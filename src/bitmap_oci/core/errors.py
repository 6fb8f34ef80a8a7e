"""
Error Taxonomy and Global Error Handling

This module defines the exception hierarchy shared by the index, ordinals
and validation layers, and the FastAPI exception handlers that map it onto
HTTP responses.

Design Goals
------------
- Out-of-domain input is always surfaced, never recovered
- Remote failures carry enough context (URL, status) for diagnostics
- Never leak internal exception details to clients
- Always return deterministic, machine-readable error responses
- Log full stack traces internally for debugging
"""

from __future__ import annotations

import logging
from typing import Dict, Any, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger("bitmap.errors")


# ---------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------

class BitmapOCIError(RuntimeError):
    """Base exception for bitmap index and validation failures."""


class BitmapRangeError(BitmapOCIError, ValueError):
    """Raised when a bitmap number lies outside the indexed domain."""


class RemoteLookupError(BitmapOCIError):
    """
    Raised when the remote data service cannot answer a lookup.

    ``status_code`` is the HTTP status of the failing response, or None when
    the request never produced one (timeout, connection error, bad body).
    """

    def __init__(
        self,
        message: str,
        *,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class IndexDecodeError(BitmapOCIError):
    """Raised when an index page payload cannot be parsed by any strategy."""


class ClaimFormatError(BitmapOCIError, ValueError):
    """Raised when claim content does not match the bitmap grammar."""


# ---------------------------------------------------------------------
# Public Exception Handlers
# ---------------------------------------------------------------------

async def bitmap_range_error_handler(
    request: Request,
    exc: BitmapRangeError,
) -> JSONResponse:
    """
    Map out-of-domain bitmap numbers onto a 422 response.

    The message is safe to return: it only names the rejected number and
    the valid domain.
    """
    logger.info(
        "Rejected out-of-range request %s %s: %s",
        request.method,
        request.url.path,
        exc,
    )
    payload: Dict[str, Any] = {
        "error": "bitmap_out_of_range",
        "detail": str(exc),
    }
    return JSONResponse(status_code=422, content=payload)


async def remote_lookup_error_handler(
    request: Request,
    exc: BitmapOCIError,
) -> JSONResponse:
    """
    Map data-service failures onto a 502 response.

    Parameters
    ----------
    request : Request
        The incoming HTTP request that triggered the exception.

    exc : BitmapOCIError
        A RemoteLookupError or IndexDecodeError.

    Returns
    -------
    JSONResponse
        A JSON 502 response naming the failure class only.
    """
    logger.warning(
        "Upstream lookup failed during request %s %s (%s): %s",
        request.method,
        request.url.path,
        type(exc).__name__,
        exc,
    )
    payload: Dict[str, Any] = {
        "error": "upstream_lookup_failed",
        "detail": "The ordinals data service could not answer this lookup",
    }
    return JSONResponse(status_code=502, content=payload)


async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """
    Catch-all handler for uncaught exceptions.

    This handler should be registered with FastAPI as the final safety net
    for any exception not otherwise handled by route-level or framework-level
    handlers.

    Behavior
    --------
    - Logs the full exception stack trace for internal diagnostics.
    - Returns a generic 500 error to the client with no internal details.
    - Ensures consistent error response format across the entire API.
    """

    # Log full traceback internally (never returned to client)
    logger.exception(
        "Unhandled exception during request: %s %s",
        request.method,
        request.url.path,
        exc_info=exc,
    )

    # Deterministic, minimal external error surface
    payload: Dict[str, Any] = {
        "error": "internal_server_error",
        "detail": "Internal server error",
    }

    return JSONResponse(
        status_code=500,
        content=payload,
    )
