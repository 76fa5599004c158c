"""Exception handlers for the coffee marketplace API.

Every failure is rendered as the same envelope::

    {"message": "<generic description>", "error": "<underlying error text>"}

Marketplace errors answer with their own status code (400 validation,
404 not found, ...); anything unexpected becomes a 500.
"""

import logging
from typing import Dict

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from src.exceptions import MarketplaceError, RecommendationError

# Configure module logger
logger = logging.getLogger(__name__)


def error_envelope(message: str, error: str) -> Dict[str, str]:
    return {"message": message, "error": error}


async def marketplace_error_handler(request: Request, exc: MarketplaceError) -> JSONResponse:
    """Render a marketplace error with its status code."""
    if isinstance(exc, RecommendationError):
        error_text = str(exc.error)
    else:
        error_text = exc.message

    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "Request failed with marketplace error",
        extra={
            "path": str(request.url.path),
            "status_code": exc.status_code,
            "error_type": type(exc).__name__,
            "details": str(exc.details),
        },
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope(exc.title, error_text),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render any other exception as a 500."""
    logger.error(
        "Unhandled error",
        extra={"path": str(request.url.path), "error_type": type(exc).__name__},
        exc_info=exc,
    )
    return JSONResponse(
        status_code=500,
        content=error_envelope(MarketplaceError.title, str(exc)),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(MarketplaceError, marketplace_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
