"""Translate service/store failures into HTTP errors."""

from __future__ import annotations

import logging
from contextlib import contextmanager

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from gptmart.repositories.json_storage import StoreError
from gptmart.services.catalog_service import CatalogError

logger = logging.getLogger(__name__)


@contextmanager
def service_errors():
    try:
        yield
    except CatalogError as exc:
        raise HTTPException(exc.status_code, exc.message) from exc
    except StoreError as exc:
        logger.error("Store failure: %s", exc)
        raise HTTPException(500, "Server error") from exc


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render every HTTP error as ``{"error": ...}``."""
    return JSONResponse(
        {"error": exc.detail},
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )
