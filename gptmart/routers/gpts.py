from __future__ import annotations

from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse

from gptmart.core.config import get_settings
from gptmart.core.rate_limiter import rate_limit_ip
from gptmart.core.utils import read_payload
from gptmart.routers.errors import service_errors
from gptmart.services.catalog_service import CatalogService
from gptmart.services.session_service import require_admin

router = APIRouter(prefix="/api/gpts", tags=["gpts"])


def _get_catalog_service(request: Request) -> CatalogService:
    svc = getattr(getattr(request.app, "state", None), "catalog_service", None)
    if not svc:
        raise RuntimeError("CatalogService not configured")
    return svc


# ---------------------- public ----------------------
@router.get("/public")
def public_items(request: Request):
    return _get_catalog_service(request).public_listing()


@router.post("/submit", status_code=201)
async def submit(request: Request):
    settings = get_settings()
    ip = rate_limit_ip(
        request,
        "gpts:submit",
        limit=settings.submit_rate_limit,
        window_seconds=settings.submit_rate_window_seconds,
        message="Too many submissions. Try later.",
    )
    payload = await read_payload(request)
    with service_errors():
        item = await _get_catalog_service(request).submit(payload, submitted_by=ip)
    return {"success": True, "id": item["id"]}


# ---------------------- admin ----------------------
@router.get("/all")
def all_items(request: Request):
    require_admin(request)
    return _get_catalog_service(request).document()


@router.post("/create")
async def create(request: Request):
    require_admin(request)
    payload = await read_payload(request)
    with service_errors():
        item = await _get_catalog_service(request).create(payload)
    return JSONResponse(item, status_code=201)


@router.put("/update/{item_id}")
async def update(item_id: str, request: Request):
    require_admin(request)
    payload = await read_payload(request)
    with service_errors():
        return await _get_catalog_service(request).update(item_id, payload)


@router.delete("/delete/{item_id}")
async def delete(item_id: str, request: Request):
    require_admin(request)
    with service_errors():
        await _get_catalog_service(request).delete(item_id)
    return Response(status_code=204)
