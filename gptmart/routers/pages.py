from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import FileResponse, PlainTextResponse

from gptmart.core.config import get_settings
from gptmart.services.session_service import require_admin

router = APIRouter(prefix="", tags=["pages"])


@router.get("/")
def index(request: Request):
    page = get_settings().static_dir / "index.html"
    if page.is_file():
        return FileResponse(page, media_type="text/html; charset=utf-8")
    return PlainTextResponse("GPTMart connector is running. /index.html not found.")


@router.get("/api/health")
def health():
    return {"ok": True}


@router.api_route("/api/{path:path}", methods=["GET", "POST", "PUT", "PATCH", "DELETE"], include_in_schema=False)
def api_not_found(path: str, request: Request):
    # unknown API paths sit behind the admin gate, like every non-public route
    require_admin(request)
    raise HTTPException(404, "API route not found")
