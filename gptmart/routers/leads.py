from __future__ import annotations

from fastapi import APIRouter, Request

from gptmart.core.utils import read_payload
from gptmart.routers.errors import service_errors
from gptmart.services.lead_service import LeadService
from gptmart.services.session_service import require_admin

router = APIRouter(prefix="/api/leads", tags=["leads"])


def _get_lead_service(request: Request) -> LeadService:
    svc = getattr(getattr(request.app, "state", None), "lead_service", None)
    if not svc:
        raise RuntimeError("LeadService not configured")
    return svc


@router.post("", status_code=201)
async def add_lead(request: Request):
    payload = await read_payload(request)
    with service_errors():
        await _get_lead_service(request).add(payload, user_agent=request.headers.get("user-agent", ""))
    return {"ok": True}


@router.get("")
def list_leads(request: Request):
    require_admin(request)
    return {"items": _get_lead_service(request).list_leads()}
