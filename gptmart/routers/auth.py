from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse

from gptmart.core.config import get_settings
from gptmart.core.rate_limiter import client_ip, rate_limit_ip
from gptmart.core.security import verify_pin
from gptmart.core.utils import read_payload
from gptmart.services.session_service import (
    clear_session_cookie,
    credential_from_request,
    get_admin_sessions,
    set_session_cookie,
)

router = APIRouter(prefix="/api", tags=["auth"])
logger = logging.getLogger(__name__)

PIN_FIELDS = ("pin", "PIN", "passcode", "password")


def _supplied_pin(payload: dict) -> str:
    for key in PIN_FIELDS:
        if payload.get(key) is not None:
            return str(payload[key])
    return ""


@router.post("/login")
async def login(request: Request):
    settings = get_settings()
    rate_limit_ip(
        request,
        "auth:login",
        limit=settings.login_rate_limit,
        window_seconds=settings.login_rate_window_seconds,
        message="Too many login attempts. Try later.",
    )
    payload = await read_payload(request)
    pin_hash = getattr(request.app.state, "admin_pin_hash", "")
    if not verify_pin(_supplied_pin(payload), pin_hash):
        logger.warning("Failed admin login from %s", client_ip(request))
        raise HTTPException(401, "Invalid PIN")
    token = get_admin_sessions(request).issue("admin")
    response = JSONResponse({"success": True, "token": token})
    set_session_cookie(response, token)
    return response


@router.post("/logout")
def logout(request: Request):
    get_admin_sessions(request).revoke(credential_from_request(request))
    response = JSONResponse({"ok": True})
    clear_session_cookie(response)
    return response
