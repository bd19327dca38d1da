"""Admin session helpers (issue tokens, cookies, validation)."""
from __future__ import annotations

import secrets
import threading
import time
from typing import Dict, Optional, Tuple

from fastapi import HTTPException, Request, Response

from gptmart.core.config import get_settings


SESSION_COOKIE_NAME = "session"


class AdminSessions:
    """In-memory token registry; a process restart logs every admin out."""

    def __init__(self, ttl_seconds: int) -> None:
        self.ttl_seconds = max(60, ttl_seconds)
        self._sessions: Dict[str, Tuple[str, float]] = {}
        self._lock = threading.Lock()

    def issue(self, user: str = "admin") -> str:
        token = secrets.token_urlsafe(32)
        now = time.time()
        with self._lock:
            expired = [t for t, (_, expires) in self._sessions.items() if expires <= now]
            for t in expired:
                del self._sessions[t]
            self._sessions[token] = (user, now + self.ttl_seconds)
        return token

    def user_for(self, token: Optional[str]) -> Optional[str]:
        if not token:
            return None
        now = time.time()
        with self._lock:
            entry = self._sessions.get(token)
            if not entry:
                return None
            user, expires = entry
            if expires <= now:
                del self._sessions[token]
                return None
            return user

    def is_authorized(self, token: Optional[str]) -> bool:
        return self.user_for(token) is not None

    def revoke(self, token: Optional[str]) -> None:
        if not token:
            return
        with self._lock:
            self._sessions.pop(token, None)


def credential_from_request(request: Request) -> Optional[str]:
    """Bearer token first, then the session cookie."""
    auth = request.headers.get("authorization") or ""
    if auth.startswith("Bearer "):
        token = auth[len("Bearer ") :].strip()
        if token:
            return token
    return request.cookies.get(SESSION_COOKIE_NAME) or None


def get_admin_sessions(request: Request) -> AdminSessions:
    sessions = getattr(getattr(request.app, "state", None), "admin_sessions", None)
    if not sessions:
        raise RuntimeError("AdminSessions not configured")
    return sessions


def require_admin(request: Request) -> str:
    user = get_admin_sessions(request).user_for(credential_from_request(request))
    if not user:
        raise HTTPException(401, "Unauthorized")
    return user


def set_session_cookie(response: Response, token: str) -> None:
    settings = get_settings()
    # cross-site admin panels need SameSite=None, which browsers only accept with Secure
    prod = settings.app_env == "prod"
    response.set_cookie(
        SESSION_COOKIE_NAME,
        token,
        httponly=True,
        secure=prod,
        samesite="none" if prod else "lax",
        max_age=settings.session_ttl_seconds,
        path="/",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(SESSION_COOKIE_NAME, path="/")
