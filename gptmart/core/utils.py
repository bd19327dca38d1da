"""
Utility helpers shared across routers/services.
"""

from __future__ import annotations

import io
import json
from typing import Any
from urllib.parse import parse_qs

from fastapi import HTTPException, Request
from python_multipart import parse_form
from python_multipart.exceptions import FormParserError

from .config import get_settings


async def read_payload(request: Request, max_bytes: int | None = None) -> dict[str, Any]:
    """
    Read a request body as a dict.

    JSON and HTML forms are honoured by content type; anything else is sniffed
    as JSON and falls back to ``{"raw": body}``. Oversized bodies are refused
    with 413, malformed ones with 400. Repeated form keys become lists.
    """
    limit = max_bytes if max_bytes is not None else get_settings().max_body_bytes
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > limit:
        raise HTTPException(413, "Payload too large")
    body = b""
    async for chunk in request.stream():
        body += chunk
        if len(body) > limit:
            raise HTTPException(413, "Payload too large")

    raw_content_type = request.headers.get("content-type") or ""
    content_type = raw_content_type.lower()
    if "application/json" in content_type:
        try:
            payload = json.loads(body or b"{}")
        except ValueError:
            raise HTTPException(400, "Invalid request body")
    elif "application/x-www-form-urlencoded" in content_type:
        fields = parse_qs(body.decode("utf-8", errors="replace"), keep_blank_values=True)
        payload = _flatten(fields)
    elif "multipart/form-data" in content_type:
        payload = _flatten(_multipart_fields(raw_content_type, body))
    else:
        try:
            payload = json.loads(body or b"{}")
        except ValueError:
            payload = {"raw": body.decode("utf-8", errors="replace")}
    if not isinstance(payload, dict):
        raise HTTPException(400, "Invalid request body")
    return payload


def _flatten(fields: dict[str, list[str]]) -> dict[str, Any]:
    return {key: values if len(values) > 1 else values[0] for key, values in fields.items() if values}


def _multipart_fields(content_type: str, body: bytes) -> dict[str, list[str]]:
    """Text fields of a multipart body; uploaded files are ignored."""
    fields: dict[str, list[str]] = {}

    def on_field(field) -> None:
        name = (field.field_name or b"").decode("utf-8", errors="replace")
        value = (field.value or b"").decode("utf-8", errors="replace")
        fields.setdefault(name, []).append(value)

    headers = {"Content-Type": content_type, "Content-Length": str(len(body))}
    try:
        parse_form(headers, io.BytesIO(body), on_field, lambda _file: None)
    except (FormParserError, ValueError):
        raise HTTPException(400, "Invalid request body")
    return fields
