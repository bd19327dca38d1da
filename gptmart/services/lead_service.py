"""Leads collected from the public contact form (append-only)."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any, Mapping

from gptmart.repositories.json_storage import JSONStore
from gptmart.services.catalog_service import ValidationError, now_ms

EMAIL_MAX = 254
NAME_MAX = 120
MESSAGE_MAX = 5000
META_MAX = 512


def _text(value: Any, limit: int) -> str:
    return str(value or "").strip()[:limit]


@dataclass
class LeadService:
    store: JSONStore

    def list_leads(self) -> list:
        return self.store.read_all()

    async def add(self, payload: Mapping[str, Any], user_agent: str = "") -> dict:
        email = _text(payload.get("email"), EMAIL_MAX)
        message = _text(payload.get("message"), MESSAGE_MAX)
        if not email or not message:
            raise ValidationError("Email and message required")
        lead = {
            "id": str(uuid.uuid4()),
            "email": email,
            "name": _text(payload.get("name"), NAME_MAX),
            "message": message,
            "ua": _text(payload.get("ua") or user_agent, META_MAX),
            "tz": _text(payload.get("tz"), META_MAX),
            "createdAt": now_ms(),
        }

        def mutator(leads: list) -> dict:
            leads.append(lead)
            return dict(lead)

        return await self.store.mutate(mutator)
