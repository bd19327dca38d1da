"""
Catalog use cases: public listing, submissions and admin CRUD.

Payloads are cleaned and validated here, before any mutator is built, so bad
input never reaches the store queue. Mutators only look up the target item
and raise ``NotFoundError`` before changing anything.
"""

from __future__ import annotations

import re
import time
import uuid
from dataclasses import dataclass
from typing import Any, Mapping

from gptmart.repositories.json_storage import JSONStore

ITEM_STATUSES = ("live", "hidden", "pending")
CHATGPT_LINK_PATTERN = re.compile(r"^https://chatgpt\.com/g/", re.IGNORECASE)
ITEM_ID_PATTERN = re.compile(r"[A-Za-z0-9_-]{1,64}")
IMMUTABLE_FIELDS = ("id", "createdAt")

TITLE_MAX = 120
URL_MAX = 1000
ICON_MAX = 1_500_000
DESC_MAX = 800
CATEGORIES_MAX, CATEGORY_LEN = 10, 40
TAGS_MAX, TAG_LEN = 20, 32


class CatalogError(Exception):
    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ValidationError(CatalogError):
    """Bad or missing input; raised before anything is queued."""

    def __init__(self, message: str):
        super().__init__(message, 400)


class NotFoundError(CatalogError):
    """The targeted item does not exist."""

    def __init__(self, message: str = "Item not found"):
        super().__init__(message, 404)


def default_catalog(title: str = "GPTMart") -> dict:
    return {"settings": {"title": title}, "items": []}


def now_ms() -> int:
    return int(time.time() * 1000)


def _text(value: Any, limit: int) -> str:
    if value is None:
        return ""
    return str(value).strip()[:limit]


def _labels(value: Any, max_items: int, max_len: int) -> list[str]:
    # a single form field arrives as a bare string
    if isinstance(value, str):
        value = [value] if value.strip() else []
    if not isinstance(value, list):
        return []
    return [_text(v, max_len) for v in value[:max_items]]


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def validate_item_id(item_id: str | None) -> str:
    value = (item_id or "").strip()
    if not ITEM_ID_PATTERN.fullmatch(value):
        raise ValidationError("Invalid item id")
    return value


def validate_link(url: str) -> str:
    if not CHATGPT_LINK_PATTERN.match(url):
        raise ValidationError("ChatGPT link must start with https://chatgpt.com/g/...")
    return url


def clean_item_fields(payload: Mapping[str, Any], *, partial: bool = False) -> dict[str, Any]:
    """
    Normalise the editable fields of an item.

    With ``partial=True`` only the keys present in ``payload`` are returned
    (update semantics); otherwise every field gets a value and title/url are
    required.
    """
    fields: dict[str, Any] = {}

    def present(key: str) -> bool:
        return not partial or key in payload

    if present("title"):
        fields["title"] = _text(payload.get("title"), TITLE_MAX)
        if not fields["title"]:
            raise ValidationError("Title is required")
    if present("url"):
        fields["url"] = validate_link(_text(payload.get("url"), URL_MAX))
    if present("icon"):
        fields["icon"] = _text(payload.get("icon"), ICON_MAX)
    if present("desc"):
        fields["desc"] = _text(payload.get("desc"), DESC_MAX)
    if present("categories"):
        fields["categories"] = _labels(payload.get("categories"), CATEGORIES_MAX, CATEGORY_LEN)
    if present("tags"):
        fields["tags"] = _labels(payload.get("tags"), TAGS_MAX, TAG_LEN)
    if "status" in payload:
        status = _text(payload.get("status"), 16).lower()
        if status not in ITEM_STATUSES:
            raise ValidationError(f"Status must be one of: {', '.join(ITEM_STATUSES)}")
        fields["status"] = status
    if "featured" in payload:
        fields["featured"] = _flag(payload.get("featured"))
    return fields


def _new_id(items: list[dict]) -> str:
    taken = {item.get("id") for item in items}
    while True:
        candidate = str(uuid.uuid4())
        if candidate not in taken:
            return candidate


def _index_of(items: list[dict], item_id: str) -> int:
    for idx, item in enumerate(items):
        if item.get("id") == item_id:
            return idx
    raise NotFoundError()


@dataclass
class CatalogService:
    """Reads and writes catalog items through the shared JSON store."""

    store: JSONStore

    # -------------------------------------- reads --------------------------------------
    def document(self) -> dict:
        return self.store.read_all()

    def public_listing(self) -> dict:
        doc = self.store.read_all()
        return {
            "settings": doc.get("settings", {}),
            "items": [item for item in doc.get("items", []) if item.get("status") == "live"],
        }

    # -------------------------------------- writes --------------------------------------
    async def create(self, payload: Mapping[str, Any]) -> dict:
        """Admin create; the new item goes to the front of the list."""
        fields = clean_item_fields(payload)
        fields.setdefault("status", "live")
        fields.setdefault("featured", False)

        def mutator(doc: dict) -> dict:
            items = doc.setdefault("items", [])
            item = {"id": _new_id(items), **fields, "createdAt": now_ms()}
            items.insert(0, item)
            return dict(item)

        return await self.store.mutate(mutator)

    async def submit(self, payload: Mapping[str, Any], submitted_by: str) -> dict:
        """Public submission; always stored as pending and never featured."""
        fields = clean_item_fields(payload)
        fields["status"] = "pending"
        fields["featured"] = False

        def mutator(doc: dict) -> dict:
            items = doc.setdefault("items", [])
            item = {"id": _new_id(items), **fields, "createdAt": now_ms(), "submittedBy": submitted_by}
            items.append(item)
            return dict(item)

        return await self.store.mutate(mutator)

    async def update(self, item_id: str, payload: Mapping[str, Any]) -> dict:
        item_id = validate_item_id(item_id)
        changes = clean_item_fields(
            {k: v for k, v in payload.items() if k not in IMMUTABLE_FIELDS},
            partial=True,
        )

        def mutator(doc: dict) -> dict:
            items = doc.setdefault("items", [])
            idx = _index_of(items, item_id)
            items[idx].update(changes)
            return dict(items[idx])

        return await self.store.mutate(mutator)

    async def delete(self, item_id: str) -> None:
        item_id = validate_item_id(item_id)

        def mutator(doc: dict) -> None:
            items = doc.setdefault("items", [])
            del items[_index_of(items, item_id)]

        await self.store.mutate(mutator)
