from __future__ import annotations

import asyncio
import json
import sys
import time
from pathlib import Path

import pytest

# Garante que o pacote seja importável durante os testes locais
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from gptmart.repositories import json_storage  # noqa: E402
from gptmart.repositories.json_storage import JSONStore  # noqa: E402
from gptmart.services.catalog_service import (  # noqa: E402
    CatalogService,
    NotFoundError,
    ValidationError,
    default_catalog,
)
from gptmart.services.lead_service import LeadService  # noqa: E402

LINK = "https://chatgpt.com/g/abc"


@pytest.fixture()
def catalog(tmp_path):
    store = JSONStore(tmp_path / "db.json", default_catalog)
    store.load()
    return CatalogService(store)


def _disk(tmp_path):
    return json.loads((tmp_path / "db.json").read_text(encoding="utf-8"))


def test_create_then_concurrent_create_keeps_admission_order(catalog, tmp_path, monkeypatch):
    real_write = json_storage.atomic_write_text
    delays = iter([0.05, 0.0])
    snapshots = []

    def slow_write(path, text):
        time.sleep(next(delays))
        real_write(path, text)
        snapshots.append(json.loads(text))

    monkeypatch.setattr(json_storage, "atomic_write_text", slow_write)

    async def scenario():
        first = asyncio.create_task(catalog.create({"title": "X", "url": LINK}))
        await asyncio.sleep(0.01)  # A is now being written
        second = await catalog.create({"title": "Y", "url": LINK + "2"})
        return await first, second

    a, b = asyncio.run(scenario())
    assert a["id"] and b["id"] and a["id"] != b["id"]
    assert [i["title"] for i in snapshots[0]["items"]] == ["X"]
    # newest first
    assert [i["id"] for i in catalog.document()["items"]] == [b["id"], a["id"]]
    assert _disk(tmp_path) == catalog.document()


def test_create_fills_defaults(catalog):
    item = asyncio.run(catalog.create({"title": "  Python Pro  ", "url": LINK, "categories": ["Code"]}))
    assert item["title"] == "Python Pro"
    assert item["status"] == "live"
    assert item["featured"] is False
    assert item["categories"] == ["Code"]
    assert item["tags"] == []
    assert isinstance(item["createdAt"], int)


def test_submit_is_pending_and_appended(catalog):
    first = asyncio.run(catalog.create({"title": "A", "url": LINK}))
    sub = asyncio.run(
        catalog.submit({"title": "B", "url": LINK, "status": "live", "featured": True}, submitted_by="1.2.3.4")
    )
    items = catalog.document()["items"]
    assert [i["id"] for i in items] == [first["id"], sub["id"]]
    assert items[1]["status"] == "pending"
    assert items[1]["featured"] is False
    assert items[1]["submittedBy"] == "1.2.3.4"


def test_field_limits_are_applied(catalog):
    payload = {
        "title": "t" * 500,
        "url": LINK,
        "desc": "d" * 2000,
        "categories": ["c" * 100] * 30,
        "tags": ["x", "x"] + ["y" * 50] * 40,
    }
    item = asyncio.run(catalog.submit(payload, submitted_by="ip"))
    assert len(item["title"]) == 120
    assert len(item["desc"]) == 800
    assert len(item["categories"]) == 10 and all(len(c) == 40 for c in item["categories"])
    assert len(item["tags"]) == 20 and item["tags"][:2] == ["x", "x"]


@pytest.mark.parametrize(
    "payload, message",
    [
        ({"url": LINK}, "Title is required"),
        ({"title": "X", "url": "https://example.com/g/abc"}, "ChatGPT link"),
        ({"title": "X", "url": LINK, "status": "archived"}, "Status must be one of"),
    ],
)
def test_invalid_payload_never_reaches_the_queue(catalog, tmp_path, payload, message):
    before = (tmp_path / "db.json").read_bytes()

    async def refuse(mutator):
        raise AssertionError("should not be queued")

    catalog.store.mutate = refuse
    with pytest.raises(ValidationError, match=message):
        asyncio.run(catalog.create(payload))
    assert (tmp_path / "db.json").read_bytes() == before


def test_update_merges_and_keeps_immutable_fields(catalog):
    item = asyncio.run(catalog.create({"title": "X", "url": LINK, "tags": ["a"]}))
    updated = asyncio.run(
        catalog.update(item["id"], {"title": "Z", "status": "hidden", "id": "other", "createdAt": 1})
    )
    assert updated["id"] == item["id"]
    assert updated["createdAt"] == item["createdAt"]
    assert updated["title"] == "Z"
    assert updated["status"] == "hidden"
    assert updated["tags"] == ["a"]
    assert updated["url"] == LINK


def test_update_unknown_id_leaves_disk_unchanged(catalog, tmp_path):
    asyncio.run(catalog.create({"title": "X", "url": LINK}))
    before = (tmp_path / "db.json").read_bytes()
    with pytest.raises(NotFoundError):
        asyncio.run(catalog.update("does-not-exist", {"title": "Z"}))
    assert (tmp_path / "db.json").read_bytes() == before


def test_malformed_id_is_rejected(catalog):
    with pytest.raises(ValidationError):
        asyncio.run(catalog.update("../db", {"title": "Z"}))
    with pytest.raises(ValidationError):
        asyncio.run(catalog.delete(""))


def test_delete_only_item(catalog):
    item = asyncio.run(catalog.create({"title": "X", "url": LINK}))
    asyncio.run(catalog.delete(item["id"]))
    assert catalog.store.load()["items"] == []
    with pytest.raises(NotFoundError):
        asyncio.run(catalog.delete(item["id"]))


def test_public_listing_only_shows_live(catalog):
    live = asyncio.run(catalog.create({"title": "Live", "url": LINK}))
    asyncio.run(catalog.create({"title": "Hidden", "url": LINK, "status": "hidden"}))
    asyncio.run(catalog.submit({"title": "Pending", "url": LINK}, submitted_by="ip"))
    listing = catalog.public_listing()
    assert listing["settings"] == {"title": "GPTMart"}
    assert [i["id"] for i in listing["items"]] == [live["id"]]


def test_leads_are_appended(tmp_path):
    store = JSONStore(tmp_path / "leads.json", list)
    store.load()
    leads = LeadService(store)
    with pytest.raises(ValidationError, match="Email and message required"):
        asyncio.run(leads.add({"email": "a@b.c"}))
    asyncio.run(leads.add({"email": "a@b.c", "message": "hi", "tz": "UTC"}, user_agent="pytest"))
    asyncio.run(leads.add({"email": "d@e.f", "message": "yo", "ua": "custom"}, user_agent="pytest"))
    saved = store.load()
    assert [lead["email"] for lead in saved] == ["a@b.c", "d@e.f"]
    assert saved[0]["ua"] == "pytest" and saved[0]["tz"] == "UTC"
    assert saved[1]["ua"] == "custom"
    assert saved == leads.list_leads()


def test_single_string_label_is_kept(catalog):
    item = asyncio.run(catalog.create({"title": "X", "url": LINK, "categories": ["Coding", "Data"], "tags": "py"}))
    assert item["tags"] == ["py"]
    updated = asyncio.run(catalog.update(item["id"], {"categories": "Writing"}))
    assert updated["categories"] == ["Writing"]
    cleared = asyncio.run(catalog.update(item["id"], {"tags": "  "}))
    assert cleared["tags"] == []
