#!/usr/bin/env python3
"""
Add a GPT to the catalog file (DATA_DIR/db.json) without going through the API.

Stop the server first: it keeps its own copy of the document in memory and
would overwrite this change on its next write.

Usage:
  python scripts/add_gpt.py --title "Python Pro" --url https://chatgpt.com/g/g-abc \
      [--desc "..."] [--icon URL] [--category Coding]... [--tag python]... \
      [--status live|hidden|pending] [--featured]
"""
from __future__ import annotations

import argparse
import asyncio
import sys

from gptmart.core.config import get_settings
from gptmart.repositories.json_storage import JSONStore
from gptmart.services.catalog_service import CatalogService, ITEM_STATUSES, ValidationError, default_catalog


async def add(payload: dict) -> dict:
    settings = get_settings()
    store = JSONStore(settings.db_path, lambda: default_catalog(settings.site_title))
    store.load()
    return await CatalogService(store).create(payload)


def main() -> None:
    ap = argparse.ArgumentParser(description="Add a GPT to the catalog")
    ap.add_argument("--title", required=True)
    ap.add_argument("--url", required=True, help="https://chatgpt.com/g/...")
    ap.add_argument("--desc", default="")
    ap.add_argument("--icon", default="")
    ap.add_argument("--category", action="append", default=[], dest="categories")
    ap.add_argument("--tag", action="append", default=[], dest="tags")
    ap.add_argument("--status", default="live", choices=ITEM_STATUSES)
    ap.add_argument("--featured", action="store_true")
    args = ap.parse_args()

    try:
        item = asyncio.run(add(vars(args)))
    except ValidationError as exc:
        raise SystemExit(f"Invalid item: {exc.message}")
    print("OK: GPT added")
    print(f"  ID: {item['id']}")
    print(f"  Title: {item['title']}")
    print(f"  Status: {item['status']}")


if __name__ == "__main__":
    try:
        main()
    except Exception as exc:  # pragma: no cover - CLI
        sys.stderr.write(f"Error: {exc}\n")
        raise SystemExit(1)
