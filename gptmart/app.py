"""FastAPI application factory for the GPTMart backend."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from gptmart.core.config import Settings, get_settings
from gptmart.core.security import hash_pin
from gptmart.repositories.json_storage import JSONStore
from gptmart.routers import auth as auth_router
from gptmart.routers import gpts as gpts_router
from gptmart.routers import leads as leads_router
from gptmart.routers import pages as pages_router
from gptmart.routers.errors import http_error_handler
from gptmart.services.catalog_service import CatalogService, default_catalog
from gptmart.services.lead_service import LeadService
from gptmart.services.session_service import AdminSessions

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Build the app. Both JSON stores are loaded here, so a data directory that
    cannot be initialised raises ``StartupError`` before anything is served.
    """
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    catalog_store = JSONStore(settings.db_path, lambda: default_catalog(settings.site_title))
    leads_store = JSONStore(settings.leads_path, list)
    catalog_store.load()
    leads_store.load()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await catalog_store.join()
        await leads_store.join()

    app = FastAPI(title="GPTMart API", lifespan=lifespan)
    app.state.settings = settings
    app.state.catalog_service = CatalogService(catalog_store)
    app.state.lead_service = LeadService(leads_store)
    app.state.admin_sessions = AdminSessions(settings.session_ttl_seconds)
    app.state.admin_pin_hash = settings.admin_pin_hash or hash_pin(settings.admin_pin)

    cors = dict(
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
    if settings.cors_origins:
        app.add_middleware(CORSMiddleware, allow_origins=list(settings.cors_origins), **cors)
    else:
        # no allow-list configured: echo back whichever origin asked
        app.add_middleware(CORSMiddleware, allow_origin_regex=".*", **cors)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)

    app.include_router(auth_router.router)
    app.include_router(gpts_router.router)
    app.include_router(leads_router.router)
    app.include_router(pages_router.router)

    logger.info("GPTMart ready (data in %s)", settings.data_dir)
    return app


def run() -> None:
    settings = get_settings()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
