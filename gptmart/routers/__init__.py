"""
FastAPI routers grouped by domain (auth, gpts, leads, pages).

Each module exposes an APIRouter included by ``gptmart.app.create_app``.
"""
