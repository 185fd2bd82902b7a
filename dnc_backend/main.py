"""
FastAPI application entry point for the DNC Compliance API.

Routes:
- /dnc-check: batch and single-number risk checks, CSV export
- /ftc-change-lists: FTC change-list registration, processing and retry
- /health, /: liveness and API info

Endpoint handlers receive stores and services through
dnc_backend.core.dependencies; this module only wires the app, CORS for the
admin dashboard, and the database pool lifecycle.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from dnc_backend import __version__
from dnc_backend.core.database import close_db, init_db, is_db_initialized
from dnc_backend.api.dnc_check import router as dnc_check_router
from dnc_backend.api.change_lists import router as change_lists_router

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# Admin dashboard dev servers
CORS_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Open the database pool on startup and close it on shutdown.

    A database that is down at startup does not stop the API; the pool is
    created lazily on the first request that needs it.
    """
    logger.info(f"DNC Compliance API {__version__} starting")
    try:
        await init_db()
    except Exception as e:
        logger.error(f"Database unavailable at startup, deferring pool creation: {e}")

    yield

    try:
        await close_db()
    except Exception as e:
        logger.error(f"Error closing database pool: {e}")
    logger.info("DNC Compliance API stopped")


app = FastAPI(
    title="DNC Compliance API",
    version=__version__,
    description=(
        "Batch DNC risk scoring for lead lists and ingestion of FTC "
        "change-list files into the DNC registry."
    ),
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(dnc_check_router, prefix="/dnc-check", tags=["dnc-check"])
app.include_router(change_lists_router, prefix="/ftc-change-lists", tags=["ftc-change-lists"])


@app.get("/health")
async def health_check() -> Dict[str, Any]:
    """
    Liveness probe.

    Returns:
        Dict with status 'healthy' and whether the database pool is open.
    """
    return {
        "status": "healthy",
        "database_pool": "open" if is_db_initialized() else "not_initialized",
    }


@app.get("/")
async def root() -> Dict[str, str]:
    return {
        "name": "DNC Compliance API",
        "version": __version__,
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("dnc_backend.main:app", host="0.0.0.0", port=8000)
