"""Bookstore API: FastAPI entry point.

Registers logging, middleware, error handlers, routers and lifecycle hooks.
The database engine is created lazily on the first request that needs it;
shutdown disposes of it.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.errors import register_exception_handlers
from api.middleware import RequestContextMiddleware
from core.config import settings
from core.database import close_db, init_db, ping
from core.observability.logging_setup import setup_logging

VERSION = "0.1.0"

setup_logging(settings.log_level)
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup/shutdown hooks."""
    if settings.database.create_tables:
        await init_db()
        logger.info("Database tables ensured")

    logger.info("Bookstore API started")
    yield
    await close_db()
    logger.info("Bookstore API shut down")


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Bookstore",
    description="Online bookstore API: catalog, reviews and shopping cart",
    version=VERSION,
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Request id + access log
app.add_middleware(RequestContextMiddleware)

register_exception_handlers(app)

# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------

from bookstore.router import router as bookstore_router  # noqa: E402

app.include_router(bookstore_router, prefix="/api", tags=["Bookstore"])


# ---------------------------------------------------------------------------
# Health & root
# ---------------------------------------------------------------------------

@app.get("/health")
async def health():
    database_ok = await ping()
    return JSONResponse(
        status_code=200 if database_ok else 503,
        content={
            "status": "healthy" if database_ok else "degraded",
            "version": VERSION,
            "database": "connected" if database_ok else "unreachable",
        },
    )


@app.get("/")
async def root():
    return {
        "name": "Bookstore",
        "version": VERSION,
        "docs": "/docs",
        "endpoints": ["/api/books", "/api/reviews", "/api/cart"],
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("api.main:app", host="0.0.0.0", port=8000)
