"""FastAPI application for the Lokkatha storytelling backend."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from .auth.routes import router as auth_router
from .config import CORS_ORIGINS, LOG_FORMAT, LOG_LEVEL, require_database_url
from .database.db import Database
from .logging import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Own the process-wide Database handle for the app's lifetime."""
    configure_logging(json_format=LOG_FORMAT == "json", level=LOG_LEVEL)

    # Missing DATABASE_URL aborts startup; the pool itself opens on first query
    app.state.db = Database(require_database_url())
    logger.info("Database handle created")

    yield

    await app.state.db.close()


app = FastAPI(
    title="Lokkatha API",
    description="Accounts and sessions for a folk-tale storytelling platform.",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router)


@app.get("/health", tags=["Health"])
async def health_check(request: Request):
    """Liveness probe. Reports whether the pool has been opened yet."""
    db: Database = request.app.state.db
    return {"status": "healthy", "database": "connected" if db.is_connected else "idle"}
