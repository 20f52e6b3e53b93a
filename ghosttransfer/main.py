"""GhostTransfer local web UI (FastAPI application)."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from ghosttransfer.config import settings
from ghosttransfer.log_config import configure_logging

# Configure logging so INFO messages (API requests/responses) appear
configure_logging()

from ghosttransfer.routers import pages, session as session_router  # noqa: E402
from ghosttransfer.session import close_session, init_session  # noqa: E402

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown lifecycle."""
    init_session()
    logger.info("Using share API at %s", settings.api_base_url)
    yield
    await close_session()


app = FastAPI(
    title="GhostTransfer",
    description="Send notes and files anonymously with self-destruct links",
    version=VERSION,
    lifespan=lifespan,
)

app.include_router(session_router.router)
app.include_router(pages.router)


# Health check
@app.get("/api/health")
async def health():
    return {"status": "ok", "version": VERSION, "api_base_url": settings.api_base_url}
