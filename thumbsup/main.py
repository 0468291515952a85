"""
Main FastAPI application entry point.
"""
import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from .config import settings
from .database import engine, init_db
from .logging_config import configure_logging
from .wiring.bootstrap import get_analysis_queue, get_pipeline_runtime

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.
    """
    configure_logging(settings.log_level)
    logger.info("Starting ThumbsUp insights API (database=%s)", settings.database_url)

    init_db()
    logger.info("Database initialized")

    runtime = None
    if settings.background_workers_enabled:
        runtime = get_pipeline_runtime()
        runtime.start()

    yield

    logger.info("Shutting down ThumbsUp insights API")
    if runtime is not None:
        await asyncio.to_thread(runtime.stop)


app = FastAPI(
    title="ThumbsUp Insights API",
    description="Content analysis, client preference summaries and approval prediction",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/livez")
async def liveness():
    """Liveness probe - zero dependencies, confirms process is responsive."""
    return {"status": "ok"}


@app.get("/readyz")
async def readiness():
    """Readiness probe - checks database connectivity and reports queue depth."""
    checks = {}
    healthy = True

    try:
        def _check_db():
            with engine.connect() as conn:
                return conn.execute(text("SELECT 1")).scalar() == 1

        if await asyncio.to_thread(_check_db):
            checks["database"] = "ok"
        else:
            checks["database"] = "error: unexpected response"
            healthy = False
    except Exception as e:
        checks["database"] = f"error: {type(e).__name__}"
        healthy = False

    checks["analysis_queue_depth"] = len(get_analysis_queue())
    return JSONResponse(
        content={"status": "ok" if healthy else "unhealthy", "checks": checks},
        status_code=200 if healthy else 503,
    )


# Include API routers
from .api.v1.router import router as api_router  # noqa: E402
app.include_router(api_router, prefix="/api/v1")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("thumbsup.main:app", host=settings.api_host, port=settings.api_port)
