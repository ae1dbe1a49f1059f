"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from miranda.api import articles, feeds, health, scans, settings as settings_api, usage
from miranda.config import settings
from miranda.core.logging import setup_logging
from miranda.database.mongo import ensure_indexes, get_database
from miranda.middleware.error_codes import get_error_code
from miranda.services.pipeline_exceptions import PipelineError

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        ensure_indexes(get_database())
    except Exception as exc:  # pragma: no cover
        logger.warning("Skipping index creation: %s", exc)
    yield


app = FastAPI(
    title=f"{settings.APP_NAME} API",
    description="Feed scanning and article scoring for video content",
    version=settings.APP_VERSION,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PipelineError)
async def pipeline_error_handler(request: Request, exc: PipelineError):
    status_code = getattr(exc, "status_code", 500)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": get_error_code(status_code).value, "message": str(exc)}},
    )


app.include_router(health.router, prefix="/api", tags=["Health"])
app.include_router(scans.router, prefix="/api")
app.include_router(articles.router, prefix="/api")
app.include_router(feeds.router, prefix="/api")
app.include_router(settings_api.router, prefix="/api")
app.include_router(usage.router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": f"{settings.APP_NAME} API",
        "version": settings.APP_VERSION,
        "docs": "/api/docs",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("miranda.main:app", host="0.0.0.0", port=8000, reload=True)
