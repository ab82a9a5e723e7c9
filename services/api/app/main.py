"""FastAPI application factory / entrypoint.

This service exposes HTTP endpoints for:
- accounts, sessions and profiles (coaches and players)
- player discovery, college directory and recruiting interests
- coach watchlists / recruiting pipeline
- messaging and notifications
- teams, announcements, golf courses, qualifiers, round tracking and statistics
- triggering background jobs (where implemented)
- health checks

The API is intended to be consumed by the web frontend and by internal tooling.

Operational notes:
- CORS origins come from `Settings.allowed_origins`.
- Database connectivity is provided via `services/api/app/db.py`.
- Every request is logged with method, path, status and duration.
"""

import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from libs.common_python.common.logging import setup_logging

from .routes import router
from .settings import get_settings

settings = get_settings()
setup_logging(settings.log_level, settings.log_format)

logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name, version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    logger.info(
        "%s %s %s",
        request.method,
        request.url.path,
        response.status_code,
        extra={"duration_ms": round((time.perf_counter() - start) * 1000, 1)},
    )
    return response


@app.exception_handler(Exception)
async def unhandled_exception(request: Request, exc: Exception):
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"ok": False, "error": "Internal server error"})


app.include_router(router)


@app.get("/health")
def health():
    """Health check endpoint.

    Returns a minimal payload used by local dev tooling, containers, and
    orchestrators (Docker Compose / Kubernetes) to determine whether the API
    process is up and able to serve requests.

    Returns:
        dict: `{"status": "ok", "service": "api"}`.
    """
    return {"status": "ok", "service": "api"}


def run() -> None:
    """Serve the API with uvicorn (`helm-api` console script)."""
    import uvicorn

    uvicorn.run(
        "services.api.app.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.app_env == "development",
        log_config=None,
    )


if __name__ == "__main__":
    run()
