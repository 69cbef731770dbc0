import asyncio
import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from linksprint.config import settings
from linksprint.database.connection import engine, Base
from linksprint.dependencies import get_cache, get_click_recorder, get_queue
from linksprint.exceptions import (
    CodeConflictError,
    InvalidInputError,
    LinkSprintError,
    NotFoundError,
    UnavailableError,
)
from linksprint.logging_config import configure_logging
from linksprint.api.v1 import analytics, redirect, urls

# Import models to ensure they're registered with Base
from linksprint.models import URL, Click  # noqa: F401

configure_logging(settings.log_level)
logger = logging.getLogger("linksprint")

# Create database tables
Base.metadata.create_all(bind=engine)


def _resolve(dependency):
    """Call a singleton dependency, honouring test overrides."""
    return app.dependency_overrides.get(dependency, dependency)()


@asynccontextmanager
async def lifespan(app: FastAPI):
    worker_task = None
    if settings.click_worker_embedded:
        from linksprint.click_processor.click_worker import ClickWorker

        worker = ClickWorker(queue=_resolve(get_queue))
        worker_task = asyncio.create_task(worker.start())

    logger.info("%s %s started (%s)", settings.app_name, settings.app_version, settings.environment)
    yield

    await _resolve(get_click_recorder).drain()
    if worker_task is not None:
        worker_task.cancel()
        try:
            await worker_task
        except asyncio.CancelledError:
            pass

    # Recorder and worker are done with them; close the connection pools
    await _resolve(get_cache).close()
    await _resolve(get_queue).close()
    logger.info("%s stopped", settings.app_name)


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Distributed URL Shortener & Analytics API",
    debug=settings.debug,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Origin", "Content-Type", "Accept", "Authorization"],
)


@app.middleware("http")
async def request_context(request: Request, call_next):
    """Propagate or assign X-Request-ID and add security headers."""
    request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
    request.state.request_id = request_id

    response = await call_next(request)

    response.headers["X-Request-ID"] = request_id
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    return response


######## Error handlers

ERROR_STATUS = {
    InvalidInputError: status.HTTP_400_BAD_REQUEST,
    CodeConflictError: status.HTTP_409_CONFLICT,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    UnavailableError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


@app.exception_handler(LinkSprintError)
async def linksprint_error_handler(request: Request, exc: LinkSprintError):
    status_code = next(
        (code for error_type, code in ERROR_STATUS.items() if isinstance(exc, error_type)),
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status_code, content={"error": str(exc)})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0]["msg"] if errors else "Invalid request"
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": message})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal Server Error"},
    )


@app.get("/health")
def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
    }


@app.get("/api/v1/")
def api_index():
    """API information"""
    return {
        "name": f"{settings.app_name} API",
        "version": settings.app_version,
        "endpoints": {
            "urls": {
                "POST /api/v1/urls/shorten": "Create a short URL",
                "GET /api/v1/urls": "List all URLs",
                "GET /api/v1/urls/:shortCode/stats": "Get URL statistics",
                "DELETE /api/v1/urls/:shortCode": "Delete a URL",
            },
            "analytics": {
                "GET /api/v1/analytics/:shortCode": "Get URL analytics",
                "GET /api/v1/analytics/global": "Get global analytics",
                "POST /api/v1/analytics/track": "Track a click",
            },
            "redirect": {
                "GET /:shortCode": "Redirect to the original URL",
            },
        },
    }


######## Include routers
app.include_router(urls.router, prefix="/api/v1")
app.include_router(analytics.router, prefix="/api/v1")
# Catch-all redirect goes last
app.include_router(redirect.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host=settings.host, port=settings.port, reload=settings.debug)
