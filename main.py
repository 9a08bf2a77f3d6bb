import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api import files, messages, timeline
from core.config import get_settings
from core.database import create_tables, engine
from core.exceptions import (
    DocumentStoreError,
    RecordNotFoundError,
    StorageException,
    StorageNotFoundError,
    StoragePermissionError,
)
from core.logging import setup_logging
from middleware.correlation import CorrelationIDMiddleware
from services.cache_service import CacheService, purge_periodically
from services.storage import create_blob_storage

logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan events for application initialization and cleanup"""
    setup_logging()

    if settings.database_auto_create:
        await create_tables()
        logger.info("Database tables ensured")

    # Response cache lives exactly as long as the app
    app.state.cache = CacheService()
    app.state.blob_storage = create_blob_storage(settings)
    purge_task = asyncio.create_task(
        purge_periodically(app.state.cache, settings.cache_purge_interval)
    )

    yield

    purge_task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await purge_task
    app.state.cache.clear_all()
    await engine.dispose()
    logger.info("Database engine disposed")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    debug=settings.debug,
    lifespan=lifespan,
)


@app.exception_handler(RecordNotFoundError)
async def record_not_found_handler(request: Request, exc: RecordNotFoundError):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


@app.exception_handler(DocumentStoreError)
async def document_store_error_handler(request: Request, exc: DocumentStoreError):
    logger.error(f"Document store failure on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


@app.exception_handler(StorageException)
async def storage_error_handler(request: Request, exc: StorageException):
    if isinstance(exc, StorageNotFoundError):
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": "File not found"})
    if isinstance(exc, StoragePermissionError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST, content={"detail": "Invalid file or container name"}
        )
    logger.error(f"Blob storage failure on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# Middleware (applied in reverse order of registration)
app.add_middleware(CorrelationIDMiddleware)

# Security: Using allow_credentials=True requires specific origins (not wildcard)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in settings.allowed_origins.split(",")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(timeline.router, prefix="/api/timeline", tags=["timeline"])
app.include_router(messages.router, prefix="/api/messages", tags=["messages"])
app.include_router(files.router, prefix="/api/files", tags=["files"])


@app.get("/")
async def root():
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "status": "running",
    }
