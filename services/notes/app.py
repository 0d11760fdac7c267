# services/notes/app.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.status import HTTP_500_INTERNAL_SERVER_ERROR, HTTP_503_SERVICE_UNAVAILABLE

import services.notes.core.shared as shared
from services.notes.core.errors import (
    MediumIOError, NotInitializedError, StorageError, StorageInitError, ValidationError,
)
from services.notes.routes.notes import router as notes_router
from services.notes.routes.storage import router as storage_router
from services.notes.storage.manager import StorageManager

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR = (
    (ValidationError, 422),
    (StorageInitError, HTTP_503_SERVICE_UNAVAILABLE),
    (NotInitializedError, HTTP_503_SERVICE_UNAVAILABLE),
    (MediumIOError, HTTP_500_INTERNAL_SERVER_ERROR),
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # ---- startup ----
    try:
        await app.state.storage.init()
    except StorageError:
        # first request retries through lazy init
        logger.exception("notes storage init failed at startup")
    yield
    # ---- shutdown ----
    # nothing to do here right now


async def storage_exc_handler(request: Request, exc: StorageError):
    status_code = HTTP_500_INTERNAL_SERVER_ERROR
    for exc_type, code in _STATUS_BY_ERROR:
        if isinstance(exc, exc_type):
            status_code = code
            break
    if status_code >= 500:
        logger.error("storage failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse({"detail": str(exc) or "Storage error."}, status_code=status_code)


def create_app(state_dir: Optional[Path] = None) -> FastAPI:
    """Composition root: one StorageManager per application instance."""
    root = Path(state_dir) if state_dir is not None else shared._repo_root()
    app = FastAPI(title="Org Notes API", version="0.1.0", lifespan=lifespan)
    app.state.storage = StorageManager.for_state_dir(root)
    app.state.repo_root = str(root)
    app.add_exception_handler(StorageError, storage_exc_handler)
    app.include_router(notes_router)
    app.include_router(storage_router)

    @app.get("/health")
    def health():
        return {
            "status": "ok",
            "storage_type": app.state.storage.get_current_storage_type().value,
            "ready": app.state.storage.ready,
        }

    return app


app = create_app()
