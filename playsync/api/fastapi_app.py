from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from playsync.api.health import router as health_router
from playsync.api.sync.routes import router as sync_router
from playsync.core import configure_logging, log_warning
from playsync.sync import (
    AuthError,
    NotFoundLocal,
    SyncAborted,
    SyncError,
    SyncInProgress,
    TransientFetchError,
)

configure_logging()

app = FastAPI(
    title="Playlist Sync API",
    version="0.1.0",
    description="Synchronizes local playlists to remote music platforms.",
)

_STATUS_CODES = (
    (AuthError, 401),
    (NotFoundLocal, 404),
    (SyncAborted, 409),
    (SyncInProgress, 409),
    (TransientFetchError, 502),
)


def status_code_for(error: SyncError) -> int:
    for error_type, status_code in _STATUS_CODES:
        if isinstance(error, error_type):
            return status_code
    return 500


@app.exception_handler(SyncError)
async def sync_error_handler(request: Request, exc: SyncError) -> JSONResponse:
    status_code = status_code_for(exc)
    log_warning(f"{request.method} {request.url.path} -> {status_code} {exc.code}: {exc.message}")
    return JSONResponse(status_code=status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    messages = [
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', '')}"
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={"error": "ValidationError", "message": "; ".join(messages)},
    )


app.include_router(health_router, tags=["health"])
app.include_router(sync_router, prefix="/sync", tags=["sync"])
