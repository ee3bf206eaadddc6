import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from weddingday.api import timeline, weddings
from weddingday.config import get_settings
from weddingday.constants.error_codes import get_error_spec
from weddingday.exceptions import VersionConflictError, WeddingDayError
from weddingday.models.database import engine, init_db
from weddingday.schemas.envelope import ErrorInfo, ErrorLocation, ErrorResponse
from weddingday.schemas.timeline import TimelineConflictResponse

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    await init_db()
    yield
    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _http_error_code(status_code: int) -> str:
    mapping = {
        400: "VALIDATION_ERROR",
        401: "UNAUTHORIZED",
        403: "PERMISSION_DENIED",
        404: "NOT_FOUND",
        409: "CONFLICT",
        500: "INTERNAL_ERROR",
    }
    return mapping.get(status_code, "HTTP_ERROR")


def _error_response(status_code: int, error: ErrorInfo) -> JSONResponse:
    body = ErrorResponse(error=error).model_dump(mode="json", by_alias=True, exclude_none=True)
    return JSONResponse(status_code=status_code, content=body)


@app.exception_handler(VersionConflictError)
async def version_conflict_handler(request: Request, exc: VersionConflictError) -> JSONResponse:
    """409 with the error plus the current canonical snapshot, so the client can rebase."""
    content: dict = {
        "error": exc.to_error_info().model_dump(mode="json", by_alias=True, exclude_none=True),
        "currentVersion": exc.current_version,
    }
    if exc.snapshot is not None:
        conflict = TimelineConflictResponse(
            **exc.snapshot.model_dump(),
            error=exc.to_error_info(),
            current_version=exc.current_version,
        )
        content = conflict.model_dump(mode="json", by_alias=True, exclude_none=True)
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(WeddingDayError)
async def wedding_day_error_handler(request: Request, exc: WeddingDayError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"[{exc.code}] {exc.message}")
    return _error_response(exc.status_code, exc.to_error_info())


def _request_error_location(loc: tuple) -> ErrorLocation | None:
    """Point at the offending op when the bad field sits inside ``patchOps``."""
    parts = list(loc)
    if parts and parts[0] == "body":
        parts = parts[1:]
    if len(parts) >= 2 and parts[0] == "patchOps" and isinstance(parts[1], int):
        return ErrorLocation(op_index=parts[1])
    if parts and isinstance(parts[0], str):
        return ErrorLocation(field=parts[0])
    return None


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed bodies (unknown op tags, missing fields) become 400 VALIDATION_ERROR."""
    errors = exc.errors()
    location = None
    if errors:
        first = errors[0]
        loc = tuple(first.get("loc", ()))
        path = ".".join(str(part) for part in loc if part != "body")
        msg = first.get("msg", "Invalid value")
        message = f"{path}: {msg}" if path else msg
        location = _request_error_location(loc)
    else:
        message = "Malformed request body"

    error = ErrorInfo(
        code="VALIDATION_ERROR",
        message=message,
        location=location,
        suggested_fix=get_error_spec("VALIDATION_ERROR").get("suggested_fix"),
    )
    logger.warning(f"Rejected request to {request.url.path}: {message}")
    return _error_response(400, error)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    error_code = _http_error_code(exc.status_code)
    error = ErrorInfo(
        code=error_code,
        message=str(exc.detail),
        retryable=get_error_spec(error_code).get("retryable", False),
    )
    return _error_response(exc.status_code, error)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled exception: {exc}")
    error = ErrorInfo(code="INTERNAL_ERROR", message="Internal server error")
    return _error_response(500, error)


# Routers
app.include_router(weddings.router, prefix="/api", tags=["weddings"])
app.include_router(timeline.router, prefix="/api", tags=["timeline"])


@app.get("/health")
async def health_check() -> dict[str, str]:
    return {"status": "healthy", "version": settings.app_version, "git_hash": settings.git_hash}
