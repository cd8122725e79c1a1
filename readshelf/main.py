"""Main FastAPI application."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from readshelf.api.auth_routes import router as auth_router
from readshelf.api.book_routes import router as book_router
from readshelf.api.library_routes import router as library_router
from readshelf.api.schemas import ErrorResponse
from readshelf.api.shelf_routes import router as shelf_router
from readshelf.api.user_routes import router as user_router
from readshelf.core.config import settings
from readshelf.core.logging import configure_logging
from readshelf.domain.errors import DomainError, ErrorKind
from readshelf.infrastructure.database.connection import init_db

configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

ERROR_STATUS_CODES: dict[ErrorKind, int] = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.BOOK_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.SHELF_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.DUPLICATE_NAME: status.HTTP_409_CONFLICT,
    ErrorKind.ALREADY_EXISTS: status.HTTP_409_CONFLICT,
    ErrorKind.DEFAULT_SHELF_PROTECTED: status.HTTP_403_FORBIDDEN,
    ErrorKind.PERMISSION_DENIED: status.HTTP_403_FORBIDDEN,
    ErrorKind.UNAUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.INVALID_ARGUMENT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.UNAVAILABLE: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}
ERROR_RESPONSES = {
    code: {"model": ErrorResponse} for code in sorted(set(ERROR_STATUS_CODES.values()))
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info("Starting ReadShelf application")
    await init_db()
    logger.info("Database initialized")
    yield
    logger.info("Shutting down ReadShelf application")


app = FastAPI(
    title="ReadShelf",
    description="Personal library and bookshelves for a social reading tracker",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router, responses=ERROR_RESPONSES)
app.include_router(user_router, responses=ERROR_RESPONSES)
app.include_router(shelf_router, responses=ERROR_RESPONSES)
app.include_router(library_router, responses=ERROR_RESPONSES)
app.include_router(book_router, responses=ERROR_RESPONSES)


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------
def _failure_context(request: Request) -> tuple[str, str, str]:
    """Operation name, caller and target entity of a failed request."""
    endpoint = request.scope.get("endpoint")
    operation = getattr(endpoint, "__name__", None) or f"{request.method} {request.url.path}"
    user_id = getattr(request.state, "user_id", None) or "anonymous"
    entity = ",".join(f"{key}={value}" for key, value in request.path_params.items()) or "-"
    return operation, user_id, entity


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    status_code = ERROR_STATUS_CODES.get(exc.kind, status.HTTP_500_INTERNAL_SERVER_ERROR)
    if status_code >= 500 and exc.kind != ErrorKind.UNAVAILABLE:
        operation, user_id, entity = _failure_context(request)
        logger.error(
            "%s failed for user %s (entity %s): %s", operation, user_id, entity, exc.message
        )
    else:
        logger.warning(
            "%s %s rejected (%s): %s",
            request.method, request.url.path, exc.kind.value, exc.message,
        )
    headers = None
    if exc.kind == ErrorKind.UNAUTHENTICATED:
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(detail=exc.message, code=exc.kind.value).model_dump(),
        headers=headers,
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    message = "invalid request"
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = first.get("msg", "invalid value")
        if location:
            message = f"{location}: {message}"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": message, "code": ErrorKind.INVALID_ARGUMENT.value},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    operation, user_id, entity = _failure_context(request)
    logger.exception("%s failed for user %s (entity %s)", operation, user_id, entity)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "internal server error", "code": ErrorKind.INTERNAL.value},
    )


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
