from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .errors import ApiError, StorageError
from .repositories import Repository, get_repository
from .routers import tasks as tasks_router
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {
        "name": "tasks",
        "description": "Per-user task list: list, create, toggle completion, delete.",
    },
]


def _validation_message(errors: List[Dict[str, Any]]) -> str:
    """Human-readable summary of the first validation error."""
    if not errors:
        return "Request validation failed"
    first = errors[0]
    msg = str(first.get("msg", "")).removeprefix("Value error, ")
    loc = [str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path")]
    return f"{'.'.join(loc)}: {msg}" if loc else msg


# PUBLIC_INTERFACE
def create_app(settings: Optional[Settings] = None, repository: Optional[Repository] = None) -> FastAPI:
    """
    Build the FastAPI application.

    The repository is initialized during startup. If the store cannot be
    reached the error is logged and re-raised, which aborts startup.
    """
    settings = settings or get_settings()
    repo = repository or get_repository(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        try:
            repo.initialize()
        except StorageError as e:
            logger.critical("Failed to connect to the task database: %s", e, exc_info=True)
            raise
        logger.info("Task store ready (backend=%s)", settings.persistence_backend)
        try:
            yield
        finally:
            repo.close()

    app = FastAPI(
        title="Task Tracker",
        description="Per-session task list API with owner-partitioned storage.",
        version="0.1.0",
        openapi_tags=openapi_tags,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.repository = repo

    # Configure CORS based on settings (.env -> CORS_ALLOW_ORIGINS), with '*' fallback
    allow_all = (settings.cors_allow_origins == ["*"]) or (len(settings.cors_allow_origins) == 0)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """
        Return a consistent JSON structure for request validation errors.

        Response format:
            {
                "error": "ValidationError",
                "message": "<first error, human readable>",
                "detail": [... pydantic/fastapi error details ...]
            }
        """
        errors = list(exc.errors())
        logger.info("Rejected %s %s: %s", request.method, request.url.path, errors)
        return JSONResponse(
            status_code=400,
            content={
                "error": "ValidationError",
                "message": _validation_message(errors),
                "detail": [{k: v for k, v in e.items() if k != "ctx"} for e in errors],
            },
        )

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=exc.to_content())

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        """Routing and body-parsing errors (404, 405, undecodable body) in the same {"message"} shape."""
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    # PUBLIC_INTERFACE
    @app.get("/", summary="Health Check", tags=["health"])
    def health_check():
        """
        Health check endpoint.

        Returns:
            A JSON object indicating service health.
        """
        return {"message": "Healthy", "backend": settings.persistence_backend}

    app.include_router(tasks_router.router)
    return app
