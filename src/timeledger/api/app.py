"""
FastAPI Application Factory & Configuration.

This module initializes the FastAPI application instance. It is responsible for:
1.  **Wiring**: One `Settings`, one content store and one `SubmissionService`
    per application, stored on `app.state`.
2.  **Middleware Setup**: The access gate, then CORS for the static form.
3.  **Exception Handling**: Every failure becomes `{success: false, error, kind}`.
4.  **Routing**: Mounting the entries router and the health probe.

Design Pattern
--------------
We use an **Application Factory** pattern (`create_app`). Tests pass their own
settings, an in-memory store and a fixed clock.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from timeledger import __version__
from timeledger.api.auth import CHALLENGE, AccessGate
from timeledger.api.routers import entries
from timeledger.core.errors import AuthError, TimelineError
from timeledger.core.quarter import Clock, utc_today
from timeledger.core.settings import Settings, configure_logging, get_logger, load_settings
from timeledger.services.submission import SubmissionService
from timeledger.storage import ContentStore, build_content_store

logger = get_logger(__name__)


def _error_body(message: str, kind: str) -> dict[str, object]:
    return {"success": False, "error": message, "kind": kind}


def _internal_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(str(exc) or "Failed to process submission", "internal"),
    )


def create_app(
    settings: Settings | None = None,
    store: ContentStore | None = None,
    clock: Clock = utc_today,
) -> FastAPI:
    """
    Construct and configure the timeledger FastAPI application.

    Parameters
    ----------
    settings:
        Configuration; defaults to `load_settings()` (env and `.env`).
    store:
        Content store override; defaults to the one matching `settings.mode`.
    clock:
        "Today" for quarter derivation.
    """
    settings = settings or load_settings()
    configure_logging(settings)
    store = store or build_content_store(settings)
    gate = AccessGate(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info(
            "timeledger API starting (mode=%s, env=%s, gate=%s)",
            settings.mode.value,
            settings.environment,
            "on" if gate.enabled else "off",
        )
        yield
        await store.aclose()
        logger.info("timeledger API stopped")

    app = FastAPI(
        title="timeledger API",
        description="Append timeline entries to a CSV dataset in a hosted repository",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.gate = gate
    app.state.service = SubmissionService(settings, store, clock=clock)

    # -----------------------------------------------------------------------
    # Middleware
    # -----------------------------------------------------------------------
    # Registered before CORS so CORS wraps it: preflights are answered and
    # 401 responses still carry CORS headers.
    @app.middleware("http")
    async def access_gate(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        try:
            gate.authorize(request.method, request.url.path, request.headers.get("authorization"))
        except AuthError as exc:
            logger.warning("Rejected %s %s: %s", request.method, request.url.path, exc)
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content=_error_body(exc.message, exc.kind),
                headers={"WWW-Authenticate": CHALLENGE},
            )
        # Unhandled errors are answered here, inside CORS, so the form can
        # read the body. The Exception handler below only sees the rest.
        try:
            return await call_next(request)
        except Exception as exc:
            return _internal_error(request, exc)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["POST", "GET", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    # -----------------------------------------------------------------------
    # Global Exception Handlers
    # -----------------------------------------------------------------------
    @app.exception_handler(TimelineError)
    async def timeline_error_handler(request: Request, exc: TimelineError) -> JSONResponse:
        """Map the error taxonomy onto HTTP statuses."""
        log = logger.warning if exc.status_code < 500 else logger.error
        log("%s %s failed [%s] %s: %s", request.method, request.url.path, exc.kind, exc.context(), exc)
        headers = {"WWW-Authenticate": CHALLENGE} if isinstance(exc, AuthError) else None
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.message, exc.kind),
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Malformed bodies are bad input (400), same as missing fields."""
        first = exc.errors()[0] if exc.errors() else {}
        where = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        detail = f"{where}: {first.get('msg', 'invalid request')}" if where else "Invalid request body"
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=_error_body(detail, "validation"))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        """Keep framework errors (404, 405) in the same JSON shape."""
        kind = "method_not_allowed" if exc.status_code == 405 else "http"
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(str(exc.detail), kind),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all: log the traceback and answer 500 with the message."""
        return _internal_error(request, exc)

    # -----------------------------------------------------------------------
    # Routes
    # -----------------------------------------------------------------------
    app.include_router(entries.router)

    @app.get("/health", tags=["System"])
    async def health_check() -> dict[str, str]:
        """Liveness probe (never gated)."""
        return {
            "status": "ok",
            "version": __version__,
            "mode": settings.mode.value,
            "environment": settings.environment,
        }

    return app


__all__ = ["create_app"]
