from time import perf_counter
from uuid import uuid4
import logging
import sys

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError as SettingsError
from sqlalchemy.engine import Engine

from .core.config import Settings, get_settings
from .core.db import build_engine, build_session_factory
from .core.errors import MigrationError
from .core.logging import configure_logging
from .core.migrations import run_migrations
from .api.errors import register_exception_handlers
from .api.routes_ping import router as ping_router
from .api.routes_things import router as things_router
from .api.routes_companies import router as companies_router

logger = logging.getLogger(__name__)


def _cors_origins(settings: Settings) -> list[str]:
    # CORS:
    # - In prod, FRONTEND_ORIGIN is required and we never fall back to "*".
    # - In non-prod, wide-open CORS is only enabled if CORS_ALLOW_ALL_ORIGINS=True.
    if settings.ENV.lower() == "prod":
        if not settings.FRONTEND_ORIGIN:
            raise RuntimeError(
                "FRONTEND_ORIGIN must be set in production; refusing to start with wide-open CORS."
            )
    elif settings.CORS_ALLOW_ALL_ORIGINS:
        return ["*"]

    if not settings.FRONTEND_ORIGIN:
        return []
    return [
        o.strip()
        for o in settings.FRONTEND_ORIGIN.split(",")
        if o.strip()
    ]


def create_app(settings: Settings | None = None, engine: Engine | None = None) -> FastAPI:
    """
    Build the API application.

    The engine (connection pool) is created once here, or passed in by the
    caller, and shared with handlers through `app.state`.
    """
    settings = settings or get_settings()
    engine = engine or build_engine(settings)

    app = FastAPI(title="Personal Ledger API")
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)

    origins = _cors_origins(settings)
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            allow_headers=["*"],
            expose_headers=["X-Total-Count", "X-Request-ID"],
            allow_credentials=False,
        )

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        # Correlation id so a request can be traced end-to-end in the logs
        request_id = request.headers.get("X-Request-ID") or str(uuid4())
        request.state.request_id = request_id
        started = perf_counter()

        def log_request(status_code: int) -> None:
            logger.info(
                "Request handled",
                extra={
                    "request_id": request_id,
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": status_code,
                    "duration_ms": round((perf_counter() - started) * 1000, 2),
                },
            )

        try:
            response = await call_next(request)
        except Exception:
            # The catch-all handler renders the 500 further out
            log_request(500)
            raise

        response.headers["X-Request-ID"] = request_id
        log_request(response.status_code)
        return response

    register_exception_handlers(app)

    app.include_router(ping_router, prefix=settings.API_PREFIX)
    app.include_router(things_router, prefix=settings.API_PREFIX)
    app.include_router(companies_router, prefix=settings.API_PREFIX)

    return app


def run() -> None:
    """
    Process entry point: settings, pool, migrations, then serve.

    Exits non-zero when configuration is missing or migrations fail; uvicorn
    itself exits non-zero when the listener cannot bind.
    """
    configure_logging()

    try:
        settings = get_settings()
    except SettingsError:
        logger.exception("Invalid or missing configuration", extra={"step": "startup"})
        sys.exit(1)

    logging.getLogger().setLevel(settings.LOG_LEVEL.upper())
    engine = build_engine(settings)

    if settings.RUN_MIGRATIONS:
        try:
            run_migrations(engine)
        except MigrationError:
            logger.exception("Refusing to serve against an unknown schema", extra={"step": "startup"})
            engine.dispose()
            sys.exit(1)

    app = create_app(settings, engine)

    logger.info(
        "Starting API server",
        extra={"step": "startup", "path": f"http://{settings.HOST}:{settings.PORT}{settings.API_PREFIX}"},
    )

    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_config=None)


if __name__ == "__main__":
    run()
