"""FastAPI application entrypoint."""

import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from pydantic import ValidationError

from blogpost_api.config import Settings
from blogpost_api.errors import PostNotFoundError, PostValidationError, StoreError
from blogpost_api.metrics import store_errors_total
from blogpost_api.routes import router as posts_router
from blogpost_api.store_factory import create_store
from blogpost_api.telemetry import (
    add_trace_context,
    configure_stdlib_logging,
    emit_to_otel_logs,
    init_telemetry,
    shutdown_telemetry,
)

structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_trace_context,  # type: ignore[list-item]
        emit_to_otel_logs,  # type: ignore[list-item]
        structlog.processors.format_exc_info,
        structlog.dev.ConsoleRenderer(),
    ],
)

log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    init_telemetry()
    settings: Settings = getattr(app.state, "settings", None) or Settings()
    app.state.settings = settings
    store = create_store(settings)
    app.state.store = store

    await log.ainfo(
        "service started",
        store_backend=settings.store_backend,
        database=settings.database_name,
    )
    yield

    try:
        await store.aclose()
    finally:
        await log.ainfo("service stopped")
        shutdown_telemetry()


async def _post_validation_error(request: Request, exc: PostValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": str(exc)})


async def _request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    await log.ainfo("request_rejected", path=request.url.path, errors=len(exc.errors()))
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


async def _post_not_found(request: Request, exc: PostNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


async def _store_error(request: Request, exc: StoreError) -> JSONResponse:
    store_errors_total.add(1, {"path": request.url.path})
    await log.aerror("store_error_response", method=request.method, path=request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


async def health() -> dict[str, str]:
    return {"status": "ok"}


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the API. Without ``settings`` the lifespan loads them from the environment."""
    app = FastAPI(title="Blog Post API", version="0.1.0", lifespan=lifespan)
    if settings is not None:
        app.state.settings = settings
    app.include_router(posts_router)
    app.add_api_route("/health", health, methods=["GET"])
    app.add_exception_handler(PostValidationError, _post_validation_error)  # type: ignore[arg-type]
    app.add_exception_handler(
        RequestValidationError,
        _request_validation_error,  # type: ignore[arg-type]
    )
    app.add_exception_handler(PostNotFoundError, _post_not_found)  # type: ignore[arg-type]
    app.add_exception_handler(StoreError, _store_error)  # type: ignore[arg-type]
    FastAPIInstrumentor.instrument_app(app)
    return app


app = create_app()


def _print_config_errors(exc: ValidationError) -> None:
    """Print settings errors with the env var to set and what it is for."""
    print("Invalid configuration:", file=sys.stderr)
    for err in exc.errors():
        field = ".".join(str(p) for p in err["loc"])
        info = Settings.model_fields.get(field)
        env_var = field.upper() if field else "(settings)"
        line = f"  {env_var}: {err['msg']}"
        if info is not None and info.description:
            line += f" ({info.description})"
        print(line, file=sys.stderr)


def run() -> None:
    """Console entrypoint: load settings and serve with uvicorn."""
    try:
        settings = Settings()
    except ValidationError as exc:
        _print_config_errors(exc)
        raise SystemExit(2) from exc
    configure_stdlib_logging(settings.log_level)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_config=None)
