"""FastAPI application entry point for the alias registry service.

This module configures the FastAPI application with middleware, lifecycle
management, error mapping and route registration.

Application Lifecycle Diagram
===========================
::
    ┌─────────────┐
    │  uvicorn    │
    │  startup    │
    └──────┬──────┘
           ▼
    ┌──────────────┐
    │ create_app() │
    │ CORS, errors,│
    │ metrics      │
    └──────┬───────┘
           ▼
    ┌─────────────┐
    │ lifespan()  │
    │ startup:    │
    │ build_store │
    │ + registry  │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Serve HTTP  │
    │ requests    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ lifespan()  │
    │ shutdown:   │
    │ store.close │
    └─────────────┘

How to Use
===========
**Step 1 — Run with uvicorn**::
    uvicorn alias_registry.main:app --host 0.0.0.0 --port 8080

**Step 2 — Make API calls**::
    curl -X POST http://localhost:8080/shorten \
         -H "Content-Type: application/json" \
         -d '{"fullUrl": "https://example.com/a/b"}'

    curl http://localhost:8080/urls

Key Behaviours
===============
- RegistryError subclasses become 400/404 JSON bodies, field-scoped where the
  failure belongs to one input.
- Request body validation failures become 400 ``{field: message}`` instead of
  FastAPI's default 422.
- Anything unexpected becomes 500 ``{"error": "An unexpected error occurred"}``.
- Prometheus metrics are exposed at /metrics.
"""

__all__ = ["app", "create_app"]

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator

from alias_registry.config import Settings, get_settings
from alias_registry.dependencies import LOGGER_NAME, build_registry, build_store, setup_logger
from alias_registry.errors import RegistryError
from alias_registry.routes import router

logger = logging.getLogger(LOGGER_NAME)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # Startup
    settings: Settings = app.state.settings
    store = await build_store(settings)
    app.state.registry = build_registry(settings, store)
    logger.info(f"{settings.APP_NAME} started with {settings.STORE_BACKEND.value} store")
    yield
    # Shutdown
    await store.close()
    logger.info(f"{settings.APP_NAME} stopped")


async def handle_registry_error(request: Request, exc: RegistryError) -> JSONResponse:
    logger.warning(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors: dict[str, str] = {}
    for error in exc.errors():
        loc = error.get("loc", ())
        if len(loc) > 1 and loc[0] == "body" and isinstance(loc[-1], str):
            errors.setdefault(loc[-1], error.get("msg", "Invalid value"))
    logger.warning(f"Validation error on {request.method} {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=400, content=errors or {"error": "Invalid request body"})


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unexpected error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "An unexpected error occurred"})


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logger(settings.LOG_LEVEL)

    app = FastAPI(
        title=settings.APP_NAME,
        version="1.0.0",
        description="Alias registry for shortened URLs",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RegistryError, handle_registry_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=False,
        should_respect_env_var=False,
    ).instrument(app).expose(app, include_in_schema=False)

    app.include_router(router)
    return app


app = create_app()
