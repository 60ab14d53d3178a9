"""FastAPI route definitions for the alias registry REST API.

This module provides the HTTP endpoints consumed by the web client. Routes
are thin: they translate requests into registry calls and registry results
into the JSON shapes below. Registry failures propagate as ``RegistryError``
and are serialized by the handlers registered in ``alias_registry.main``.

API Endpoint Overview
=====================
::
    GET    /health
        └─ HealthResponse (200)

    POST   /shorten
        ├─ ShortenRequest (request body)
        └─ ShortenResponse (201) or 400 {error | fullUrl | customAlias}

    GET    /urls
        └─ [UrlListItem] (200), oldest first

    DELETE /:alias
        └─ MessageResponse (200) or 404 {error}

    GET    /:alias
        └─ 302 Redirect or 404 {error}

How to Use
===========
**Step 1 — Include the router**::
    from alias_registry.routes import router
    app.include_router(router)

**Step 2 — Call the endpoints**::
    POST http://localhost:8080/shorten
    {"fullUrl": "https://example.com/a/b", "customAlias": "my-link"}

    GET http://localhost:8080/my-link      # 302 → https://example.com/a/b

Key Behaviours
===============
- Fixed paths (/health, /urls, /shorten) are declared before /:alias so
  they always win; the same words are reserved as custom aliases.
- shortUrl is computed from BASE_URL and never stored.
- 302 redirects, matching the original service.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import RedirectResponse

from alias_registry.config import Settings
from alias_registry.dependencies import (
    RequestContext,
    get_registry,
    get_request_context,
    get_settings_for_request,
)
from alias_registry.enums import HealthStatus
from alias_registry.registry import AliasRegistry
from alias_registry.schemas import (
    HealthResponse,
    MessageResponse,
    ShortenRequest,
    ShortenResponse,
    UrlListItem,
)

__all__ = ["router"]

router = APIRouter()


@router.get("/health", response_model=HealthResponse, tags=["health"])
async def health_check(
    ctx: RequestContext = Depends(get_request_context),
    registry: AliasRegistry = Depends(get_registry),
) -> HealthResponse:
    store_status = HealthStatus.from_bool(await registry.store.ping())
    ctx.logger.info(f"Health check completed: {store_status.value}")
    return HealthResponse(status=store_status, store=store_status)


@router.post("/shorten", response_model=ShortenResponse, status_code=201, tags=["urls"])
async def shorten_url(
    payload: ShortenRequest,
    ctx: RequestContext = Depends(get_request_context),
    registry: AliasRegistry = Depends(get_registry),
    settings: Settings = Depends(get_settings_for_request),
) -> ShortenResponse:
    ctx.logger.info(
        f"Received request to shorten URL: {payload.fullUrl}",
        extra={"operation": "shorten", "custom_alias": payload.customAlias},
    )
    mapping = await registry.shorten(payload.fullUrl, payload.customAlias)
    ctx.logger.info(
        f"URL shortened successfully: {mapping.alias}",
        extra={"operation": "shorten", "alias": mapping.alias, "duration_ms": ctx.get_duration()},
    )
    return ShortenResponse.from_mapping(mapping, settings.BASE_URL)


@router.get("/urls", response_model=list[UrlListItem], tags=["urls"])
async def list_urls(
    ctx: RequestContext = Depends(get_request_context),
    registry: AliasRegistry = Depends(get_registry),
    settings: Settings = Depends(get_settings_for_request),
) -> list[UrlListItem]:
    ctx.logger.info("Fetching all URLs")
    mappings = await registry.list_all()
    return [UrlListItem.from_mapping(mapping, settings.BASE_URL) for mapping in mappings]


@router.delete("/{alias}", response_model=MessageResponse, tags=["urls"])
async def delete_url(
    alias: str,
    ctx: RequestContext = Depends(get_request_context),
    registry: AliasRegistry = Depends(get_registry),
) -> MessageResponse:
    ctx.logger.info(f"Deleting alias: {alias}")
    await registry.delete(alias)
    return MessageResponse(message=f"Alias '{alias}' deleted successfully")


@router.get("/{alias}", tags=["redirect"])
async def redirect_to_full_url(
    alias: str,
    ctx: RequestContext = Depends(get_request_context),
    registry: AliasRegistry = Depends(get_registry),
) -> RedirectResponse:
    ctx.logger.info(f"Redirecting alias: {alias}")
    full_url = await registry.resolve(alias)
    ctx.logger.info(
        f"Redirect successful: {alias} -> {full_url}",
        extra={"operation": "redirect", "alias": alias, "duration_ms": ctx.get_duration()},
    )
    return RedirectResponse(url=full_url, status_code=302)
