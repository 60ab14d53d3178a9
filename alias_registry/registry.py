"""Alias Registry - Core Business Logic

This module owns the alias → URL namespace: it generates aliases, validates
and arbitrates custom ones, and guarantees no alias is ever issued twice.

Architecture Overview
==================
::
    ┌─────────────────────────────────────────────────────────────┐
    │                      AliasRegistry                          │
    │  ┌─────────────────┐  ┌─────────────────┐  ┌──────────────┐ │
    │  │   Shorten       │  │  Alias Policy   │  │  Lookups     │ │
    │  │                 │  │                 │  │              │ │
    │  │ • Custom claim  │  │ • nanoid draw   │  │ • Resolve    │ │
    │  │ • Generated     │  │ • Pattern/len   │  │ • List       │ │
    │  │   claim + retry │  │ • Reserved      │  │ • Delete     │ │
    │  └─────────────────┘  └─────────────────┘  └──────────────┘ │
    └─────────────────────────────────────────────────────────────┘
                                  │
                                  ▼
              ┌───────────────────────────────────────┐
              │  AliasStore.insert_if_absent / get /  │
              │  delete / list_all                    │
              │  (memory | SQL | Redis)               │
              └───────────────────────────────────────┘

Shorten Flow
------------
::
    ┌─────────────┐
    │ validate    │──▶ InvalidUrl
    │ full URL    │
    └──────┬──────┘
           ▼
    custom alias?
    ┌──────┴──────────────┐
    │ YES                 │ NO
    ▼                     ▼
┌──────────────┐   ┌──────────────────┐
│ pattern/len  │   │ draw candidate   │◀─┐
│ reserved     │   └────────┬─────────┘  │ collision
└──────┬───────┘            ▼            │ (attempt < max)
       ▼            ┌──────────────────┐ │
┌──────────────┐    │ insert_if_absent │─┘
│ insert_if_   │    └────────┬─────────┘
│ absent       │             │ attempts exhausted
└──────┬───────┘             ▼
  taken? ──▶ AliasTaken   AliasGenerationExhausted

Usage Examples
=============
```python
registry = AliasRegistry(MemoryAliasStore(), AliasPolicy.from_settings(settings))

mapping = await registry.shorten("https://example.com/a/b")
assert await registry.resolve(mapping.alias) == "https://example.com/a/b"

await registry.shorten("https://example.com/x", custom_alias="my-link")
await registry.delete("my-link")      # "my-link" is retired for good
```
"""

import logging
import time
from typing import Optional, Union

from prometheus_client import Counter, Histogram

from alias_registry.aliases import (
    AliasPolicy,
    generate_alias,
    normalize_custom_alias,
    validate_custom_alias,
    validate_full_url,
)
from alias_registry.enums import RequestStatus
from alias_registry.errors import AliasGenerationExhausted, AliasTaken, NotFound, RegistryError
from alias_registry.schemas import UrlMapping
from alias_registry.store import AliasStore

__all__ = ["AliasRegistry"]


# ============================================================================
# PROMETHEUS METRICS
# ============================================================================

SHORTEN_REQUESTS_TOTAL = Counter(
    "alias_registry_shorten_requests_total",
    "Total shorten requests by outcome",
    ["status"],
)
SHORTEN_DURATION = Histogram(
    "alias_registry_shorten_duration_seconds",
    "Time taken to claim an alias",
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0],
)
ALIAS_COLLISIONS_TOTAL = Counter(
    "alias_registry_generated_alias_collisions_total",
    "Generated alias candidates rejected because they were taken, retired or reserved",
)
ALIAS_GENERATION_EXHAUSTED_TOTAL = Counter(
    "alias_registry_generation_exhausted_total",
    "Shorten requests that hit the generation retry bound",
)
RESOLVE_REQUESTS_TOTAL = Counter(
    "alias_registry_resolve_requests_total",
    "Total alias resolutions by outcome",
    ["status"],
)
DELETE_REQUESTS_TOTAL = Counter(
    "alias_registry_delete_requests_total",
    "Total alias deletions by outcome",
    ["status"],
)


class AliasRegistry:
    """Owns alias generation, validation and uniqueness for one store.

    The registry holds no state of its own besides the injected store and
    policy, so independent instances never share a namespace unless they share
    a store.
    """

    def __init__(
        self,
        store: AliasStore,
        policy: AliasPolicy,
        logger: Optional[Union[logging.Logger, logging.LoggerAdapter]] = None,
    ) -> None:
        self._store = store
        self._policy = policy
        self._logger = logger or logging.getLogger("aliasregistry")

    @property
    def store(self) -> AliasStore:
        return self._store

    @property
    def policy(self) -> AliasPolicy:
        return self._policy

    # ========================================================================
    # PUBLIC API METHODS
    # ========================================================================

    async def shorten(self, full_url: str, custom_alias: Optional[str] = None) -> UrlMapping:
        """Create a mapping for ``full_url`` under a custom or generated alias.

        Args:
            full_url: Absolute http/https URL, stored verbatim.
            custom_alias: Optional caller-chosen alias; blank means "generate one".

        Returns:
            UrlMapping: The persisted mapping.

        Raises:
            InvalidUrl: ``full_url`` is empty, too long or not an absolute http(s) URL.
            InvalidAliasFormat: custom alias breaks the pattern or length bounds.
            ReservedAlias: custom alias names one of the service's own routes.
            AliasTaken: custom alias is live or retired.
            AliasGenerationExhausted: no free alias within the retry bound.
        """
        start_time = time.perf_counter()
        try:
            full_url = validate_full_url(full_url, self._policy)
            alias = normalize_custom_alias(custom_alias)
            if alias is not None:
                mapping = await self._claim_custom_alias(full_url, alias)
            else:
                mapping = await self._claim_generated_alias(full_url)
        except RegistryError as exc:
            SHORTEN_REQUESTS_TOTAL.labels(status=exc.status).inc()
            self._logger.info(f"Shorten rejected ({exc.status}): {exc.message}")
            raise
        except Exception as exc:
            SHORTEN_REQUESTS_TOTAL.labels(status=RequestStatus.ERROR).inc()
            self._logger.error(f"Shorten failed for {full_url!r}: {exc}")
            raise
        finally:
            SHORTEN_DURATION.observe(time.perf_counter() - start_time)

        SHORTEN_REQUESTS_TOTAL.labels(status=RequestStatus.SUCCESS).inc()
        self._logger.info(f"Created alias: {mapping.alias} -> {mapping.full_url}")
        return mapping

    async def get(self, alias: str) -> UrlMapping:
        mapping = await self._store.get(alias)
        if mapping is None:
            RESOLVE_REQUESTS_TOTAL.labels(status=RequestStatus.NOT_FOUND).inc()
            raise NotFound(alias)
        RESOLVE_REQUESTS_TOTAL.labels(status=RequestStatus.SUCCESS).inc()
        return mapping

    async def resolve(self, alias: str) -> str:
        """Return the full URL for a live alias, or raise NotFound."""
        mapping = await self.get(alias)
        return mapping.full_url

    async def list_all(self) -> list[UrlMapping]:
        """All live mappings, oldest first, as one consistent snapshot."""
        return await self._store.list_all()

    async def delete(self, alias: str) -> None:
        """Retire a live alias permanently, or raise NotFound."""
        if not await self._store.delete(alias):
            DELETE_REQUESTS_TOTAL.labels(status=RequestStatus.NOT_FOUND).inc()
            raise NotFound(alias)
        DELETE_REQUESTS_TOTAL.labels(status=RequestStatus.SUCCESS).inc()
        self._logger.info(f"Deleted alias: {alias}")

    # ========================================================================
    # PRIVATE HELPER METHODS
    # ========================================================================

    async def _claim_custom_alias(self, full_url: str, alias: str) -> UrlMapping:
        validate_custom_alias(alias, self._policy)
        mapping = UrlMapping(alias=alias, full_url=full_url)
        if not await self._store.insert_if_absent(mapping):
            raise AliasTaken()
        return mapping

    async def _claim_generated_alias(self, full_url: str) -> UrlMapping:
        for attempt in range(1, self._policy.max_retries + 1):
            candidate = generate_alias(self._policy)
            if not self._policy.is_reserved(candidate):
                mapping = UrlMapping(alias=candidate, full_url=full_url)
                if await self._store.insert_if_absent(mapping):
                    return mapping
            ALIAS_COLLISIONS_TOTAL.inc()
            self._logger.debug(f"Generated alias collision on attempt {attempt}: {candidate}")

        ALIAS_GENERATION_EXHAUSTED_TOTAL.inc()
        self._logger.warning(
            f"Alias space exhausted: no free alias after {self._policy.max_retries} attempts "
            f"at length {self._policy.length}"
        )
        raise AliasGenerationExhausted(attempts=self._policy.max_retries, length=self._policy.length)
