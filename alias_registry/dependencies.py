"""Resource wiring and FastAPI dependencies for the alias registry.

This module builds the backing store and the registry from settings, sets up
the service logger once, and gives every request a lightweight context for
tracking and structured logging.

Wiring Diagram
==============
::
    Settings ──▶ build_store() ──▶ MemoryAliasStore | SqlAliasStore | RedisAliasStore
        │                               │
        └────────▶ build_registry() ◀───┘
                         │
                         ▼
                 app.state.registry ──▶ get_registry()  (per request)

Key Behaviours
===============
- The registry lives on ``app.state``, never in a module global, so each app
  (and each test) gets its own isolated namespace.
- Tests swap the registry through ``app.dependency_overrides[get_registry]``.
"""

import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Optional

from fastapi import Request

from alias_registry.aliases import AliasPolicy
from alias_registry.config import Settings
from alias_registry.database import create_engine, create_session_factory, init_db
from alias_registry.enums import StoreBackend
from alias_registry.redis import RedisAliasStore, create_redis_client
from alias_registry.registry import AliasRegistry
from alias_registry.sql_store import SqlAliasStore
from alias_registry.store import AliasStore, MemoryAliasStore

__all__ = [
    "LOGGER_NAME",
    "RequestContext",
    "build_registry",
    "build_store",
    "get_registry",
    "get_settings_for_request",
    "get_request_context",
    "setup_logger",
]

LOGGER_NAME = "aliasregistry"


# ============================================================================
# LOGGING
# ============================================================================


def setup_logger(level: str = "INFO") -> logging.Logger:
    """Attach a stream handler to the service logger once."""
    logger = logging.getLogger(LOGGER_NAME)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.setLevel(level.upper())
    return logger


# ============================================================================
# STORE AND REGISTRY CONSTRUCTION
# ============================================================================


async def build_store(settings: Settings) -> AliasStore:
    """Create the backing store selected by ``STORE_BACKEND``.

    The SQL backend creates its tables before returning.
    """
    if settings.STORE_BACKEND is StoreBackend.MEMORY:
        return MemoryAliasStore()
    if settings.STORE_BACKEND is StoreBackend.REDIS:
        return RedisAliasStore(create_redis_client(settings), prefix=settings.REDIS_KEY_PREFIX)

    engine = create_engine(settings)
    await init_db(engine)
    return SqlAliasStore(create_session_factory(engine), engine=engine)


def build_registry(settings: Settings, store: AliasStore) -> AliasRegistry:
    return AliasRegistry(
        store,
        AliasPolicy.from_settings(settings),
        logger=logging.getLogger(LOGGER_NAME),
    )


# ============================================================================
# LIGHTWEIGHT REQUEST CONTEXT
# ============================================================================


@dataclass
class RequestContext:
    """Per-request tracking information.

    Attributes:
        request_id: Unique identifier for this request
        trace_id: Correlation ID taken from ``X-Trace-ID`` when present
        user_agent: Client user agent string
        client_ip: Client IP address
        start_time: Request start timestamp
    """

    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    trace_id: Optional[str] = None
    user_agent: Optional[str] = None
    client_ip: Optional[str] = None
    start_time: float = field(default_factory=time.time)

    @property
    def logger(self) -> logging.LoggerAdapter:
        """Service logger carrying this request's context in ``extra``."""
        return logging.LoggerAdapter(
            logging.getLogger(LOGGER_NAME),
            {
                "request_id": self.request_id,
                "trace_id": self.trace_id or self.request_id,
                "client_ip": self.client_ip,
                "user_agent": self.user_agent,
            },
        )

    def get_duration(self) -> float:
        """Get request duration in milliseconds."""
        return (time.time() - self.start_time) * 1000


# ============================================================================
# DEPENDENCY FUNCTIONS
# ============================================================================


def get_registry(request: Request) -> AliasRegistry:
    return request.app.state.registry


def get_settings_for_request(request: Request) -> Settings:
    return request.app.state.settings


async def get_request_context(request: Request) -> RequestContext:
    return RequestContext(
        trace_id=request.headers.get("x-trace-id"),
        user_agent=request.headers.get("user-agent"),
        client_ip=request.client.host if request.client else None,
    )
