"""Database configuration and engine lifecycle for the SQL alias store.

This module provides SQLAlchemy async engine setup, session factories, and
schema lifecycle operations. PostgreSQL (asyncpg) is the production target;
SQLite (aiosqlite) is used for local runs and tests.

Flow Diagram — Database Lifecycle
=================================
::
    ┌─────────────┐
    │ create_     │
    │ engine()    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ init_db()   │
    │ create_all  │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ session per │
    │ store call  │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ close_db()  │
    │ dispose     │
    └─────────────┘

How to Use
===========
**Step 1 — Build the engine from settings**::
    engine = create_engine(settings)
    await init_db(engine)

**Step 2 — Hand a session factory to the store**::
    store = SqlAliasStore(create_session_factory(engine))

**Step 3 — Cleanup on shutdown**::
    await close_db(engine)

Key Behaviours
===============
- No engine is created at import time; each registry owns the engine it was built with.
- Connection pooling is configured for server databases only.
- Tables are created on startup.

Classes:
    Base:  SQLAlchemy declarative base for all models.

Functions:
    create_engine():  Async engine for DATABASE_URL.
    create_session_factory():  Session factory bound to an engine.
    init_db():  Creates all tables.
    close_db():  Disposes the engine.
"""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from alias_registry.config import Settings

__all__ = ["Base", "create_engine", "create_session_factory", "init_db", "close_db"]


class Base(DeclarativeBase):
    pass


def create_engine(settings: Settings) -> AsyncEngine:
    options: dict = {"echo": settings.APP_ENV == "development" and settings.LOG_LEVEL == "DEBUG"}
    if not settings.DATABASE_URL.startswith("sqlite"):
        options.update(
            pool_size=settings.DATABASE_POOL_SIZE,
            max_overflow=settings.DATABASE_MAX_OVERFLOW,
            pool_pre_ping=True,
        )
    return create_async_engine(settings.DATABASE_URL, **options)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db(engine: AsyncEngine) -> None:
    await engine.dispose()
