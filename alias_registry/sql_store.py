"""Relational alias store backed by SQLAlchemy async sessions.

The unique constraint on ``url_mappings.alias`` is the insert-if-absent
primitive: two concurrent inserts of the same alias cannot both commit, and
the loser sees ``IntegrityError``. Deletion only stamps ``deleted_at``, so the
row keeps holding the alias and it can never be inserted again.
"""

import datetime
import logging
from typing import Optional

from sqlalchemy import select, text, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from alias_registry.database import close_db
from alias_registry.models import UrlMappingRecord
from alias_registry.schemas import UrlMapping
from alias_registry.store import AliasStore

__all__ = ["SqlAliasStore"]

logger = logging.getLogger("aliasregistry.sql_store")


class SqlAliasStore(AliasStore):
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        engine: Optional[AsyncEngine] = None,
    ) -> None:
        self._session_factory = session_factory
        self._engine = engine

    async def insert_if_absent(self, mapping: UrlMapping) -> bool:
        async with self._session_factory() as session:
            session.add(
                UrlMappingRecord(
                    alias=mapping.alias,
                    full_url=mapping.full_url,
                    created_at=mapping.created_at,
                )
            )
            try:
                await session.commit()
            except IntegrityError:
                await session.rollback()
                logger.debug(f"Unique constraint rejected alias: {mapping.alias}")
                return False
            return True

    async def get(self, alias: str) -> Optional[UrlMapping]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(UrlMappingRecord).where(
                    UrlMappingRecord.alias == alias,
                    UrlMappingRecord.deleted_at.is_(None),
                )
            )
            record = result.scalar_one_or_none()
            return UrlMapping.model_validate(record) if record else None

    async def delete(self, alias: str) -> bool:
        async with self._session_factory() as session:
            result = await session.execute(
                update(UrlMappingRecord)
                .where(
                    UrlMappingRecord.alias == alias,
                    UrlMappingRecord.deleted_at.is_(None),
                )
                .values(deleted_at=datetime.datetime.now(datetime.timezone.utc))
            )
            await session.commit()
            return result.rowcount == 1

    async def list_all(self) -> list[UrlMapping]:
        # One SELECT is one snapshot.
        async with self._session_factory() as session:
            result = await session.execute(
                select(UrlMappingRecord)
                .where(UrlMappingRecord.deleted_at.is_(None))
                .order_by(UrlMappingRecord.id)
            )
            return [UrlMapping.model_validate(record) for record in result.scalars()]

    async def ping(self) -> bool:
        try:
            async with self._session_factory() as session:
                await session.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            logger.error(f"Database health check failed: {exc}")
            return False
        return True

    async def close(self) -> None:
        if self._engine is not None:
            await close_db(self._engine)
