"""SQLAlchemy ORM models for the alias registry.

This module defines the database schema using SQLAlchemy declarative models.
Deleted aliases stay in the table as tombstones so the unique constraint keeps
them out of circulation for good.

Data Model Layout
=================
::
    url_mappings table
    ├─ id (SERIAL PRIMARY KEY, insertion order)
    ├─ alias (VARCHAR(64) UNIQUE, INDEXED)
    ├─ full_url (TEXT NOT NULL)
    ├─ created_at (TIMESTAMPTZ NOT NULL)
    └─ deleted_at (TIMESTAMPTZ NULL, set once on delete)

How to Use
===========
**Step 1 — Import**::
    from alias_registry.models import UrlMappingRecord

**Step 2 — Query live mappings**::
    stmt = select(UrlMappingRecord).where(UrlMappingRecord.deleted_at.is_(None))

Key Behaviours
===============
- alias is unique across live and deleted rows alike.
- A row is live while deleted_at is NULL.
- id gives the total, stable listing order.

Classes:
    UrlMappingRecord:  One alias → URL mapping, live or retired.
"""

import datetime
from typing import Optional

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from alias_registry.database import Base

__all__ = ["UrlMappingRecord"]


class UrlMappingRecord(Base):
    __tablename__ = "url_mappings"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    alias: Mapped[str] = mapped_column(String(64), unique=True, index=True, nullable=False)
    full_url: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    deleted_at: Mapped[Optional[datetime.datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )

    def __repr__(self) -> str:
        return f"<UrlMappingRecord(id={self.id}, alias='{self.alias}', deleted={self.deleted_at is not None})>"
