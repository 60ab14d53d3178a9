"""Pydantic schemas for the alias registry: the domain record and the API shapes.

This module defines the immutable ``UrlMapping`` record that flows between the
registry and its stores, plus the request/response models of the HTTP API.

Schema Hierarchy
=================
::
    UrlMapping (Domain, frozen)
    ├─ alias: str
    ├─ full_url: str
    └─ created_at: datetime (UTC)

    ShortenRequest (Input)
    ├─ fullUrl: str
    └─ customAlias: str | None

    ShortenResponse / UrlListItem (Output)
    ├─ shortUrl: str (computed)
    ├─ alias: str
    └─ fullUrl: str

    MessageResponse (Output)
    └─ message: str

    HealthResponse (Output)
    ├─ status: HealthStatus
    └─ store: HealthStatus

How to Use
===========
**Step 1 — Build a record**::
    mapping = UrlMapping(alias="my-link", full_url="https://example.com")

**Step 2 — Serialize for a key-value store**::
    raw = mapping.model_dump_json()
    restored = UrlMapping.model_validate_json(raw)

**Step 3 — Present to API clients**::
    ShortenResponse.from_mapping(mapping, settings.BASE_URL)

Key Behaviours
===============
- UrlMapping is frozen; a mapping never changes after creation.
- created_at defaults to the current UTC time.
- API models use camelCase field names, matching the JSON contract.
- Request fields are plain strings; URL and alias validation is the registry's job
  so every failure maps to the same field-scoped error bodies.
"""

import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from alias_registry.enums import HealthStatus

__all__ = [
    "UrlMapping",
    "ShortenRequest",
    "ShortenResponse",
    "UrlListItem",
    "MessageResponse",
    "HealthResponse",
    "build_short_url",
]


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def build_short_url(base_url: str, alias: str) -> str:
    return f"{base_url.rstrip('/')}/{alias}"


class UrlMapping(BaseModel):
    alias: str
    full_url: str
    created_at: datetime.datetime = Field(default_factory=_utcnow)

    model_config = ConfigDict(frozen=True, from_attributes=True)

    @field_validator("created_at")
    @classmethod
    def ensure_utc(cls, v: datetime.datetime) -> datetime.datetime:
        # SQLite hands timestamps back naive; they were written as UTC.
        if v.tzinfo is None:
            return v.replace(tzinfo=datetime.timezone.utc)
        return v.astimezone(datetime.timezone.utc)


class ShortenRequest(BaseModel):
    fullUrl: str
    customAlias: str | None = None


class ShortenResponse(BaseModel):
    shortUrl: str
    alias: str
    fullUrl: str

    @classmethod
    def from_mapping(cls, mapping: UrlMapping, base_url: str) -> "ShortenResponse":
        return cls(
            shortUrl=build_short_url(base_url, mapping.alias),
            alias=mapping.alias,
            fullUrl=mapping.full_url,
        )


class UrlListItem(BaseModel):
    alias: str
    shortUrl: str
    fullUrl: str

    @classmethod
    def from_mapping(cls, mapping: UrlMapping, base_url: str) -> "UrlListItem":
        return cls(
            alias=mapping.alias,
            shortUrl=build_short_url(base_url, mapping.alias),
            fullUrl=mapping.full_url,
        )


class MessageResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    status: HealthStatus
    store: HealthStatus
