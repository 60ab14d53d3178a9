"""Shared enums for the alias registry service.

This module defines all status and state enums used across the codebase.
Using enums instead of string literals provides type safety and prevents typos.
"""

from enum import StrEnum

__all__ = ["HealthStatus", "RequestStatus", "StoreBackend"]


class HealthStatus(StrEnum):
    """Health check status values."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"

    @classmethod
    def from_bool(cls, ok: bool) -> "HealthStatus":
        return cls.HEALTHY if ok else cls.UNHEALTHY


class RequestStatus(StrEnum):
    """Outcome labels for registry metrics and logging."""

    SUCCESS = "success"
    VALIDATION_ERROR = "validation_error"
    CONFLICT = "conflict"
    EXHAUSTED = "exhausted"
    NOT_FOUND = "not_found"
    ERROR = "error"


class StoreBackend(StrEnum):
    """Backing store implementations selectable through STORE_BACKEND."""

    MEMORY = "memory"
    SQL = "sql"
    REDIS = "redis"
