"""Typed failures raised by the alias registry.

Every failure is an expected, recoverable outcome of a single call. The API
layer turns them into JSON bodies: field-scoped (``{"customAlias": msg}``)
when ``field`` is set, ``{"error": msg}`` otherwise.
"""

from typing import ClassVar, Optional

from alias_registry.enums import RequestStatus

__all__ = [
    "RegistryError",
    "InvalidUrl",
    "InvalidAliasFormat",
    "ReservedAlias",
    "AliasTaken",
    "AliasGenerationExhausted",
    "NotFound",
]

FULL_URL_FIELD = "fullUrl"
CUSTOM_ALIAS_FIELD = "customAlias"


class RegistryError(Exception):
    status_code: ClassVar[int] = 400
    field: ClassVar[Optional[str]] = None
    status: ClassVar[RequestStatus] = RequestStatus.ERROR
    default_message: ClassVar[str] = "Request could not be processed"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_body(self) -> dict[str, str]:
        return {self.field or "error": self.message}


class InvalidUrl(RegistryError):
    field = FULL_URL_FIELD
    status = RequestStatus.VALIDATION_ERROR
    default_message = "must be a valid absolute URL"


class InvalidAliasFormat(RegistryError):
    field = CUSTOM_ALIAS_FIELD
    status = RequestStatus.VALIDATION_ERROR
    default_message = (
        "Custom alias can only contain alphanumeric characters, hyphens, and underscores"
    )


class ReservedAlias(RegistryError):
    field = CUSTOM_ALIAS_FIELD
    status = RequestStatus.VALIDATION_ERROR
    default_message = "reserved alias"


class AliasTaken(RegistryError):
    field = CUSTOM_ALIAS_FIELD
    status = RequestStatus.CONFLICT
    default_message = "Alias already exists"


class AliasGenerationExhausted(RegistryError):
    """No free alias found within the retry bound at the configured length."""

    status = RequestStatus.EXHAUSTED
    default_message = "Could not generate a unique alias, please try again or choose a custom alias"

    def __init__(self, attempts: int, length: int) -> None:
        self.attempts = attempts
        self.length = length
        super().__init__()


class NotFound(RegistryError):
    status_code = 404
    status = RequestStatus.NOT_FOUND

    def __init__(self, alias: str) -> None:
        self.alias = alias
        super().__init__(f"Alias '{alias}' not found")
