"""Alias policy: generation, custom-alias validation and full-URL validation.

Flow Diagram — Custom alias checks
==================================
::
    ┌─────────────┐
    │ customAlias │
    └──────┬──────┘
           ▼
    ┌─────────────┐   blank    ┌─────────────┐
    │ strip()     │──────────▶│ generated   │
    └──────┬──────┘            │ path        │
           ▼                   └─────────────┘
    ┌─────────────┐
    │ pattern &   │──▶ InvalidAliasFormat
    │ length      │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ reserved?   │──▶ ReservedAlias
    └──────┬──────┘
           ▼
       insert-if-absent

Key Behaviours
===============
- Generated aliases are drawn with nanoid (cryptographically secure) from a
  fixed alphabet at a fixed length.
- Custom aliases allow ASCII letters, digits, hyphen and underscore.
- Reserved words are compared case-insensitively.
- Full URLs must be absolute http/https URLs accepted by ``validators.url``; single-label
  hosts (localhost), underscores in host labels and valueless query keys are allowed.
"""

import re
from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import urlsplit

import validators
from nanoid import generate

from alias_registry.config import Settings
from alias_registry.errors import InvalidAliasFormat, InvalidUrl, ReservedAlias

__all__ = [
    "ALLOWED_SCHEMES",
    "CUSTOM_ALIAS_PATTERN",
    "AliasPolicy",
    "generate_alias",
    "normalize_custom_alias",
    "validate_custom_alias",
    "validate_full_url",
]

ALLOWED_SCHEMES = frozenset({"http", "https"})
CUSTOM_ALIAS_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


@dataclass(frozen=True)
class AliasPolicy:
    """Tunable alias rules shared by a registry instance."""

    alphabet: str
    length: int
    min_length: int
    max_length: int
    max_retries: int
    url_max_length: int
    reserved: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def from_settings(cls, settings: Settings) -> "AliasPolicy":
        return cls(
            alphabet=settings.ALIAS_ALPHABET,
            length=settings.ALIAS_LENGTH,
            min_length=settings.ALIAS_MIN_LENGTH,
            max_length=settings.ALIAS_MAX_LENGTH,
            max_retries=settings.ALIAS_MAX_RETRIES,
            url_max_length=settings.URL_MAX_LENGTH,
            reserved=frozenset(word.casefold() for word in settings.RESERVED_ALIASES),
        )

    def is_reserved(self, alias: str) -> bool:
        return alias.casefold() in self.reserved


def generate_alias(policy: AliasPolicy) -> str:
    return generate(policy.alphabet, policy.length)


def normalize_custom_alias(custom_alias: Optional[str]) -> Optional[str]:
    """Return the trimmed alias, or None when the caller did not really supply one."""
    if custom_alias is None:
        return None
    trimmed = custom_alias.strip()
    return trimmed or None


def validate_custom_alias(alias: str, policy: AliasPolicy) -> str:
    if not policy.min_length <= len(alias) <= policy.max_length:
        raise InvalidAliasFormat(
            f"Custom alias must be between {policy.min_length} and {policy.max_length} characters"
        )
    if not CUSTOM_ALIAS_PATTERN.match(alias):
        raise InvalidAliasFormat()
    if policy.is_reserved(alias):
        raise ReservedAlias()
    return alias


def validate_full_url(full_url: Optional[str], policy: AliasPolicy) -> str:
    if not full_url or not full_url.strip():
        raise InvalidUrl("Full URL is required")
    if len(full_url) > policy.url_max_length:
        raise InvalidUrl(f"must be at most {policy.url_max_length} characters")

    try:
        parts = urlsplit(full_url)
    except ValueError as exc:
        raise InvalidUrl() from exc

    if parts.scheme.lower() not in ALLOWED_SCHEMES or not parts.netloc:
        raise InvalidUrl()
    # Single-label hosts, underscores in host labels and valueless query keys are all valid here.
    if not validators.url(full_url, simple_host=True, strict_query=False, rfc_2782=True):
        raise InvalidUrl()
    return full_url
