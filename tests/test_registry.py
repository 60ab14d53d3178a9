"""Behaviour tests for AliasRegistry over the in-memory store."""

import asyncio
import re
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock, patch

import pytest
from prometheus_client import REGISTRY

from alias_registry.aliases import AliasPolicy
from alias_registry.errors import (
    AliasGenerationExhausted,
    AliasTaken,
    InvalidAliasFormat,
    InvalidUrl,
    NotFound,
    ReservedAlias,
)
from alias_registry.registry import AliasRegistry
from alias_registry.store import MemoryAliasStore

# ============================================================================
# SHORTEN
# ============================================================================


class TestShorten:
    @pytest.mark.asyncio
    async def test_generated_alias_matches_policy(self, registry: AliasRegistry) -> None:
        mapping = await registry.shorten("https://example.com/a/b")
        assert re.fullmatch(r"[A-Za-z0-9_-]{6,8}", mapping.alias)
        assert mapping.full_url == "https://example.com/a/b"
        assert mapping.created_at.tzinfo is not None

    @pytest.mark.asyncio
    async def test_generated_aliases_are_unique(self, registry: AliasRegistry) -> None:
        aliases = {(await registry.shorten(f"https://example.com/{i}")).alias for i in range(200)}
        assert len(aliases) == 200

    @pytest.mark.asyncio
    async def test_custom_alias(self, registry: AliasRegistry) -> None:
        mapping = await registry.shorten("https://example.com/x", custom_alias="my-link")
        assert mapping.alias == "my-link"

    @pytest.mark.asyncio
    async def test_custom_alias_is_trimmed(self, registry: AliasRegistry) -> None:
        mapping = await registry.shorten("https://example.com/x", custom_alias="  my-link  ")
        assert mapping.alias == "my-link"

    @pytest.mark.asyncio
    async def test_blank_custom_alias_generates(self, registry: AliasRegistry, policy: AliasPolicy) -> None:
        mapping = await registry.shorten("https://example.com/x", custom_alias="   ")
        assert len(mapping.alias) == policy.length

    @pytest.mark.asyncio
    async def test_duplicate_custom_alias_is_taken(self, registry: AliasRegistry) -> None:
        await registry.shorten("https://example.com/x", custom_alias="my-link")
        with pytest.raises(AliasTaken, match="Alias already exists"):
            await registry.shorten("https://example.com/other", custom_alias="my-link")
        assert await registry.resolve("my-link") == "https://example.com/x"

    @pytest.mark.asyncio
    async def test_invalid_url_creates_nothing(self, registry: AliasRegistry) -> None:
        with pytest.raises(InvalidUrl):
            await registry.shorten("not-a-url", custom_alias="nothing")
        assert await registry.list_all() == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("alias", ["has space", "x" * 51])
    async def test_bad_custom_alias_creates_nothing(self, registry: AliasRegistry, alias: str) -> None:
        with pytest.raises(InvalidAliasFormat):
            await registry.shorten("https://example.com", custom_alias=alias)
        assert await registry.list_all() == []

    @pytest.mark.asyncio
    async def test_reserved_custom_alias(self, registry: AliasRegistry) -> None:
        with pytest.raises(ReservedAlias):
            await registry.shorten("https://example.com", custom_alias="shorten")


# ============================================================================
# GENERATION RETRIES
# ============================================================================


class TestGenerationRetries:
    @pytest.mark.asyncio
    async def test_collision_is_retried(self, registry: AliasRegistry) -> None:
        await registry.shorten("https://example.com/1", custom_alias="aaaaaa")

        with patch("alias_registry.registry.generate_alias", side_effect=["aaaaaa", "bbbbbb"]) as gen:
            mapping = await registry.shorten("https://example.com/2")

        assert mapping.alias == "bbbbbb"
        assert gen.call_count == 2

    @pytest.mark.asyncio
    async def test_reserved_candidate_is_skipped(self, registry: AliasRegistry) -> None:
        with patch("alias_registry.registry.generate_alias", side_effect=["health", "cccccc"]):
            mapping = await registry.shorten("https://example.com")
        assert mapping.alias == "cccccc"

    @pytest.mark.asyncio
    async def test_exhaustion_after_retry_bound(self, registry: AliasRegistry, policy: AliasPolicy) -> None:
        await registry.shorten("https://example.com/1", custom_alias="aaaaaa")
        before = REGISTRY.get_sample_value("alias_registry_generation_exhausted_total") or 0.0

        with patch("alias_registry.registry.generate_alias", return_value="aaaaaa") as gen:
            with pytest.raises(AliasGenerationExhausted) as excinfo:
                await registry.shorten("https://example.com/2")

        assert gen.call_count == policy.max_retries
        assert excinfo.value.attempts == policy.max_retries
        assert excinfo.value.field is None
        assert REGISTRY.get_sample_value("alias_registry_generation_exhausted_total") == before + 1
        assert len(await registry.list_all()) == 1

    @pytest.mark.asyncio
    async def test_exhaustion_is_logged_as_warning(self, memory_store: MemoryAliasStore) -> None:
        policy = AliasPolicy(
            alphabet="ab",
            length=1,
            min_length=1,
            max_length=10,
            max_retries=5,
            url_max_length=2048,
        )
        logger = MagicMock()
        registry = AliasRegistry(memory_store, policy, logger=logger)

        await registry.shorten("https://example.com/a", custom_alias="a")
        await registry.shorten("https://example.com/b", custom_alias="b")

        with pytest.raises(AliasGenerationExhausted):
            await registry.shorten("https://example.com/c")
        logger.warning.assert_called_once()
        assert "exhausted" in logger.warning.call_args[0][0]


# ============================================================================
# RESOLVE / LIST / DELETE
# ============================================================================


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_round_trip(self, registry: AliasRegistry) -> None:
        mapping = await registry.shorten("https://example.com/a/b?q=1")
        assert await registry.resolve(mapping.alias) == "https://example.com/a/b?q=1"

    @pytest.mark.asyncio
    async def test_resolve_unknown(self, registry: AliasRegistry) -> None:
        with pytest.raises(NotFound, match="'nope' not found"):
            await registry.resolve("nope")

    @pytest.mark.asyncio
    async def test_delete_then_not_found(self, registry: AliasRegistry) -> None:
        await registry.shorten("https://example.com", custom_alias="my-link")
        await registry.delete("my-link")

        with pytest.raises(NotFound):
            await registry.resolve("my-link")
        with pytest.raises(NotFound):
            await registry.delete("my-link")

    @pytest.mark.asyncio
    async def test_deleted_alias_is_never_reissued(self, registry: AliasRegistry) -> None:
        await registry.shorten("https://example.com", custom_alias="my-link")
        await registry.delete("my-link")

        with pytest.raises(AliasTaken):
            await registry.shorten("https://example.com/again", custom_alias="my-link")

        with patch("alias_registry.registry.generate_alias", side_effect=["my-link", "dddddd"]):
            mapping = await registry.shorten("https://example.com/generated")
        assert mapping.alias == "dddddd"

    @pytest.mark.asyncio
    async def test_list_is_ordered_and_skips_deleted(self, registry: AliasRegistry) -> None:
        for alias in ["first", "second", "third", "fourth"]:
            await registry.shorten(f"https://example.com/{alias}", custom_alias=alias)
        await registry.delete("second")

        mappings = await registry.list_all()

        assert [m.alias for m in mappings] == ["first", "third", "fourth"]
        assert [m.full_url for m in mappings] == [
            "https://example.com/first",
            "https://example.com/third",
            "https://example.com/fourth",
        ]

    @pytest.mark.asyncio
    async def test_registries_are_isolated(self, policy: AliasPolicy) -> None:
        first = AliasRegistry(MemoryAliasStore(), policy)
        second = AliasRegistry(MemoryAliasStore(), policy)

        await first.shorten("https://example.com", custom_alias="shared")
        mapping = await second.shorten("https://example.org", custom_alias="shared")

        assert mapping.alias == "shared"
        assert await first.resolve("shared") == "https://example.com"


# ============================================================================
# CONCURRENCY
# ============================================================================


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_concurrent_same_custom_alias_single_winner(self, registry: AliasRegistry) -> None:
        attempts = 25
        results = await asyncio.gather(
            *[registry.shorten(f"https://example.com/{i}", custom_alias="race") for i in range(attempts)],
            return_exceptions=True,
        )

        winners = [r for r in results if not isinstance(r, Exception)]
        losers = [r for r in results if isinstance(r, AliasTaken)]
        assert len(winners) == 1
        assert len(losers) == attempts - 1
        assert await registry.resolve("race") == winners[0].full_url

    def test_threaded_same_custom_alias_single_winner(self, registry: AliasRegistry) -> None:
        def attempt(i: int) -> str:
            try:
                asyncio.run(registry.shorten(f"https://example.com/{i}", custom_alias="thread-race"))
            except AliasTaken:
                return "taken"
            return "created"

        with ThreadPoolExecutor(max_workers=8) as pool:
            outcomes = list(pool.map(attempt, range(32)))

        assert outcomes.count("created") == 1
        assert outcomes.count("taken") == 31

    @pytest.mark.asyncio
    async def test_concurrent_generated_aliases_are_distinct(self, registry: AliasRegistry) -> None:
        mappings = await asyncio.gather(*[registry.shorten(f"https://example.com/{i}") for i in range(100)])
        assert len({m.alias for m in mappings}) == 100
        assert len(await registry.list_all()) == 100
