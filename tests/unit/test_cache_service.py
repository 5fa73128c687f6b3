"""Tests for the TTL and size bounded cache."""

import threading

import pytest

from agent_marketplace.config import CacheSettings
from agent_marketplace.models import Agent, Category
from agent_marketplace.services.cache_service import (
    AgentListPayload,
    AgentPayload,
    CacheKey,
    CacheService,
    CategoriesPayload,
    CategoryStringPayload,
    estimate_size,
)

TTL_SECONDS = 3600.0


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_agent(name: str, description: str = "does things") -> Agent:
    slug = name.lower().replace(" ", "-")
    return Agent(id=slug, slug=slug, name=name, description=description, category="dev")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return CacheService(CacheSettings(enabled=True, ttl_hours=1, max_size_mb=1), clock=clock)


def test_key_rendering():
    assert str(CacheKey.categories()) == "categories"
    assert str(CacheKey.agents("dev")) == "agents:dev"
    assert str(CacheKey.agent("a1")) == "agent:a1"
    assert str(CacheKey.agent_category("a1")) == "agent_category:a1"


def test_hit_before_ttl_and_miss_at_ttl(cache, clock):
    """Entries are served strictly before stored_at + ttl and missed from then on."""
    cache.set_agent_category("a1", "dev")

    clock.advance(TTL_SECONDS - 0.001)
    assert cache.get_agent_category("a1") == "dev"

    clock.advance(0.001)
    assert cache.get_agent_category("a1") is None
    assert cache.size() == 0


def test_write_refreshes_timestamp(cache, clock):
    cache.set_agent_category("a1", "dev")
    clock.advance(TTL_SECONDS - 1)
    cache.set_agent_category("a1", "ops")
    clock.advance(TTL_SECONDS - 1)

    assert cache.get_agent_category("a1") == "ops"


def test_is_expired(cache, clock):
    key = CacheKey.agent_category("a1")
    assert cache.is_expired(key)

    cache.set(key, CategoryStringPayload("dev"))
    assert not cache.is_expired(key)

    clock.advance(TTL_SECONDS)
    assert cache.is_expired(key)
    assert cache.stats().misses == 0


def test_size_counts_only_live_entries(cache, clock):
    cache.set_agent_category("a1", "dev")
    clock.advance(TTL_SECONDS / 2)
    cache.set_agent_category("a2", "ops")
    clock.advance(TTL_SECONDS / 2)

    assert cache.size() == 1
    assert cache.stats().size == 1
    assert cache.stats().misses == 0
    assert cache.get_agent_category("a2") == "ops"


def test_size_does_not_refresh_recency(clock):
    cache = CacheService(CacheSettings(max_size_mb=1), clock=clock)
    big = "x" * (400 * 1024)

    cache.set(CacheKey.agent("a"), AgentPayload(make_agent("A", big)))
    cache.set(CacheKey.agent("b"), AgentPayload(make_agent("B", big)))
    assert cache.size() == 2
    cache.set(CacheKey.agent("c"), AgentPayload(make_agent("C", big)))

    assert cache.get_agent("a") is None
    assert cache.get_agent("b") is not None


def test_typed_helpers_round_trip(cache):
    categories = [Category(id="dev", name="Dev", slug="dev")]
    agents = [make_agent("Code Reviewer"), make_agent("Tester")]

    cache.set_categories(categories)
    cache.set_agents("dev", agents)
    cache.set_agent("tester", agents[1])

    assert cache.get_categories() == categories
    assert cache.get_agents("dev") == agents
    assert cache.get_agent("tester") == agents[1]
    assert cache.get_agents("ops") is None


def test_payload_variant_must_match_key(cache):
    with pytest.raises(TypeError):
        cache.set(CacheKey.agents("dev"), AgentPayload(make_agent("Tester")))


def test_stats_and_clear(cache):
    cache.set_agent_category("a1", "dev")
    cache.get_agent_category("a1")
    cache.get_agent_category("a1")
    cache.get_agent_category("missing")

    stats = cache.stats()
    assert (stats.hits, stats.misses, stats.size) == (2, 1, 1)
    assert stats.hit_rate == pytest.approx(2 / 3)

    cache.clear()

    stats = cache.stats()
    assert (stats.hits, stats.misses, stats.evictions, stats.size) == (0, 0, 0, 0)
    assert stats.hit_rate == 0.0
    assert cache.get_agent_category("a1") is None


def test_disabled_cache_is_a_no_op(clock):
    cache = CacheService(CacheSettings(enabled=False), clock=clock)

    cache.set_agent_category("a1", "dev")

    assert cache.get_agent_category("a1") is None
    assert cache.size() == 0
    assert cache.stats().misses == 0


def test_capacity_eviction_drops_least_recently_used(clock):
    cache = CacheService(CacheSettings(max_size_mb=1), clock=clock)
    big = "x" * (400 * 1024)

    cache.set(CacheKey.agent("a"), AgentPayload(make_agent("A", big)))
    cache.set(CacheKey.agent("b"), AgentPayload(make_agent("B", big)))
    assert cache.get_agent("a") is not None
    cache.set(CacheKey.agent("c"), AgentPayload(make_agent("C", big)))

    assert cache.get_agent("b") is None
    assert cache.get_agent("a") is not None
    assert cache.get_agent("c") is not None
    assert cache.stats().evictions == 1
    assert cache.size() == 2


def test_oversized_entry_is_skipped(clock):
    cache = CacheService(CacheSettings(max_size_mb=1), clock=clock)
    huge = make_agent("Huge", "y" * (2 * 1024 * 1024))

    cache.set_agent("huge", huge)

    assert cache.size() == 0
    assert cache.get_agent("huge") is None


def test_estimate_size_grows_with_payload():
    small = AgentListPayload((make_agent("A"),))
    large = AgentListPayload(tuple(make_agent(f"Agent {i}") for i in range(10)))

    assert 0 < estimate_size(small) < estimate_size(large)
    assert estimate_size(CategoriesPayload(())) == 2


def test_concurrent_writers_keep_counts_consistent(cache):
    def worker(n: int) -> None:
        for i in range(200):
            cache.set_agent_category(f"{n}-{i}", "dev")
            cache.get_agent_category(f"{n}-{i}")

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    stats = cache.stats()
    assert stats.hits == 800
    assert stats.size == 800
