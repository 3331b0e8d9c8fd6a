from datetime import timedelta

import pytest

from src.auth.registry import InMemoryRefreshTokenRegistry, RedisRefreshTokenRegistry
from src.core.utils.security import token_digest
from tests.fakes.redis import InMemoryRedis
from tests.helpers.clock import FakeClock


@pytest.fixture
def redis_registry(
    fake_redis: InMemoryRedis, fake_clock: FakeClock
) -> RedisRefreshTokenRegistry:
    return RedisRefreshTokenRegistry(fake_redis, prefix="refresh_token", clock=fake_clock)


@pytest.fixture(params=["memory", "redis"])
def any_registry(request: pytest.FixtureRequest, fake_clock: FakeClock, fake_redis):
    if request.param == "memory":
        return InMemoryRefreshTokenRegistry(clock=fake_clock)
    return RedisRefreshTokenRegistry(fake_redis, clock=fake_clock)


@pytest.mark.asyncio
async def test_added_token_is_contained(any_registry, fake_clock: FakeClock) -> None:
    await any_registry.add("token-a", fake_clock() + timedelta(seconds=60))

    assert await any_registry.contains("token-a") is True
    assert await any_registry.contains("token-b") is False


@pytest.mark.asyncio
async def test_remove_is_idempotent(any_registry, fake_clock: FakeClock) -> None:
    await any_registry.add("token-a", fake_clock() + timedelta(seconds=60))

    await any_registry.remove("token-a")
    await any_registry.remove("token-a")
    await any_registry.remove("never-added")

    assert await any_registry.contains("token-a") is False


@pytest.mark.asyncio
async def test_replace_swaps_tokens(any_registry, fake_clock: FakeClock) -> None:
    await any_registry.add("old", fake_clock() + timedelta(seconds=60))

    replaced = await any_registry.replace("old", "new", fake_clock() + timedelta(seconds=60))

    assert replaced is True
    assert await any_registry.contains("old") is False
    assert await any_registry.contains("new") is True


@pytest.mark.asyncio
async def test_replace_of_unknown_token_registers_nothing(
    any_registry, fake_clock: FakeClock
) -> None:
    replaced = await any_registry.replace(
        "missing", "new", fake_clock() + timedelta(seconds=60)
    )

    assert replaced is False
    assert await any_registry.contains("new") is False


@pytest.mark.asyncio
async def test_memory_registry_drops_expired_entries(fake_clock: FakeClock) -> None:
    registry = InMemoryRefreshTokenRegistry(clock=fake_clock)
    await registry.add("short", fake_clock() + timedelta(seconds=10))
    await registry.add("long", fake_clock() + timedelta(seconds=60))

    fake_clock.advance(30)

    assert await registry.contains("short") is False
    assert await registry.contains("long") is True


@pytest.mark.asyncio
async def test_memory_registry_prune(fake_clock: FakeClock) -> None:
    registry = InMemoryRefreshTokenRegistry(clock=fake_clock)
    await registry.add("a", fake_clock() + timedelta(seconds=10))
    await registry.add("b", fake_clock() + timedelta(seconds=10))
    await registry.add("c", fake_clock() + timedelta(seconds=60))

    fake_clock.advance(30)

    assert await registry.prune() == 2
    assert len(registry) == 1


@pytest.mark.asyncio
async def test_memory_registry_prunes_on_add(fake_clock: FakeClock) -> None:
    registry = InMemoryRefreshTokenRegistry(clock=fake_clock)
    await registry.add("stale", fake_clock() + timedelta(seconds=5))
    fake_clock.advance(10)

    await registry.add("fresh", fake_clock() + timedelta(seconds=60))

    assert len(registry) == 1


@pytest.mark.asyncio
async def test_redis_registry_stores_digest_with_ttl(
    redis_registry: RedisRefreshTokenRegistry,
    fake_redis: InMemoryRedis,
    fake_clock: FakeClock,
) -> None:
    await redis_registry.add("raw-token", fake_clock() + timedelta(seconds=60))

    key = f"refresh_token:{token_digest('raw-token')}"
    assert fake_redis.keys_snapshot() == [key]
    assert await fake_redis.get(key) == "active"
    assert 59 <= await fake_redis.ttl(key) <= 60


@pytest.mark.asyncio
async def test_redis_registry_skips_already_expired_tokens(
    redis_registry: RedisRefreshTokenRegistry,
    fake_redis: InMemoryRedis,
    fake_clock: FakeClock,
) -> None:
    await redis_registry.add("late", fake_clock() - timedelta(seconds=1))

    assert fake_redis.keys_snapshot() == []


@pytest.mark.asyncio
async def test_redis_entries_expire_with_the_token(
    redis_registry: RedisRefreshTokenRegistry,
    fake_redis: InMemoryRedis,
    fake_clock: FakeClock,
) -> None:
    await redis_registry.add("token", fake_clock() + timedelta(seconds=60))

    fake_redis.advance(61)

    assert await redis_registry.contains("token") is False


@pytest.mark.asyncio
async def test_redis_replace_runs_script_with_hashed_keys(
    redis_registry: RedisRefreshTokenRegistry,
    fake_redis: InMemoryRedis,
    fake_clock: FakeClock,
) -> None:
    await redis_registry.add("old", fake_clock() + timedelta(seconds=60))

    await redis_registry.replace("old", "new", fake_clock() + timedelta(seconds=60))

    old_key, new_key, value, ttl = fake_redis.eval_calls[-1]
    assert old_key == f"refresh_token:{token_digest('old')}"
    assert new_key == f"refresh_token:{token_digest('new')}"
    assert value == "active"
    assert ttl == "60"
